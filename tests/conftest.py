"""Shared test fixtures for speccatalog.

Provides reusable fixtures for loading fixture documents, creating isolated
config environments, managing output state, and running CLI commands.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from speccatalog.files import serialized_file_from_bytes, serialized_file_from_path
from speccatalog.models import SerializedFile
from speccatalog.output import reset_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    """Return the text of a fixture document."""
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fixture documents
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_text() -> str:
    return read_fixture("petstore.json")


@pytest.fixture
def swagger_text() -> str:
    return read_fixture("swagger_petstore.yaml")


@pytest.fixture
def user_events_text() -> str:
    return read_fixture("user_events.yaml")


@pytest.fixture
def orders_amqp_text() -> str:
    return read_fixture("orders_amqp.json")


@pytest.fixture
def greeter_proto_text() -> str:
    return read_fixture("greeter.proto")


@pytest.fixture
def calculator_wsdl_text() -> str:
    return read_fixture("calculator.wsdl")


@pytest.fixture
def graphql_text() -> str:
    return read_fixture("schema.graphql")


@pytest.fixture
def fixture_text():
    """Factory returning the text of any fixture document by name."""
    return read_fixture


@pytest.fixture
def fixture_file():
    """Factory returning a :class:`SerializedFile` for a fixture document."""

    def _make(name: str) -> SerializedFile:
        return serialized_file_from_path(str(FIXTURES_DIR / name))

    return _make


@pytest.fixture
def text_file():
    """Factory returning a :class:`SerializedFile` holding the given text."""

    def _make(name: str, text: str) -> SerializedFile:
        return serialized_file_from_bytes(name, text.encode("utf-8"))

    return _make


# ---------------------------------------------------------------------------
# Components with shared and cyclic references
# ---------------------------------------------------------------------------


@pytest.fixture
def cyclic_components() -> dict:
    """``A -> B -> A`` plus ``C`` reachable from ``A`` twice."""
    return {
        "schemas": {
            "A": {
                "type": "object",
                "properties": {
                    "b": {"$ref": "#/components/schemas/B"},
                    "c1": {"$ref": "#/components/schemas/C"},
                    "c2": {"type": "array", "items": {"$ref": "#/components/schemas/C"}},
                },
            },
            "B": {
                "type": "object",
                "properties": {"a": {"$ref": "#/components/schemas/A"}},
            },
            "C": {"type": "string"},
            "Unused": {"type": "integer"},
        }
    }


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config. Clears all SPECCATALOG_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("speccatalog.config._is_xdg_platform", lambda: True)

    for var in [
        "SPECCATALOG_PROTOCOL",
        "SPECCATALOG_PREVIEW_CHARS",
        "SPECCATALOG_MAX_WORKERS",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    # Wide terminal so Rich does not hard-wrap messages at 80 columns.
    return CliRunner(env={"COLUMNS": "500"})
