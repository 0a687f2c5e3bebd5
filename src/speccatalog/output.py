"""Terminal output for the speccatalog CLI.

Catalogs, operation tables and JSON documents are data and go to stdout, or
to the ``-o`` file when one is given. Progress notes, parse warnings and
errors are diagnostics and go to stderr, so piping a catalog into another
tool never mixes the two. Rich styling is used only when stdout is a
terminal and colour is allowed; ``NO_COLOR``, ``TERM=dumb`` and
``--no-color`` all turn it off.

Commands call the module-level helpers. They delegate to the
:class:`OutputManager` installed by :func:`~speccatalog.app.main_callback`.
Library modules never import this; they log through :mod:`logging`.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterator, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from speccatalog.models import ParsedSpecification


class OutputFormat(str, Enum):
    """Values accepted by ``output.format``; ``--json`` and ``--plain`` pick one directly."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Writes catalog data to stdout (or a file) and diagnostics to stderr.

    Args:
        format: ``AUTO`` becomes ``RICH`` on a colour terminal and ``PLAIN``
            everywhere else.
        no_color: Disable colour and Rich markup.
        quiet: Drop info, success and suggestion messages. Warnings and
            errors are always shown.
        output_file: Write catalog data to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            use_rich = _stdout_is_tty() and not self._no_color
            format = OutputFormat.RICH if use_rich else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format, never ``AUTO``."""
        return self._format

    @property
    def output_file(self) -> Optional[str]:
        return self._output_file

    @property
    def writes_json(self) -> bool:
        """Whether whole documents are emitted as JSON (``--json`` or ``-o``)."""
        return self._format == OutputFormat.JSON or self._output_file is not None

    # ------------------------------------------------------------------ #
    # Data (stdout or the output file)
    # ------------------------------------------------------------------ #

    def render(self, data: Any) -> None:
        """Emit a JSON-compatible document.

        An output file receives indented JSON and is overwritten. On stdout,
        JSON mode prints indented JSON, plain mode prints one
        ``key<TAB>value`` line per entry and Rich mode prints highlighted
        JSON.
        """
        if self._output_file:
            with open(self._output_file, "w", encoding="utf-8") as f:
                f.write(_to_json(data) + "\n")
        elif self._format == OutputFormat.JSON:
            self._write_line(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self._write_line(line)
        else:
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        title: Optional[str] = None,
    ) -> None:
        """Emit rows as a Rich table, tab-separated lines, or a JSON array of objects."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self._write_line(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            self._write_line("\t".join(headers))
            for row in rows:
                self._write_line("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for row in rows:
                table.add_row(*(escape(cell) for cell in row))
            self._stdout.print(table)

    def _write_line(self, text: str) -> None:
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(text if text.endswith("\n") else text + "\n")
        else:
            print(text, file=sys.stdout, flush=True)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "{}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "[green]{}[/green]")

    def warning(self, message: str) -> None:
        self._diagnostic(message, "[yellow]Warning:[/yellow] {}", "Warning: {}")

    def error(self, message: str) -> None:
        self._diagnostic(message, "[bold red]Error:[/bold red] {}", "Error: {}")

    def suggest(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, "[dim]→ {}[/dim]", "→ {}")

    def _diagnostic(self, message: str, styled: str, plain: str = "{}") -> None:
        # Brackets in messages are literal text, not markup.
        if self._no_color:
            print(plain.format(message), file=sys.stderr, flush=True)
        else:
            self._stderr.print(styled.format(escape(message)))


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> Iterator[str]:
    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, (dict, list)):
                value = json.dumps(value, ensure_ascii=False, default=str)
            yield f"{key}\t{value}"
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                yield "\t".join(str(value) for value in item.values())
            else:
                yield str(item)
    else:
        yield str(data)


def _stdout_is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color_disabled_by_env() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Helpers used by the commands
# ------------------------------------------------------------------ #


def print_catalog(sources: Sequence[str], specs: Sequence[ParsedSpecification]) -> None:
    """Emit one catalog entry per source.

    JSON output (``--json`` or ``-o``) carries every specification in full.
    Otherwise a summary row per source is printed: name, kind, operation
    count and whether parsing succeeded.
    """
    output = get_output()
    if output.writes_json:
        output.render([spec.to_dict() for spec in specs])
        return

    rows = [
        [
            source,
            spec.name,
            spec.type.value,
            str(len(spec.operations)),
            "error" if spec.is_error else "ok",
        ]
        for source, spec in zip(sources, specs)
    ]
    output.table(
        ["Source", "Name", "Type", "Operations", "Status"],
        rows,
        title=f"Catalog ({len(specs)} document(s))",
    )


def print_operations(spec: ParsedSpecification) -> None:
    """Emit the operations of *spec*, one row each."""
    rows = [
        [op.id, op.method, op.path or "-", op.name, ", ".join(op.tags or [])]
        for op in spec.operations
    ]
    get_output().table(
        ["ID", "Method", "Path", "Name", "Tags"],
        rows,
        title=f"{spec.name} ({spec.type.value}) -- Operations ({len(rows)})",
    )


def render(data: Any) -> None:
    get_output().render(data)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
