"""Tests for speccatalog.parser.asyncapi."""

from __future__ import annotations

import textwrap

import pytest

from speccatalog.exceptions import SpecParseError
from speccatalog.models import ParameterLocation, ParserConfig, SpecificationType
from speccatalog.parser.asyncapi import extract_address, extract_asyncapi, resolve_protocol


# ---------------------------------------------------------------------------
# Kafka document with referenced messages
# ---------------------------------------------------------------------------


class TestUserEvents:
    """Test the Kafka ``user_events`` fixture."""

    def test_specification_fields(self, user_events_text: str) -> None:
        spec = extract_asyncapi(user_events_text, "user_events.yaml")

        assert spec.type == SpecificationType.ASYNC
        assert spec.name == "User Events"
        assert spec.version == "1.0.0"
        assert spec.metadata["asyncapi"] == "2.6.0"
        assert spec.metadata["protocol"] == "kafka"
        assert spec.metadata["address"] == "broker.example.com:9092"

    def test_one_operation_per_direction(self, user_events_text: str) -> None:
        spec = extract_asyncapi(user_events_text, "user_events.yaml")

        assert [op.id for op in spec.operations] == [
            "subscribe_user/signedup",
            "publish_user/signedup",
        ]
        assert [op.method for op in spec.operations] == ["subscribe", "publish"]
        assert all(op.path == "user/signedup" for op in spec.operations)

    def test_names_and_descriptions(self, user_events_text: str) -> None:
        spec = extract_asyncapi(user_events_text, "user_events.yaml")
        subscribe, publish = spec.operations

        assert subscribe.name == "onUserSignedUp"
        assert publish.name == "Publish a sign-up"
        assert subscribe.description == "User sign-up events"
        assert subscribe.tags == ["asyncapi", "subscribe"]

    def test_channel_parameters_become_path_parameters(self, user_events_text: str) -> None:
        spec = extract_asyncapi(user_events_text, "user_events.yaml")

        for op in spec.operations:
            assert len(op.parameters) == 1
            param = op.parameters[0]
            assert param.name == "userId"
            assert param.location == ParameterLocation.PATH
            assert param.required is True
            assert param.description == "Id of the user"
        assert spec.operations[0].parameters[0] is not spec.operations[1].parameters[0]

    def test_streaming_metadata(self, user_events_text: str) -> None:
        spec = extract_asyncapi(user_events_text, "user_events.yaml")
        subscribe, publish = spec.operations

        assert subscribe.metadata == {"topic": "user/signedup"}
        assert publish.metadata == {"topic": "user/signedup", "maasClassifierName": "users"}

    def test_referenced_message_schema(self, user_events_text: str) -> None:
        publish = extract_asyncapi(user_events_text, "user_events.yaml").operations[1]

        assert list(publish.response_schemas) == ["UserSignedUp"]
        schema = publish.response_schemas["UserSignedUp"]
        assert schema["$id"] == "http://system.catalog/schemas/UserSignedUp"
        assert schema["properties"]["user"] == {"$ref": "#/definitions/User"}
        assert set(schema["definitions"]) == {"User", "Address"}
        assert schema["definitions"]["User"]["properties"]["friends"]["items"] == {
            "$ref": "#/definitions/User"
        }
        assert "payload" not in schema
        assert "headers" not in schema

        # Exactly one resolved schema doubles as the 200 response schema.
        assert publish.responses[0].status_code == "200"
        assert publish.responses[0].schema_ == schema

    def test_one_of_message_schemas(self, user_events_text: str) -> None:
        subscribe = extract_asyncapi(user_events_text, "user_events.yaml").operations[0]

        assert list(subscribe.response_schemas) == ["UserSignedUp", "UserDeleted"]
        assert subscribe.responses[0].schema_ is None
        assert subscribe.request_schema is None


# ---------------------------------------------------------------------------
# AMQP document with an embedded payload
# ---------------------------------------------------------------------------


class TestOrdersAmqp:
    """Test the AMQP ``orders_amqp`` fixture."""

    def test_protocol_and_address_from_x_protocol(self, orders_amqp_text: str) -> None:
        spec = extract_asyncapi(orders_amqp_text, "orders_amqp.json")

        assert spec.metadata["protocol"] == "amqp"
        assert spec.metadata["address"] == "amqp://localhost:5672"
        assert spec.name == "Orders"

    def test_queue_metadata(self, orders_amqp_text: str) -> None:
        op = extract_asyncapi(orders_amqp_text, "orders_amqp.json").operations[0]

        assert op.id == "subscribe_orders"
        assert op.name == "Subscribe to orders"
        assert op.metadata == {
            "username": "guest",
            "queue": "orders-queue",
            "exchangeName": "orders-exchange",
        }

    def test_embedded_payload_schema(self, orders_amqp_text: str) -> None:
        op = extract_asyncapi(orders_amqp_text, "orders_amqp.json").operations[0]

        assert list(op.response_schemas) == ["payload"]
        payload = op.response_schemas["payload"]
        assert payload["$id"] == "http://system.catalog/schemas/subscribe_orders/payload"
        assert payload["properties"]["order"] == {"$ref": "#/definitions/Order"}
        assert set(payload["definitions"]) == {"Order", "OrderLine"}
        assert op.responses[0].content_type == "application/json"
        assert op.responses[0].schema_ == payload


# ---------------------------------------------------------------------------
# Protocol and address resolution
# ---------------------------------------------------------------------------


class TestResolveProtocol:
    """Test protocol precedence."""

    def test_x_protocol_wins(self) -> None:
        document = {
            "info": {"x-protocol": "amqp"},
            "servers": {"main": {"protocol": "kafka"}},
        }
        assert resolve_protocol(document) == "amqp"

    def test_main_server_before_others(self) -> None:
        document = {
            "servers": {
                "backup": {"protocol": "mqtt"},
                "main": {"protocol": "kafka"},
            }
        }
        assert resolve_protocol(document) == "kafka"

    def test_first_server_when_no_main(self) -> None:
        document = {"servers": {"prod": {"protocol": "mqtt"}, "dev": {"protocol": "ws"}}}
        assert resolve_protocol(document) == "mqtt"

    def test_hint_when_document_is_silent(self) -> None:
        assert resolve_protocol({}, "kafka") == "kafka"

    def test_unknown_fallback(self) -> None:
        assert resolve_protocol({}) == "unknown"


class TestExtractAddress:
    """Test broker address precedence."""

    @pytest.mark.parametrize(
        ("protocol", "expected"),
        [
            ("amqp", "amqp://localhost:5672"),
            ("MQTT", "mqtt://localhost:1883"),
            ("kafka", "kafka://localhost:9092"),
            ("redis", "redis://localhost:6379"),
            ("nats", "nats://localhost:4222"),
            ("ws", "ws://localhost"),
        ],
    )
    def test_x_protocol_default_addresses(self, protocol: str, expected: str) -> None:
        assert extract_address({"info": {"x-protocol": protocol}}) == expected

    def test_main_server_url(self) -> None:
        document = {"servers": {"a": {"url": "a:1"}, "main": {"url": "main:2"}}}
        assert extract_address(document) == "main:2"

    def test_first_server_url(self) -> None:
        document = {"servers": {"a": {"url": "a:1"}, "b": {"url": "b:2"}}}
        assert extract_address(document) == "a:1"

    def test_no_servers(self) -> None:
        assert extract_address({}) is None


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestAsyncApiEdgeCases:
    """Test documents outside the happy path."""

    def test_protocol_hint_from_config(self) -> None:
        content = '{"asyncapi": "2.0.0", "channels": {"t": {"publish": {}}}}'
        spec = extract_asyncapi(content, "events.json", ParserConfig(protocol_hint="kafka"))

        assert spec.metadata["protocol"] == "kafka"
        assert spec.operations[0].metadata == {"topic": "t"}

    def test_unknown_protocol_yields_no_metadata(self) -> None:
        content = '{"asyncapi": "2.0.0", "channels": {"t": {"publish": {}}}}'
        spec = extract_asyncapi(content, "events.json")

        assert spec.metadata["protocol"] == "unknown"
        assert spec.metadata["address"] is None
        assert spec.operations[0].metadata == {}
        assert spec.operations[0].response_schemas == {}

    def test_name_falls_back_to_file_stem(self) -> None:
        spec = extract_asyncapi('{"asyncapi": "2.0.0"}', "events.json")
        assert spec.name == "events"
        assert spec.operations == []

    def test_channel_without_operations(self) -> None:
        content = '{"asyncapi": "2.0.0", "channels": {"t": {"description": "idle"}}}'
        assert extract_asyncapi(content, "events.json").operations == []

    def test_malformed_document_raises(self) -> None:
        with pytest.raises(SpecParseError, match="Failed to parse AsyncAPI specification"):
            extract_asyncapi("asyncapi: [", "events.yaml")

    def test_unquoted_yaml_scalars_become_text(self) -> None:
        content = textwrap.dedent("""\
            asyncapi: 2.0.0
            info:
              title: 42
              version: 2
            channels:
              audit:
                description: 9
                publish:
                  operationId: 7
                  message:
                    summary: 3
                    contentType: 1
        """)
        spec = extract_asyncapi(content, "audit.yaml")

        assert spec.errors == []
        assert spec.name == "42"
        assert spec.version == "2"
        op = spec.operations[0]
        assert op.name == "7"
        assert op.description == "9"
        assert op.responses[0].description == "3"
        assert op.responses[0].content_type == "1"

    def test_message_ref_without_components(self) -> None:
        content = (
            '{"asyncapi": "2.0.0", "channels": {"t": {"publish": '
            '{"message": {"$ref": "#/components/messages/Ping"}}}}}'
        )
        assert extract_asyncapi(content, "events.json").operations[0].response_schemas == {}

    def test_message_ref_with_empty_components(self) -> None:
        content = (
            '{"asyncapi": "2.0.0", "components": {}, "channels": {"t": {"publish": '
            '{"message": {"$ref": "#/components/messages/Ping"}}}}}'
        )
        schemas = extract_asyncapi(content, "events.json").operations[0].response_schemas

        assert list(schemas) == ["Ping"]
        assert schemas["Ping"]["definitions"] == {}
