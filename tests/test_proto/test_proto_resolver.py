"""Tests for speccatalog.proto.resolver."""

from __future__ import annotations

import copy

from speccatalog.proto import ProtoOperationResolver, ProtoSchemaParser
from speccatalog.proto.types import ProtoDocument


def _document(content: str) -> ProtoDocument:
    return ProtoSchemaParser().parse(content)


class TestProtoOperationResolver:
    """Test schema construction for RPC methods."""

    def test_one_operation_per_method(self, greeter_proto_text: str) -> None:
        operations = ProtoOperationResolver(_document(greeter_proto_text)).resolve()

        assert [op.operation_id for op in operations] == [
            "Greeter.SayHello",
            "Greeter.LotsOfReplies",
            "Greeter.LotsOfGreetings",
            "Greeter.Chat",
        ]
        assert all(op.service_name == "Greeter" for op in operations)
        assert operations[0].rpc_name == "SayHello"
        assert operations[0].summary == "Sends a greeting"

    def test_path_falls_back_to_package(self) -> None:
        document = _document(
            "package shop;\nservice Cart { rpc Add (Item) returns (Item); }\nmessage Item {}\n"
        )
        operation = ProtoOperationResolver(document).resolve()[0]
        assert operation.path == "shop.Cart"

    def test_cyclic_messages_terminate(self, greeter_proto_text: str) -> None:
        operation = ProtoOperationResolver(_document(greeter_proto_text)).resolve()[0]

        definitions = operation.response_schema["definitions"]
        problem = definitions["helloworld.Problem"]
        assert problem["properties"]["last_reply"] == {"$ref": "#/definitions/helloworld.HelloReply"}
        assert "helloworld.HelloReply" in definitions

    def test_every_ref_resolves(self, greeter_proto_text: str) -> None:
        operations = ProtoOperationResolver(_document(greeter_proto_text)).resolve()

        def refs(node):
            if isinstance(node, dict):
                for key, value in node.items():
                    if key == "$ref":
                        yield value
                    else:
                        yield from refs(value)
            elif isinstance(node, list):
                for item in node:
                    yield from refs(item)

        for operation in operations:
            for schema in (operation.request_schema, operation.response_schema):
                for ref in refs(schema):
                    assert ref[len("#/definitions/"):] in schema["definitions"]

    def test_unreferenced_types_are_excluded(self, greeter_proto_text: str) -> None:
        operation = ProtoOperationResolver(_document(greeter_proto_text)).resolve()[0]

        assert "helloworld.HelloReply" not in operation.request_schema["definitions"]
        assert "int64" not in operation.request_schema["definitions"]

    def test_missing_root_type_becomes_object(self) -> None:
        document = _document("package p;\nservice S { rpc Go (Ghost) returns (Ghost); }\n")

        schema = ProtoOperationResolver(document).resolve()[0].request_schema

        assert schema["$ref"] == "#/definitions/p.Ghost"
        assert schema["definitions"] == {"p.Ghost": {"type": "object"}}

    def test_build_schema_id(self, greeter_proto_text: str) -> None:
        resolver = ProtoOperationResolver(_document(greeter_proto_text))

        schema = resolver.build_schema("HelloRequest", "requests", "Greeter.SayHello")

        assert schema["$id"] == "http://system.catalog/schemas/requests/helloworld.Greeter.SayHello"
        assert schema["$ref"] == "#/definitions/helloworld.HelloRequest"

    def test_document_is_not_mutated(self, greeter_proto_text: str) -> None:
        document = _document(greeter_proto_text)
        before = copy.deepcopy(document.type_definitions)

        operations = ProtoOperationResolver(document).resolve()
        operations[0].request_schema["definitions"]["helloworld.HelloRequest"]["type"] = "x"

        assert document.type_definitions == before
