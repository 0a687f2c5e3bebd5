"""Tests for speccatalog.proto.parser and speccatalog.proto.definitions."""

from __future__ import annotations

import textwrap

import pytest

from speccatalog.exceptions import ProtoParseError
from speccatalog.proto import ProtoSchemaParser
from speccatalog.proto.definitions import type_node
from speccatalog.proto.parser import LeadingComments


@pytest.fixture
def greeter(greeter_proto_text: str):
    return ProtoSchemaParser().parse(greeter_proto_text)


# ---------------------------------------------------------------------------
# Document level
# ---------------------------------------------------------------------------


class TestDocument:
    """Test package, options and services."""

    def test_package_and_java_package(self, greeter) -> None:
        assert greeter.package_name == "helloworld"
        assert greeter.java_package == "io.example.helloworld"

    def test_services(self, greeter) -> None:
        assert [s.name for s in greeter.services] == ["Greeter"]
        assert greeter.services[0].qualified_name == "helloworld.Greeter"

    def test_methods(self, greeter) -> None:
        methods = greeter.services[0].methods
        assert [m.name for m in methods] == ["SayHello", "LotsOfReplies", "LotsOfGreetings", "Chat"]
        assert [m.operation_id for m in methods] == [
            "Greeter.SayHello",
            "Greeter.LotsOfReplies",
            "Greeter.LotsOfGreetings",
            "Greeter.Chat",
        ]
        assert [(m.request_stream, m.response_stream) for m in methods] == [
            (False, False),
            (False, True),
            (True, False),
            (True, True),
        ]

    def test_rpc_types_are_qualified(self, greeter) -> None:
        method = greeter.services[0].methods[0]
        assert method.request_type == "helloworld.HelloRequest"
        assert method.response_type == "helloworld.HelloReply"

    def test_comments_attach_to_the_next_rpc(self, greeter) -> None:
        assert [m.comment for m in greeter.services[0].methods] == [
            "Sends a greeting",
            "Streams greetings back",
            None,
            "Chat in both directions",
        ]

    def test_no_package(self) -> None:
        document = ProtoSchemaParser().parse(
            "service S { rpc Do (Req) returns (Res); }\nmessage Req {}\nmessage Res {}\n"
        )
        assert document.package_name == ""
        assert document.java_package is None
        assert document.services[0].qualified_name == "S"
        assert document.services[0].methods[0].request_type == "Req"


# ---------------------------------------------------------------------------
# Type definitions
# ---------------------------------------------------------------------------


class TestTypeDefinitions:
    """Test the generated JSON Schema definitions."""

    def test_message_definition(self, greeter) -> None:
        request = greeter.type_definitions["helloworld.HelloRequest"]

        assert request["type"] == "object"
        assert request["additionalProperties"] is False
        assert request["description"] == "The request message containing the user's name."
        assert request["properties"] == {
            "name": {"type": "string"},
            "repeatCount": {"$ref": "#/definitions/int32"},
            "mood": {"$ref": "#/definitions/helloworld.Mood"},
            "tags": {
                "type": "object",
                "additionalProperties": {"$ref": "#/definitions/helloworld.HelloRequest.Tag"},
            },
            "sent_at": {"$ref": "#/definitions/google.protobuf.Timestamp"},
        }

    def test_repeated_bytes_and_oneof(self, greeter) -> None:
        reply = greeter.type_definitions["helloworld.HelloReply"]

        assert reply["properties"] == {
            "messages": {"type": "array", "items": {"type": "string"}},
            "signature": {"$ref": "#/definitions/bytes"},
            "ok": {"type": "boolean"},
            "problem": {"$ref": "#/definitions/helloworld.Problem"},
        }
        assert "description" not in reply

    def test_nested_message(self, greeter) -> None:
        assert greeter.type_definitions["helloworld.HelloRequest.Tag"]["properties"] == {
            "value": {"type": "string"}
        }

    def test_enum_definition(self, greeter) -> None:
        assert greeter.type_definitions["helloworld.Mood"] == {
            "type": "string",
            "enum": ["MOOD_UNSPECIFIED", "HAPPY", "GRUMPY"],
        }

    def test_scalar_builtins(self, greeter) -> None:
        definitions = greeter.type_definitions
        assert definitions["int32"] == {"type": "number", "format": "int32"}
        assert definitions["uint64"] == {"type": "number", "format": "int64"}
        assert definitions["bytes"] == {"type": "string", "format": "bytes"}
        assert definitions["double"] == {"type": "number"}
        assert "string" not in definitions
        assert "bool" not in definitions

    def test_undeclared_type_becomes_object(self, greeter) -> None:
        assert greeter.type_definitions["google.protobuf.Timestamp"] == {"type": "object"}

    def test_required_label(self) -> None:
        document = ProtoSchemaParser().parse(
            'syntax = "proto2";\nmessage M { required string id = 1; optional int64 n = 2; }\n'
        )
        definition = document.type_definitions["M"]
        assert definition["required"] == ["id"]
        assert definition["properties"]["n"] == {"$ref": "#/definitions/int64"}

    def test_type_node(self) -> None:
        assert type_node("bool") == {"type": "boolean"}
        assert type_node("pkg.Msg") == {"$ref": "#/definitions/pkg.Msg"}


# ---------------------------------------------------------------------------
# Scoping
# ---------------------------------------------------------------------------


class TestScoping:
    """Test protobuf name resolution."""

    def test_innermost_scope_wins(self) -> None:
        content = textwrap.dedent("""\
            package a;
            message Item {}
            message Outer {
              message Item {}
              Item inner = 1;
              .a.Item outer = 2;
            }
        """)
        outer = ProtoSchemaParser().parse(content).type_definitions["a.Outer"]
        assert outer["properties"]["inner"] == {"$ref": "#/definitions/a.Outer.Item"}
        assert outer["properties"]["outer"] == {"$ref": "#/definitions/a.Item"}

    def test_sibling_type_in_package(self) -> None:
        content = "package a.b;\nmessage X { Y y = 1; }\nmessage Y {}\n"
        x = ProtoSchemaParser().parse(content).type_definitions["a.b.X"]
        assert x["properties"]["y"] == {"$ref": "#/definitions/a.b.Y"}


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


class TestLeadingComments:
    """Test which comments become descriptions."""

    def test_line_and_block_comments(self) -> None:
        comments = LeadingComments(
            "// first\n// second\nrpc A (M) returns (M);\n/*\n * block\n */\nmessage M {}\n"
        )
        assert comments.take("rpc", "A") == "first\nsecond"
        assert comments.take("message", "M") == "block"

    def test_blank_line_detaches_comment(self) -> None:
        content = "// Orphan\n\nservice S {\n  rpc Get (M) returns (M);\n}\nmessage M {}\n"
        document = ProtoSchemaParser().parse(content)
        assert document.services[0].methods[0].comment is None

    def test_trailing_comment_stays_with_its_line(self) -> None:
        content = textwrap.dedent("""\
            message M {}
            service S {
              rpc A (M) returns (M); // internal, do not use
              rpc B (M) returns (M);
            }
        """)
        methods = ProtoSchemaParser().parse(content).services[0].methods

        assert [(m.name, m.comment) for m in methods] == [("A", None), ("B", None)]

    def test_same_name_in_two_scopes(self) -> None:
        content = textwrap.dedent("""\
            // outer item
            message Item {}
            message Box {
              // inner item
              message Item {}
            }
        """)
        definitions = ProtoSchemaParser().parse(content).type_definitions

        assert definitions["Item"]["description"] == "outer item"
        assert definitions["Box.Item"]["description"] == "inner item"

    def test_unknown_declaration(self) -> None:
        assert LeadingComments("message M {}\n").take("rpc", "M") is None


# ---------------------------------------------------------------------------
# Skipped constructs and errors
# ---------------------------------------------------------------------------


class TestGrammar:
    """Test constructs the parser ignores and how failures surface."""

    def test_skipped_constructs(self) -> None:
        content = textwrap.dedent("""\
            syntax = "proto3";
            import public "other.proto";
            message M {
              reserved 2, 15 to 20;
              reserved "foo";
              option deprecated = true;
              string id = 1 [deprecated = true, json_name = "ident"];
            }
            enum E {
              option allow_alias = true;
              A = 0;
              B = 1 [deprecated = true];
            }
            service S {
              option deprecated = true;
              rpc Get (M) returns (M) { option (http) = { get: "/m" }; }
            }
        """)
        document = ProtoSchemaParser().parse(content)

        assert document.type_definitions["M"]["properties"] == {"ident": {"type": "string"}}
        assert document.type_definitions["E"]["enum"] == ["A", "B"]
        assert document.services[0].methods[0].name == "Get"

    def test_library_failure_is_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def explode(self, text: str):
            raise ValueError("token recognition error")

        monkeypatch.setattr("speccatalog.proto.parser.Parser.parse", explode)

        with pytest.raises(ProtoParseError, match="Invalid proto syntax: token recognition error"):
            ProtoSchemaParser().parse("message M {}")
