"""Tests for speccatalog.parser.soap."""

from __future__ import annotations

import textwrap

from speccatalog.models import ParserConfig, SpecificationType
from speccatalog.parser.soap import extract_soap


class TestCalculatorWsdl:
    """Test the calculator fixture."""

    def test_operations(self, calculator_wsdl_text: str) -> None:
        spec = extract_soap(calculator_wsdl_text, "calculator.wsdl")

        assert [op.id for op in spec.operations] == ["soap_Add", "soap_Subtract"]
        add = spec.operations[0]
        assert add.name == "Add"
        assert add.method == "soap"
        assert add.description == "SOAP operation in CalculatorPortType"
        assert add.tags == ["soap", "calculatorporttype"]

    def test_specification_fields(self, calculator_wsdl_text: str) -> None:
        spec = extract_soap(calculator_wsdl_text, "calculator.wsdl")

        assert spec.type == SpecificationType.SOAP
        assert spec.name == "calculator"
        assert spec.errors == []

    def test_metadata(self, calculator_wsdl_text: str) -> None:
        metadata = extract_soap(calculator_wsdl_text, "calculator.wsdl").metadata

        assert metadata["content"] == calculator_wsdl_text[:1000]
        assert metadata["target_namespace"] == "http://example.com/calculator"
        assert metadata["definitions_name"] == "Calculator"
        assert metadata["service_name"] == "CalculatorService"
        assert metadata["port_name"] == "CalculatorPort"
        assert metadata["address"] == "http://example.com/calculator"

    def test_preview_length_follows_config(self, calculator_wsdl_text: str) -> None:
        spec = extract_soap(calculator_wsdl_text, "calculator.wsdl", ParserConfig(preview_chars=5))
        assert spec.metadata["content"] == calculator_wsdl_text[:5]


class TestSoapEdgeCases:
    """Test documents outside the happy path."""

    def test_no_port_type_yields_empty_catalog(self, fixture_text) -> None:
        spec = extract_soap(fixture_text("no_port_type.wsdl"), "no_port_type.wsdl")

        assert spec.operations == []
        assert spec.errors == []
        assert spec.type == SpecificationType.SOAP
        assert spec.name == "no_port_type"
        assert spec.metadata["definitions_name"] == "Empty"
        assert "service_name" not in spec.metadata
        assert "address" not in spec.metadata

    def test_unprefixed_tags(self) -> None:
        content = textwrap.dedent("""\
            <definitions name="Svc">
              <portType name="Inventory">
                <operation name="Lookup"/>
              </portType>
            </definitions>
        """)
        spec = extract_soap(content, "inventory.wsdl")
        assert [op.id for op in spec.operations] == ["soap_Lookup"]
        assert spec.operations[0].tags == ["soap", "inventory"]

    def test_only_first_port_type_is_read(self) -> None:
        content = textwrap.dedent("""\
            <wsdl:portType name="First">
              <wsdl:operation name="One"/>
            </wsdl:portType>
            <wsdl:portType name="Second">
              <wsdl:operation name="Two"/>
            </wsdl:portType>
        """)
        spec = extract_soap(content, "two.wsdl")
        assert [op.name for op in spec.operations] == ["One"]

    def test_non_xml_text_is_an_empty_catalog(self) -> None:
        spec = extract_soap("not xml at all", "junk.wsdl")
        assert spec.operations == []
        assert spec.metadata == {"content": "not xml at all"}

    def test_single_quoted_attributes(self) -> None:
        content = textwrap.dedent("""\
            <wsdl:definitions name='Calc' targetNamespace='urn:calc'>
              <wsdl:portType name='Calc'>
                <wsdl:operation name='Add'/>
                <wsdl:operation name="Subtract"/>
              </wsdl:portType>
              <wsdl:service name='CalcService'>
                <wsdl:port name='CalcPort'>
                  <soap:address location='http://example.com/calc'/>
                </wsdl:port>
              </wsdl:service>
            </wsdl:definitions>
        """)
        spec = extract_soap(content, "calc.wsdl")
        assert [op.id for op in spec.operations] == ["soap_Add", "soap_Subtract"]
        assert spec.operations[0].description == "SOAP operation in Calc"
        assert spec.metadata["target_namespace"] == "urn:calc"
        assert spec.metadata["definitions_name"] == "Calc"
        assert spec.metadata["service_name"] == "CalcService"
        assert spec.metadata["port_name"] == "CalcPort"
        assert spec.metadata["address"] == "http://example.com/calc"

    def test_apostrophe_inside_double_quotes(self) -> None:
        content = '<portType name="Bob\'s"><operation name="Ping"/></portType>'
        spec = extract_soap(content, "bob.wsdl")
        assert spec.operations[0].description == "SOAP operation in Bob's"
