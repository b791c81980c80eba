import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from isa_crate import tagged
from isa_crate.errors import ArityMismatch, MissingRequiredField, TypeMismatch, UnexpectedField, UnknownVariant
from isa_crate.json_helpers import from_json_string, to_json_string
from isa_crate.model import (
    CompositeCell,
    CompositeHeader,
    IOType,
    OntologyAnnotation,
    Value,
)

MY_TERM = OntologyAnnotation.from_string("My Name", "MY", "MY:1")


@pytest.mark.parametrize(
    "cell, expected",
    [
        (CompositeCell.free_text("Hello World"), '{"celltype":"FreeText","values":["Hello World"]}'),
        (
            CompositeCell.term(MY_TERM),
            '{"celltype":"Term","values":[{"annotationValue":"My Name","termSource":"MY","termAccession":"MY:1"}]}',
        ),
        (CompositeCell.empty_term(), '{"celltype":"Term","values":[{}]}'),
        (
            CompositeCell.unitized("42", MY_TERM),
            '{"celltype":"Unitized","values":["42",{"annotationValue":"My Name","termSource":"MY","termAccession":"MY:1"}]}',
        ),
        (CompositeCell.empty_unitized(), '{"celltype":"Unitized","values":["",{}]}'),
    ],
)
def test_cell_encoding(cell, expected):
    assert to_json_string(tagged.encode_cell(cell)) == expected
    assert from_json_string(tagged.decode_cell, expected) == cell


@pytest.mark.parametrize(
    "header, expected",
    [
        (
            CompositeHeader.parameter(OntologyAnnotation.from_string("My Name", "MY", "MY:2")),
            '{"headertype":"Parameter","values":[{"annotationValue":"My Name","termSource":"MY","termAccession":"MY:2"}]}',
        ),
        (CompositeHeader.input(IOType.source()), '{"headertype":"Input","values":["Source Name"]}'),
        (CompositeHeader.output(IOType.data()), '{"headertype":"Output","values":["Data"]}'),
        (CompositeHeader.protocol_ref(), '{"headertype":"ProtocolREF","values":[]}'),
        (CompositeHeader.comment("Notes"), '{"headertype":"Comment","values":["Notes"]}'),
        (CompositeHeader.free_text("Sample Name"), '{"headertype":"FreeText","values":["Sample Name"]}'),
    ],
)
def test_header_encoding(header, expected):
    assert to_json_string(tagged.encode_header(header)) == expected
    assert from_json_string(tagged.decode_header, expected) == header


@pytest.mark.parametrize(
    "header",
    [
        CompositeHeader.factor(OntologyAnnotation.from_string("time", "PATO", "PATO:0000165")),
        CompositeHeader.characteristic(OntologyAnnotation()),
        CompositeHeader.component(OntologyAnnotation.from_string("instrument model")),
        CompositeHeader.protocol_type(),
        CompositeHeader.protocol_description(),
        CompositeHeader.protocol_uri(),
        CompositeHeader.protocol_version(),
        CompositeHeader.performer(),
        CompositeHeader.date(),
        CompositeHeader.input(IOType.of_free_text("Extract")),
        CompositeHeader.output(IOType.material()),
    ],
)
def test_header_round_trip(header):
    assert tagged.decode_header(json.loads(json.dumps(tagged.encode_header(header)))) == header


def test_io_type_encoding():
    assert tagged.encode_io_type(IOType.sample()) == "Sample Name"
    assert tagged.encode_io_type(IOType.of_free_text("Hello World")) == "Hello World"
    assert tagged.decode_io_type("Sample Name") == IOType.sample()
    assert tagged.decode_io_type("Source") == IOType.source()
    assert tagged.decode_io_type("Hello World") == IOType.of_free_text("Hello World")


def test_oa_omits_absent_fields():
    oa = OntologyAnnotation.from_string("organism", "", "")
    assert tagged.encode_oa(oa) == {"annotationValue": "organism"}
    assert tagged.decode_oa({"annotationValue": "organism"}) == oa


def test_oa_null_field_is_absent():
    assert tagged.decode_oa({"annotationValue": None}) == OntologyAnnotation()


def test_unknown_variant():
    with pytest.raises(UnknownVariant) as excinfo:
        tagged.decode_cell({"celltype": "freetext", "values": ["x"]})
    assert excinfo.value.path == "$.celltype"


@pytest.mark.parametrize(
    "value",
    [
        {"celltype": "FreeText", "values": []},
        {"celltype": "Unitized", "values": ["42"]},
        {"celltype": "Term", "values": [{}, {}]},
    ],
)
def test_cell_arity_mismatch(value):
    with pytest.raises(ArityMismatch):
        tagged.decode_cell(value)


def test_header_arity_mismatch():
    with pytest.raises(ArityMismatch) as excinfo:
        tagged.decode_header({"headertype": "ProtocolREF", "values": ["x"]})
    assert excinfo.value.expected == 0
    assert excinfo.value.actual == 1


def test_missing_values_key():
    with pytest.raises(MissingRequiredField):
        tagged.decode_header({"headertype": "Date"})


def test_wrong_payload_type():
    with pytest.raises(TypeMismatch) as excinfo:
        tagged.decode_cell({"celltype": "FreeText", "values": [42]})
    assert excinfo.value.path == "$.values[0]"


def test_strict_rejects_extra_keys():
    value = {"celltype": "FreeText", "values": ["x"], "extra": 1}
    assert tagged.decode_cell(value) == CompositeCell.free_text("x")
    with pytest.raises(UnexpectedField):
        tagged.decode_cell(value, strict=True)


@pytest.mark.parametrize(
    "value, encoded",
    [
        (Value.of_int(42), 42),
        (Value.of_float(4.2), 4.2),
        (Value.of_name("mouse"), "mouse"),
        (Value.of_ontology(MY_TERM), {"annotationValue": "My Name", "termSource": "MY", "termAccession": "MY:1"}),
    ],
)
def test_value_is_untagged(value, encoded):
    assert tagged.encode_value(value) == encoded
    assert tagged.decode_value(encoded) == value


def test_value_rejects_bool():
    with pytest.raises(TypeMismatch):
        tagged.decode_value(True)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Sample", IOType.sample()),
        ("Sample Name", IOType.sample()),
        ("Source", IOType.source()),
        ("Data", IOType.data()),
        ("Material", IOType.material()),
    ],
)
def test_reserved_free_text_io_type_is_the_fixed_kind(text, expected):
    assert IOType.of_free_text(text) == expected
    for header in (CompositeHeader.input(IOType.of_free_text(text)), CompositeHeader.output(IOType.of_free_text(text))):
        assert tagged.decode_header(tagged.encode_header(header)) == header
        assert header.io_type == expected
