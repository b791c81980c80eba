import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from isa_crate.model import (
    ArcAssay,
    ArcStudy,
    CompositeHeader,
    IOType,
    IOTypeKind,
    OntologyAnnotation,
    Value,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("4", Value.of_int(4)),
        ("-12", Value.of_int(-12)),
        ("1.5", Value.of_float(1.5)),
        ("1e3", Value.of_float(1000.0)),
        ("liver", Value.of_name("liver")),
        ("", Value.of_name("")),
        ("1_000", Value.of_name("1_000")),
        ("nan", Value.of_name("nan")),
        ("inf", Value.of_name("inf")),
        ("-Infinity", Value.of_name("-Infinity")),
    ],
)
def test_value_from_options(text, expected):
    assert Value.from_options(text) == expected


def test_value_from_options_with_term():
    value = Value.from_options("Mus musculus", "NCBITaxon:10090", "NCBITaxon")
    assert value == Value.of_ontology(OntologyAnnotation.from_string("Mus musculus", "NCBITaxon", "NCBITaxon:10090"))
    assert value.to_options() == ("Mus musculus", "NCBITaxon:10090", "NCBITaxon")
    assert Value.from_options(None, term_source="NCBITaxon") == Value.of_ontology(OntologyAnnotation(term_source_ref="NCBITaxon"))


def test_value_from_options_without_anything():
    assert Value.from_options(None) is None


@pytest.mark.parametrize("value", [Value.of_int(4), Value.of_float(1.5), Value.of_name("liver")])
def test_value_options_round_trip(value):
    assert Value.from_options(*value.to_options()) == value


def test_free_text_io_type_keeps_text():
    assert IOType.of_free_text("Extract") == IOType(IOTypeKind.FREE_TEXT, "Extract")
    assert IOType.of_free_text("Extract").to_string() == "Extract"


def test_reserved_name_gives_fixed_io_type():
    assert IOType(IOTypeKind.FREE_TEXT, " Source Name ") == IOType.source()
    assert IOType.from_string("Sample") == IOType.sample()


@pytest.mark.parametrize(
    "header, is_io, arity",
    [
        (CompositeHeader.input(IOType.source()), True, 1),
        (CompositeHeader.output(IOType.data()), True, 1),
        (CompositeHeader.parameter(OntologyAnnotation.from_string("temperature")), False, 1),
        (CompositeHeader.comment("note"), False, 1),
        (CompositeHeader.free_text("Notes"), False, 1),
        (CompositeHeader.protocol_ref(), False, 0),
        (CompositeHeader.protocol_type(), False, 0),
    ],
)
def test_header_payload(header, is_io, arity):
    assert header.is_io_column is is_io
    assert header.payload_arity == arity


@pytest.mark.parametrize("record", [ArcAssay.init("My Assay"), ArcStudy.init("My Study")])
def test_init_table_picks_next_free_name(record):
    first = record.init_table()
    second = record.init_table()
    named = record.init_table("Growth")
    assert [first.name, second.name, named.name] == ["New Table 0", "New Table 1", "Growth"]
    assert record.tables == [first, second, named]
    assert record.init_table().name == "New Table 3"
