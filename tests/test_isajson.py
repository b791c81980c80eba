import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from isa_crate.errors import DecodeError, TypeMismatch, UnexpectedField
from isa_crate.isajson import ISAJsonDecoder, ISAJsonEncoder
from isa_crate.model import (
    Comment,
    Factor,
    FactorValue,
    MaterialAttribute,
    MaterialAttributeValue,
    OntologyAnnotation,
    OntologySourceReference,
    Person,
    Publication,
    Sample,
    Source,
    Value,
)


def build_sample() -> Sample:
    organism = MaterialAttribute(
        id="#characteristic/organism",
        characteristic_type=OntologyAnnotation.from_string("organism", "OBI", "http://purl.obolibrary.org/obo/OBI_0100026"),
    )
    time = Factor(
        id="#factor/time",
        name="time",
        factor_type=OntologyAnnotation.from_string("time", "PATO", "PATO:0000165"),
    )
    source = Source(
        id="#source/mouse-1",
        name="mouse 1",
        characteristics=[
            MaterialAttributeValue(
                category=organism,
                value=Value.of_ontology(OntologyAnnotation.from_string("Mus musculus", "NCBITaxon", "NCBITaxon:10090")),
            )
        ],
    )
    return Sample(
        id="#sample/liver-1",
        name="liver 1",
        characteristics=[
            MaterialAttributeValue(
                category=MaterialAttribute(characteristic_type=OntologyAnnotation.from_string("weight")),
                value=Value.of_float(1.5),
                unit=OntologyAnnotation.from_string("gram", "UO", "UO:0000021"),
            )
        ],
        factor_values=[
            FactorValue(id="#factorvalue/1", category=time, value=Value.of_int(4), unit=OntologyAnnotation.from_string("hour")),
        ],
        derives_from=[source],
    )


def test_sample_round_trip():
    sample = build_sample()
    text = ISAJsonEncoder().sample_to_string(sample)
    assert ISAJsonDecoder().sample_from_string(text) == sample


def test_sample_encoding_shape():
    encoded = ISAJsonEncoder().encode_sample(build_sample())
    assert list(encoded) == ["@id", "name", "characteristics", "factorValues", "derivesFrom"]
    factor_value = encoded["factorValues"][0]
    assert factor_value["value"] == 4
    assert factor_value["category"]["factorName"] == "time"
    assert encoded["characteristics"][0]["value"] == 1.5


def test_sample_without_optionals():
    encoder = ISAJsonEncoder()
    assert encoder.sample_to_string(Sample(name="bare")) == '{"name":"bare"}'
    assert ISAJsonDecoder().sample_from_string('{"name":"bare"}') == Sample(name="bare")


def test_sample_accepts_jsonld_envelope_keys():
    text = json.dumps({"@id": "#s", "@type": "Sample", "@context": {}, "name": "s"})
    assert ISAJsonDecoder().sample_from_string(text) == Sample(id="#s", name="s")


def test_sample_rejects_unknown_key():
    with pytest.raises(UnexpectedField) as excinfo:
        ISAJsonDecoder().sample_from_string('{"name":"s","color":"red"}')
    assert excinfo.value.field == "color"


def test_nested_unknown_key_reports_path():
    text = json.dumps({"name": "s", "derivesFrom": [{"name": "src", "extra": 1}]})
    with pytest.raises(UnexpectedField) as excinfo:
        ISAJsonDecoder().sample_from_string(text)
    assert excinfo.value.path == "$.derivesFrom[0]"


def test_wrong_type_is_reported():
    with pytest.raises(TypeMismatch):
        ISAJsonDecoder().sample_from_string('{"name": 5}')


def test_invalid_json():
    with pytest.raises(DecodeError):
        ISAJsonDecoder().sample_from_string("{not json")


def test_person_orcid_is_a_comment():
    person = Person(
        orcid="0000-0002-1825-0097",
        first_name="Josiah",
        last_name="Carberry",
        roles=[OntologyAnnotation.from_string("principal investigator")],
        comments=[Comment("Worksheet", "1")],
    )
    encoded = ISAJsonEncoder().encode_person(person)
    assert "orcid" not in encoded
    assert encoded["comments"] == [{"name": "Worksheet", "value": "1"}, {"name": "ORCID", "value": "0000-0002-1825-0097"}]
    assert ISAJsonDecoder().decode_person(encoded) == person


def test_publication_and_source_reference_round_trip():
    encoder = ISAJsonEncoder()
    decoder = ISAJsonDecoder()
    publication = Publication(
        pubmed_id="12345",
        doi="10.1000/182",
        authors="Carberry J",
        title="On cheese",
        status=OntologyAnnotation.from_string("published"),
    )
    reference = OntologySourceReference(description="Units", file="http://purl.obolibrary.org/obo/uo.owl", name="UO")
    assert decoder.decode_publication(encoder.encode_publication(publication)) == publication
    assert decoder.decode_ontology_source_reference(encoder.encode_ontology_source_reference(reference)) == reference


def test_indented_output():
    text = ISAJsonEncoder(spaces=2).sample_to_string(Sample(name="bare"))
    assert text == '{\n  "name": "bare"\n}'
