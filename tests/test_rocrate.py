import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from isa_crate.model import (
    Factor,
    FactorValue,
    MaterialAttribute,
    MaterialAttributeValue,
    OntologyAnnotation,
    Person,
    Sample,
    Source,
    Value,
)
from isa_crate.rocrate import ROCrateDecoder, ROCrateEncoder, gen_id, term_source_from_accession


def build_sample() -> Sample:
    organism = MaterialAttribute(
        characteristic_type=OntologyAnnotation.from_string("organism", "OBI", "OBI:0100026"),
    )
    return Sample(
        name="liver 1",
        characteristics=[
            MaterialAttributeValue(
                category=organism,
                value=Value.of_ontology(OntologyAnnotation.from_string("Mus musculus", "NCBITaxon", "NCBITaxon:10090")),
            )
        ],
        factor_values=[
            FactorValue(
                category=Factor(name="time", factor_type=OntologyAnnotation.from_string("time", "PATO", "PATO:0000165")),
                value=Value.of_int(4),
                unit=OntologyAnnotation.from_string("hour", "UO", "UO:0000032"),
            )
        ],
        derives_from=[Source(name="mouse 1")],
    )


def test_gen_id():
    assert gen_id("Sample", "#given", "liver 1") == "#given"
    assert gen_id("Sample", None, "liver 1") == "#Sample_liver_1"
    assert gen_id("Sample", None, None) == "#EmptySample"


def test_term_source_from_accession():
    assert term_source_from_accession("http://purl.obolibrary.org/obo/UO_0000032") == "UO"
    assert term_source_from_accession("free text") is None
    assert term_source_from_accession(None) is None


def test_sample_encoding():
    encoded = ROCrateEncoder().encode_sample(build_sample())
    assert encoded["@id"] == "#Sample_liver_1"
    assert encoded["@type"] == ["Sample"]
    assert "@context" in encoded
    characteristic, factor_value = encoded["additionalProperties"]
    assert characteristic["additionalType"] == "CharacteristicValue"
    assert characteristic["@id"] == "#CharacteristicValue_organism_Mus_musculus"
    assert characteristic["category"] == "organism"
    assert characteristic["categoryCode"] == "OBI:0100026"
    assert characteristic["value"] == "Mus musculus"
    assert characteristic["valueCode"] == "NCBITaxon:10090"
    assert factor_value["additionalType"] == "FactorValue"
    assert factor_value["value"] == 4
    assert factor_value["unit"] == "hour"
    assert factor_value["unitCode"] == "UO:0000032"
    assert encoded["derivesFrom"][0]["@id"] == "#Source_mouse_1"


def test_empty_sample_gets_placeholder_id():
    assert ROCrateEncoder().encode_sample(Sample())["@id"] == "#EmptySample"


def test_decode_routes_by_additional_type():
    encoded = ROCrateEncoder().encode_sample(build_sample())
    decoded = ROCrateDecoder().decode_sample(json.loads(json.dumps(encoded)))
    assert decoded.name == "liver 1"
    assert len(decoded.characteristics) == 1
    assert len(decoded.factor_values) == 1
    characteristic = decoded.characteristics[0]
    assert characteristic.category.characteristic_type == OntologyAnnotation.from_string("organism", "OBI", "OBI:0100026")
    assert characteristic.value == Value.of_ontology(
        OntologyAnnotation.from_string("Mus musculus", "NCBITaxon", "NCBITaxon:10090")
    )
    factor_value = decoded.factor_values[0]
    assert factor_value.category.name == "time"
    assert factor_value.value == Value.of_int(4)
    assert factor_value.unit == OntologyAnnotation.from_string("hour", "UO", "UO:0000032")
    assert decoded.derives_from[0].name == "mouse 1"


def test_re_encoding_is_stable():
    encoder = ROCrateEncoder()
    first = encoder.sample_to_string(build_sample())
    decoded = ROCrateDecoder().sample_from_string(first)
    assert encoder.sample_to_string(decoded) == first


def test_decoder_ignores_unknown_keys():
    text = json.dumps({"@id": "#s", "@type": ["Sample"], "name": "s", "color": "red"})
    assert ROCrateDecoder().sample_from_string(text) == Sample(id="#s", name="s")


def test_person_encoding():
    person = Person(
        orcid="0000-0002-1825-0097",
        first_name="Josiah",
        last_name="Carberry",
        affiliation="Brown University",
        roles=[OntologyAnnotation.from_string("principal investigator", "NCIT", "NCIT:C19924")],
    )
    encoded = ROCrateEncoder().encode_person(person)
    assert encoded["@id"] == "https://orcid.org/0000-0002-1825-0097"
    assert encoded["affiliation"]["name"] == "Brown University"
    assert encoded["roles"][0]["@id"] == "NCIT:C19924"
    assert ROCrateDecoder().decode_person(encoded) == person


def test_build_crate_and_decode(tmp_path: Path):
    crate = ROCrateEncoder().build_crate([build_sample(), Sample(name="kidney 2")], name="Mouse samples")
    ids = [entity["@id"] for entity in crate["@graph"]]
    assert ids == ["ro-crate-metadata.json", "./", "#Sample_liver_1", "#Sample_kidney_2"]
    root = crate["@graph"][1]
    assert root["hasPart"] == [{"@id": "#Sample_liver_1"}, {"@id": "#Sample_kidney_2"}]

    crate_path = tmp_path / "ro-crate-metadata.json"
    crate_path.write_text(json.dumps(crate), encoding="utf-8")
    samples = ROCrateDecoder().decode_path(crate_path)
    assert [sample.name for sample in samples] == ["liver 1", "kidney 2"]


def test_build_crate_merges_samples_with_the_same_id():
    crate = ROCrateEncoder().build_crate([Sample(name="liver 1"), Sample(name="liver 1"), Sample(name="kidney 2")])
    ids = [entity["@id"] for entity in crate["@graph"]]
    assert ids == ["ro-crate-metadata.json", "./", "#Sample_liver_1", "#Sample_kidney_2"]
    assert crate["@graph"][1]["hasPart"] == [{"@id": "#Sample_liver_1"}, {"@id": "#Sample_kidney_2"}]
