import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from isa_crate import investigation_sections as sections
from isa_crate.model import (
    ArcAssay,
    Comment,
    Factor,
    OntologyAnnotation,
    Person,
    is_missing_identifier,
)
from isa_crate.sparse_table import SparseTable


@pytest.mark.parametrize("section", [sections.assays, sections.design_descriptors, sections.factors, sections.contacts])
def test_empty_list_allocates_reserved_column(section):
    table = section.to_sparse_table([])
    assert table.column_count == 1
    assert table.comment_keys == []
    assert table.matrix == {}


@pytest.mark.parametrize("section", [sections.assays, sections.design_descriptors, sections.factors, sections.contacts])
def test_only_comments_gives_one_synthetic_entity(section):
    table = SparseTable(keys=list(section.labels), comment_keys=["Notes", "Owner"], column_count=0)
    items = section.from_sparse_table(table)
    assert len(items) == 1
    assert items[0].comments == [Comment(name="Notes"), Comment(name="Owner")]


def test_synthetic_assay_gets_missing_identifier():
    table = SparseTable(keys=list(sections.assays.labels), comment_keys=["Notes"])
    (assay,) = sections.assays.from_sparse_table(table)
    assert is_missing_identifier(assay.identifier)


def test_one_entity_per_column():
    table = SparseTable(keys=list(sections.factors.labels), column_count=3)
    table.set("Name", 0, "time")
    table.set("Name", 2, "dose")
    factors = sections.factors.from_sparse_table(table)
    assert [factor.name for factor in factors] == ["time", None, "dose"]


def test_assay_without_file_name_gets_missing_identifier():
    table = SparseTable(keys=list(sections.assays.labels), column_count=1)
    table.set("Technology Platform", 0, "Orbitrap")
    (assay,) = sections.assays.from_sparse_table(table)
    assert is_missing_identifier(assay.identifier)
    assert assay.technology_platform == OntologyAnnotation(name="Orbitrap")


def test_comment_keys_keep_first_seen_order():
    descriptors = [
        OntologyAnnotation(name="a", comments=[Comment("B", "1"), Comment("A", "2")]),
        OntologyAnnotation(name="b", comments=[Comment("C", "3"), Comment("A", "4")]),
        OntologyAnnotation(name="c"),
    ]
    table = sections.design_descriptors.to_sparse_table(descriptors)
    assert table.column_count == 4
    assert table.comment_keys == ["B", "A", "C"]
    assert table.try_get("A", 2) == "4"
    assert table.try_get("B", 2) is None
    assert table.try_get("Type", 3) == "c"


def test_assay_rows_use_obo_uris():
    assay = ArcAssay(
        identifier="a_proteomics.txt",
        measurement_type=OntologyAnnotation.from_string("protein expression profiling", "OBI", "OBI:0000615"),
        technology_type=OntologyAnnotation.from_string("mass spectrometry"),
    )
    rows = sections.assays.to_rows("Study Assay", [assay])
    assert rows[0] == ["Study Assay Measurement Type", "protein expression profiling"]
    assert rows[1] == ["Study Assay Measurement Type Term Accession Number", "http://purl.obolibrary.org/obo/OBI_0000615"]
    assert rows[2] == ["Study Assay Measurement Type Term Source REF", "OBI"]
    assert rows[7] == ["Study Assay File Name", "a_proteomics.txt"]


def test_assay_rows_round_trip():
    assays = [
        ArcAssay(
            identifier="a_1.txt",
            measurement_type=OntologyAnnotation.from_string(
                "protein expression profiling", "OBI", "http://purl.obolibrary.org/obo/OBI_0000615"
            ),
            technology_platform=OntologyAnnotation(name="Orbitrap"),
            comments=[Comment("Owner", "lab 1")],
        ),
        ArcAssay(identifier="a_2.txt", comments=[Comment("Owner", "lab 2")]),
    ]
    rows = sections.assays.to_rows("Study Assay", assays)
    rows.append(["STUDY PROTOCOLS"])
    next_key, _, _, decoded = sections.assays.from_rows("Study Assay", 0, rows)
    assert next_key == "STUDY PROTOCOLS"
    assert decoded == assays


def test_factor_rows_round_trip():
    factors = [
        Factor(name="time", factor_type=OntologyAnnotation.from_string("time", "PATO", "PATO:0000165")),
        Factor(name="dose"),
    ]
    rows = sections.factors.to_rows("Study Factor", factors)
    _, _, _, decoded = sections.factors.from_rows("Study Factor", 0, rows)
    assert decoded == factors


def test_contact_rows_round_trip():
    people = [
        Person(
            orcid="0000-0002-1825-0097",
            last_name="Carberry",
            first_name="Josiah",
            email="josiah@example.org",
            affiliation="Brown University",
            roles=[
                OntologyAnnotation.from_string("principal investigator", "NCIT", "NCIT:C19924"),
                OntologyAnnotation.from_string("author"),
            ],
        ),
        Person(last_name="Frey", first_name="Kevin"),
    ]
    rows = sections.contacts.to_rows("Investigation Person", people)
    assert ["Investigation Person Roles", "principal investigator;author", ""] in rows
    _, _, _, decoded = sections.contacts.from_rows("Investigation Person", 0, rows)
    assert decoded == people


def test_split_roles():
    roles = sections.split_roles("a;b", "X:1", "X")
    assert roles == [OntologyAnnotation.from_string("a", "X", "X:1"), OntologyAnnotation.from_string("b")]
