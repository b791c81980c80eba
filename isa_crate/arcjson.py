"""Compact JSON for annotation tables, assays, studies and investigations.

Tables are written as ``{"name", "header", "values"}`` where ``values`` is a
list of ``[[column, row], cell]`` pairs. Records use capitalised field names.
All decoders are strict.
"""
from functools import partial
from typing import Tuple

from isa_crate import tagged
from isa_crate.errors import TypeMismatch
from isa_crate.json_helpers import (
    check_allowed_fields,
    child_path,
    choose,
    expect_int,
    expect_list,
    expect_object,
    expect_string,
    from_json_string,
    identity,
    index_path,
    optional_field,
    optional_list,
    required_field,
    to_json_string,
    try_include,
    try_include_list,
)
from isa_crate.model import (
    ArcAssay,
    ArcInvestigation,
    ArcStudy,
    ArcTable,
    CompositeCell,
    Factor,
    OntologySourceReference,
    Person,
    Publication,
)

ALLOWED_FIELDS = {
    "ArcTable": ("name", "header", "values"),
    "Person": (
        "orcid",
        "lastName",
        "firstName",
        "midInitials",
        "email",
        "phone",
        "fax",
        "address",
        "affiliation",
        "roles",
        "comments",
    ),
    "Publication": ("pubMedID", "doi", "authorList", "title", "status", "comments"),
    "OntologySourceReference": ("description", "file", "name", "version", "comments"),
    "Factor": ("factorName", "factorType", "comments"),
    "ArcAssay": (
        "Identifier",
        "MeasurementType",
        "TechnologyType",
        "TechnologyPlatform",
        "Tables",
        "Performers",
        "Comments",
    ),
    "ArcStudy": (
        "Identifier",
        "Title",
        "Description",
        "SubmissionDate",
        "PublicReleaseDate",
        "Publications",
        "Contacts",
        "StudyDesignDescriptors",
        "Tables",
        "RegisteredAssayIdentifiers",
        "Factors",
        "Comments",
    ),
    "ArcInvestigation": (
        "Identifier",
        "Title",
        "Description",
        "SubmissionDate",
        "PublicReleaseDate",
        "OntologySourceReferences",
        "Publications",
        "Contacts",
        "Assays",
        "Studies",
        "RegisteredStudyIdentifiers",
        "Comments",
    ),
}

_decode_oa = partial(tagged.decode_oa, strict=True)
_decode_comment = partial(tagged.decode_comment, strict=True)


class ArcJsonEncoder:
    def __init__(self, spaces: int = 0) -> None:
        self.spaces = spaces

    def to_string(self, tree) -> str:
        return to_json_string(tree, self.spaces)

    def encode_table(self, table: ArcTable) -> dict:
        values = [[[column, row], tagged.encode_cell(cell)] for (column, row), cell in sorted(table.values.items())]
        return choose(
            [
                ("name", table.name),
                try_include_list("header", tagged.encode_header, table.headers),
                try_include_list("values", identity, values),
            ]
        )

    def encode_person(self, person: Person) -> dict:
        return choose(
            [
                try_include("firstName", identity, person.first_name),
                try_include("lastName", identity, person.last_name),
                try_include("midInitials", identity, person.mid_initials),
                try_include("orcid", identity, person.orcid),
                try_include("email", identity, person.email),
                try_include("phone", identity, person.phone),
                try_include("fax", identity, person.fax),
                try_include("address", identity, person.address),
                try_include("affiliation", identity, person.affiliation),
                try_include_list("roles", tagged.encode_oa, person.roles),
                try_include_list("comments", tagged.encode_comment, person.comments),
            ]
        )

    def encode_publication(self, publication: Publication) -> dict:
        return choose(
            [
                try_include("pubMedID", identity, publication.pubmed_id),
                try_include("doi", identity, publication.doi),
                try_include("authorList", identity, publication.authors),
                try_include("title", identity, publication.title),
                try_include("status", tagged.encode_oa, publication.status),
                try_include_list("comments", tagged.encode_comment, publication.comments),
            ]
        )

    def encode_ontology_source_reference(self, reference: OntologySourceReference) -> dict:
        return choose(
            [
                try_include("description", identity, reference.description),
                try_include("file", identity, reference.file),
                try_include("name", identity, reference.name),
                try_include("version", identity, reference.version),
                try_include_list("comments", tagged.encode_comment, reference.comments),
            ]
        )

    def encode_factor(self, factor: Factor) -> dict:
        return choose(
            [
                try_include("factorName", identity, factor.name),
                try_include("factorType", tagged.encode_oa, factor.factor_type),
                try_include_list("comments", tagged.encode_comment, factor.comments),
            ]
        )

    def encode_assay(self, assay: ArcAssay) -> dict:
        return choose(
            [
                ("Identifier", assay.identifier),
                try_include("MeasurementType", tagged.encode_oa, assay.measurement_type),
                try_include("TechnologyType", tagged.encode_oa, assay.technology_type),
                try_include("TechnologyPlatform", tagged.encode_oa, assay.technology_platform),
                try_include_list("Tables", self.encode_table, assay.tables),
                try_include_list("Performers", self.encode_person, assay.performers),
                try_include_list("Comments", tagged.encode_comment, assay.comments),
            ]
        )

    def encode_study(self, study: ArcStudy) -> dict:
        return choose(
            [
                ("Identifier", study.identifier),
                try_include("Title", identity, study.title),
                try_include("Description", identity, study.description),
                try_include("SubmissionDate", identity, study.submission_date),
                try_include("PublicReleaseDate", identity, study.public_release_date),
                try_include_list("Publications", self.encode_publication, study.publications),
                try_include_list("Contacts", self.encode_person, study.contacts),
                try_include_list("StudyDesignDescriptors", tagged.encode_oa, study.study_design_descriptors),
                try_include_list("Tables", self.encode_table, study.tables),
                try_include_list("RegisteredAssayIdentifiers", identity, study.registered_assay_identifiers),
                try_include_list("Factors", self.encode_factor, study.factors),
                try_include_list("Comments", tagged.encode_comment, study.comments),
            ]
        )

    def encode_investigation(self, investigation: ArcInvestigation) -> dict:
        return choose(
            [
                ("Identifier", investigation.identifier),
                try_include("Title", identity, investigation.title),
                try_include("Description", identity, investigation.description),
                try_include("SubmissionDate", identity, investigation.submission_date),
                try_include("PublicReleaseDate", identity, investigation.public_release_date),
                try_include_list(
                    "OntologySourceReferences",
                    self.encode_ontology_source_reference,
                    investigation.ontology_source_references,
                ),
                try_include_list("Publications", self.encode_publication, investigation.publications),
                try_include_list("Contacts", self.encode_person, investigation.contacts),
                try_include_list("Assays", self.encode_assay, investigation.assays),
                try_include_list("Studies", self.encode_study, investigation.studies),
                try_include_list(
                    "RegisteredStudyIdentifiers",
                    identity,
                    investigation.registered_study_identifiers,
                ),
                try_include_list("Comments", tagged.encode_comment, investigation.comments),
            ]
        )

    def table_to_string(self, table: ArcTable) -> str:
        return self.to_string(self.encode_table(table))

    def assay_to_string(self, assay: ArcAssay) -> str:
        return self.to_string(self.encode_assay(assay))

    def study_to_string(self, study: ArcStudy) -> str:
        return self.to_string(self.encode_study(study))

    def investigation_to_string(self, investigation: ArcInvestigation) -> str:
        return self.to_string(self.encode_investigation(investigation))


def _decode_coordinate(value, path: str) -> Tuple[int, int]:
    items = expect_list(value, path)
    if len(items) != 2:
        raise TypeMismatch(None, "[column, row] pair", path)
    return expect_int(items[0], index_path(path, 0)), expect_int(items[1], index_path(path, 1))


def _decode_table_value(value, path: str) -> Tuple[Tuple[int, int], CompositeCell]:
    items = expect_list(value, path)
    if len(items) != 2:
        raise TypeMismatch(None, "[[column, row], cell] pair", path)
    coordinate = _decode_coordinate(items[0], index_path(path, 0))
    return coordinate, tagged.decode_cell(items[1], index_path(path, 1), strict=True)


class ArcJsonDecoder:
    def _object(self, value, path: str, entity: str) -> dict:
        obj = expect_object(value, path)
        check_allowed_fields(obj, ALLOWED_FIELDS[entity], path)
        return obj

    def decode_table(self, value, path: str = "$") -> ArcTable:
        obj = self._object(value, path, "ArcTable")
        headers = optional_list(obj, "header", partial(tagged.decode_header, strict=True), path)
        values = optional_list(obj, "values", _decode_table_value, path)
        for index, ((column, row), _) in enumerate(values):
            if not 0 <= column < len(headers) or row < 0:
                coordinate_path = index_path(index_path(child_path(path, "values"), index), 0)
                raise TypeMismatch(None, f"coordinate within {len(headers)} header column(s)", coordinate_path)
        return ArcTable.create(
            name=required_field(obj, "name", expect_string, path),
            headers=headers,
            values=dict(values),
        )

    def decode_person(self, value, path: str = "$") -> Person:
        obj = self._object(value, path, "Person")
        return Person(
            orcid=optional_field(obj, "orcid", expect_string, path),
            last_name=optional_field(obj, "lastName", expect_string, path),
            first_name=optional_field(obj, "firstName", expect_string, path),
            mid_initials=optional_field(obj, "midInitials", expect_string, path),
            email=optional_field(obj, "email", expect_string, path),
            phone=optional_field(obj, "phone", expect_string, path),
            fax=optional_field(obj, "fax", expect_string, path),
            address=optional_field(obj, "address", expect_string, path),
            affiliation=optional_field(obj, "affiliation", expect_string, path),
            roles=optional_list(obj, "roles", _decode_oa, path),
            comments=optional_list(obj, "comments", _decode_comment, path),
        )

    def decode_publication(self, value, path: str = "$") -> Publication:
        obj = self._object(value, path, "Publication")
        return Publication(
            pubmed_id=optional_field(obj, "pubMedID", expect_string, path),
            doi=optional_field(obj, "doi", expect_string, path),
            authors=optional_field(obj, "authorList", expect_string, path),
            title=optional_field(obj, "title", expect_string, path),
            status=optional_field(obj, "status", _decode_oa, path),
            comments=optional_list(obj, "comments", _decode_comment, path),
        )

    def decode_ontology_source_reference(self, value, path: str = "$") -> OntologySourceReference:
        obj = self._object(value, path, "OntologySourceReference")
        return OntologySourceReference(
            description=optional_field(obj, "description", expect_string, path),
            file=optional_field(obj, "file", expect_string, path),
            name=optional_field(obj, "name", expect_string, path),
            version=optional_field(obj, "version", expect_string, path),
            comments=optional_list(obj, "comments", _decode_comment, path),
        )

    def decode_factor(self, value, path: str = "$") -> Factor:
        obj = self._object(value, path, "Factor")
        return Factor(
            name=optional_field(obj, "factorName", expect_string, path),
            factor_type=optional_field(obj, "factorType", _decode_oa, path),
            comments=optional_list(obj, "comments", _decode_comment, path),
        )

    def decode_assay(self, value, path: str = "$") -> ArcAssay:
        obj = self._object(value, path, "ArcAssay")
        return ArcAssay(
            identifier=required_field(obj, "Identifier", expect_string, path),
            measurement_type=optional_field(obj, "MeasurementType", _decode_oa, path),
            technology_type=optional_field(obj, "TechnologyType", _decode_oa, path),
            technology_platform=optional_field(obj, "TechnologyPlatform", _decode_oa, path),
            tables=optional_list(obj, "Tables", self.decode_table, path),
            performers=optional_list(obj, "Performers", self.decode_person, path),
            comments=optional_list(obj, "Comments", _decode_comment, path),
        )

    def decode_study(self, value, path: str = "$") -> ArcStudy:
        obj = self._object(value, path, "ArcStudy")
        return ArcStudy(
            identifier=required_field(obj, "Identifier", expect_string, path),
            title=optional_field(obj, "Title", expect_string, path),
            description=optional_field(obj, "Description", expect_string, path),
            submission_date=optional_field(obj, "SubmissionDate", expect_string, path),
            public_release_date=optional_field(obj, "PublicReleaseDate", expect_string, path),
            publications=optional_list(obj, "Publications", self.decode_publication, path),
            contacts=optional_list(obj, "Contacts", self.decode_person, path),
            study_design_descriptors=optional_list(obj, "StudyDesignDescriptors", _decode_oa, path),
            tables=optional_list(obj, "Tables", self.decode_table, path),
            registered_assay_identifiers=optional_list(obj, "RegisteredAssayIdentifiers", expect_string, path),
            factors=optional_list(obj, "Factors", self.decode_factor, path),
            comments=optional_list(obj, "Comments", _decode_comment, path),
        )

    def decode_investigation(self, value, path: str = "$") -> ArcInvestigation:
        obj = self._object(value, path, "ArcInvestigation")
        return ArcInvestigation(
            identifier=required_field(obj, "Identifier", expect_string, path),
            title=optional_field(obj, "Title", expect_string, path),
            description=optional_field(obj, "Description", expect_string, path),
            submission_date=optional_field(obj, "SubmissionDate", expect_string, path),
            public_release_date=optional_field(obj, "PublicReleaseDate", expect_string, path),
            ontology_source_references=optional_list(
                obj,
                "OntologySourceReferences",
                self.decode_ontology_source_reference,
                path,
            ),
            publications=optional_list(obj, "Publications", self.decode_publication, path),
            contacts=optional_list(obj, "Contacts", self.decode_person, path),
            assays=optional_list(obj, "Assays", self.decode_assay, path),
            studies=optional_list(obj, "Studies", self.decode_study, path),
            registered_study_identifiers=optional_list(obj, "RegisteredStudyIdentifiers", expect_string, path),
            comments=optional_list(obj, "Comments", _decode_comment, path),
        )

    def table_from_string(self, text: str) -> ArcTable:
        return from_json_string(self.decode_table, text)

    def assay_from_string(self, text: str) -> ArcAssay:
        return from_json_string(self.decode_assay, text)

    def study_from_string(self, text: str) -> ArcStudy:
        return from_json_string(self.decode_study, text)

    def investigation_from_string(self, text: str) -> ArcInvestigation:
        return from_json_string(self.decode_investigation, text)
