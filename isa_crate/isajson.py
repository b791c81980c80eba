"""ISA-JSON encoder and decoder.

ISA-JSON objects carry no JSON-LD envelope and ``@id`` is only written when
the entity has one. Decoding is strict: every entity has an allow-list of
keys and anything else raises :class:`~isa_crate.errors.UnexpectedField`.
"""
from typing import List, Optional, Tuple

from isa_crate import tagged
from isa_crate.json_helpers import (
    check_allowed_fields,
    choose,
    expect_object,
    expect_string,
    from_json_string,
    identity,
    optional_field,
    optional_list,
    to_json_string,
    try_include,
    try_include_list,
)
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

ORCID_COMMENT_NAME = "ORCID"

ALLOWED_FIELDS = {
    "Comment": ("@id", "name", "value"),
    "OntologyAnnotation": ("@id", "annotationValue", "termSource", "termAccession", "comments"),
    "Factor": ("@id", "factorName", "factorType", "comments"),
    "FactorValue": ("@id", "category", "value", "unit"),
    "MaterialAttribute": ("@id", "characteristicType"),
    "MaterialAttributeValue": ("@id", "category", "value", "unit"),
    "Source": ("@id", "name", "characteristics", "@type", "@context"),
    "Sample": ("@id", "name", "characteristics", "factorValues", "derivesFrom", "@type", "@context"),
    "Person": (
        "@id",
        "firstName",
        "lastName",
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
}


def split_orcid(comments: List[Comment]) -> Tuple[Optional[str], List[Comment]]:
    """Pull the ORCID comment out of a person's comments."""
    orcid = None
    remaining = []
    for comment in comments:
        if orcid is None and comment.name == ORCID_COMMENT_NAME:
            orcid = comment.value
            continue
        remaining.append(comment)
    return orcid, remaining


class ISAJsonEncoder:
    def __init__(self, spaces: int = 0) -> None:
        self.spaces = spaces

    def to_string(self, tree) -> str:
        return to_json_string(tree, self.spaces)

    def encode_comment(self, comment: Comment) -> dict:
        return tagged.encode_comment(comment)

    def encode_ontology_annotation(self, oa: OntologyAnnotation) -> dict:
        return choose(
            [
                try_include("annotationValue", identity, oa.name),
                try_include("termSource", identity, oa.term_source_ref),
                try_include("termAccession", identity, oa.term_accession),
                try_include_list("comments", self.encode_comment, oa.comments),
            ]
        )

    def encode_value(self, value: Value):
        return tagged.encode_value(value, self.encode_ontology_annotation)

    def encode_factor(self, factor: Factor) -> dict:
        return choose(
            [
                try_include("@id", identity, factor.id),
                try_include("factorName", identity, factor.name),
                try_include("factorType", self.encode_ontology_annotation, factor.factor_type),
                try_include_list("comments", self.encode_comment, factor.comments),
            ]
        )

    def encode_factor_value(self, factor_value: FactorValue) -> dict:
        return choose(
            [
                try_include("@id", identity, factor_value.id),
                try_include("category", self.encode_factor, factor_value.category),
                try_include("value", self.encode_value, factor_value.value),
                try_include("unit", self.encode_ontology_annotation, factor_value.unit),
            ]
        )

    def encode_material_attribute(self, attribute: MaterialAttribute) -> dict:
        return choose(
            [
                try_include("@id", identity, attribute.id),
                try_include("characteristicType", self.encode_ontology_annotation, attribute.characteristic_type),
            ]
        )

    def encode_material_attribute_value(self, attribute_value: MaterialAttributeValue) -> dict:
        return choose(
            [
                try_include("@id", identity, attribute_value.id),
                try_include("category", self.encode_material_attribute, attribute_value.category),
                try_include("value", self.encode_value, attribute_value.value),
                try_include("unit", self.encode_ontology_annotation, attribute_value.unit),
            ]
        )

    def encode_source(self, source: Source) -> dict:
        return choose(
            [
                try_include("@id", identity, source.id),
                try_include("name", identity, source.name),
                try_include_list("characteristics", self.encode_material_attribute_value, source.characteristics),
            ]
        )

    def encode_sample(self, sample: Sample) -> dict:
        return choose(
            [
                try_include("@id", identity, sample.id),
                try_include("name", identity, sample.name),
                try_include_list("characteristics", self.encode_material_attribute_value, sample.characteristics),
                try_include_list("factorValues", self.encode_factor_value, sample.factor_values),
                try_include_list("derivesFrom", self.encode_source, sample.derives_from),
            ]
        )

    def encode_person(self, person: Person) -> dict:
        comments = list(person.comments)
        if person.orcid:
            comments.append(Comment(name=ORCID_COMMENT_NAME, value=person.orcid))
        return choose(
            [
                try_include("firstName", identity, person.first_name),
                try_include("lastName", identity, person.last_name),
                try_include("midInitials", identity, person.mid_initials),
                try_include("email", identity, person.email),
                try_include("phone", identity, person.phone),
                try_include("fax", identity, person.fax),
                try_include("address", identity, person.address),
                try_include("affiliation", identity, person.affiliation),
                try_include_list("roles", self.encode_ontology_annotation, person.roles),
                try_include_list("comments", self.encode_comment, comments),
            ]
        )

    def encode_publication(self, publication: Publication) -> dict:
        return choose(
            [
                try_include("pubMedID", identity, publication.pubmed_id),
                try_include("doi", identity, publication.doi),
                try_include("authorList", identity, publication.authors),
                try_include("title", identity, publication.title),
                try_include("status", self.encode_ontology_annotation, publication.status),
                try_include_list("comments", self.encode_comment, publication.comments),
            ]
        )

    def encode_ontology_source_reference(self, reference: OntologySourceReference) -> dict:
        return choose(
            [
                try_include("description", identity, reference.description),
                try_include("file", identity, reference.file),
                try_include("name", identity, reference.name),
                try_include("version", identity, reference.version),
                try_include_list("comments", self.encode_comment, reference.comments),
            ]
        )

    def sample_to_string(self, sample: Sample) -> str:
        return self.to_string(self.encode_sample(sample))


class ISAJsonDecoder:
    def _object(self, value, path: str, entity: str) -> dict:
        obj = expect_object(value, path)
        check_allowed_fields(obj, ALLOWED_FIELDS[entity], path)
        return obj

    def decode_comment(self, value, path: str = "$") -> Comment:
        obj = self._object(value, path, "Comment")
        return Comment(
            name=optional_field(obj, "name", expect_string, path),
            value=optional_field(obj, "value", expect_string, path),
        )

    def decode_ontology_annotation(self, value, path: str = "$") -> OntologyAnnotation:
        obj = self._object(value, path, "OntologyAnnotation")
        return OntologyAnnotation(
            name=optional_field(obj, "annotationValue", expect_string, path),
            term_source_ref=optional_field(obj, "termSource", expect_string, path),
            term_accession=optional_field(obj, "termAccession", expect_string, path),
            comments=optional_list(obj, "comments", self.decode_comment, path),
        )

    def decode_value(self, value, path: str = "$") -> Value:
        return tagged.decode_value(value, path, self.decode_ontology_annotation)

    def decode_factor(self, value, path: str = "$") -> Factor:
        obj = self._object(value, path, "Factor")
        return Factor(
            id=optional_field(obj, "@id", expect_string, path),
            name=optional_field(obj, "factorName", expect_string, path),
            factor_type=optional_field(obj, "factorType", self.decode_ontology_annotation, path),
            comments=optional_list(obj, "comments", self.decode_comment, path),
        )

    def decode_factor_value(self, value, path: str = "$") -> FactorValue:
        obj = self._object(value, path, "FactorValue")
        return FactorValue(
            id=optional_field(obj, "@id", expect_string, path),
            category=optional_field(obj, "category", self.decode_factor, path),
            value=optional_field(obj, "value", self.decode_value, path),
            unit=optional_field(obj, "unit", self.decode_ontology_annotation, path),
        )

    def decode_material_attribute(self, value, path: str = "$") -> MaterialAttribute:
        obj = self._object(value, path, "MaterialAttribute")
        return MaterialAttribute(
            id=optional_field(obj, "@id", expect_string, path),
            characteristic_type=optional_field(obj, "characteristicType", self.decode_ontology_annotation, path),
        )

    def decode_material_attribute_value(self, value, path: str = "$") -> MaterialAttributeValue:
        obj = self._object(value, path, "MaterialAttributeValue")
        return MaterialAttributeValue(
            id=optional_field(obj, "@id", expect_string, path),
            category=optional_field(obj, "category", self.decode_material_attribute, path),
            value=optional_field(obj, "value", self.decode_value, path),
            unit=optional_field(obj, "unit", self.decode_ontology_annotation, path),
        )

    def decode_source(self, value, path: str = "$") -> Source:
        obj = self._object(value, path, "Source")
        return Source(
            id=optional_field(obj, "@id", expect_string, path),
            name=optional_field(obj, "name", expect_string, path),
            characteristics=optional_list(obj, "characteristics", self.decode_material_attribute_value, path),
        )

    def decode_sample(self, value, path: str = "$") -> Sample:
        obj = self._object(value, path, "Sample")
        return Sample(
            id=optional_field(obj, "@id", expect_string, path),
            name=optional_field(obj, "name", expect_string, path),
            characteristics=optional_list(obj, "characteristics", self.decode_material_attribute_value, path),
            factor_values=optional_list(obj, "factorValues", self.decode_factor_value, path),
            derives_from=optional_list(obj, "derivesFrom", self.decode_source, path),
        )

    def decode_person(self, value, path: str = "$") -> Person:
        obj = self._object(value, path, "Person")
        orcid, comments = split_orcid(optional_list(obj, "comments", self.decode_comment, path))
        return Person(
            orcid=orcid,
            first_name=optional_field(obj, "firstName", expect_string, path),
            last_name=optional_field(obj, "lastName", expect_string, path),
            mid_initials=optional_field(obj, "midInitials", expect_string, path),
            email=optional_field(obj, "email", expect_string, path),
            phone=optional_field(obj, "phone", expect_string, path),
            fax=optional_field(obj, "fax", expect_string, path),
            address=optional_field(obj, "address", expect_string, path),
            affiliation=optional_field(obj, "affiliation", expect_string, path),
            roles=optional_list(obj, "roles", self.decode_ontology_annotation, path),
            comments=comments,
        )

    def decode_publication(self, value, path: str = "$") -> Publication:
        obj = self._object(value, path, "Publication")
        return Publication(
            pubmed_id=optional_field(obj, "pubMedID", expect_string, path),
            doi=optional_field(obj, "doi", expect_string, path),
            authors=optional_field(obj, "authorList", expect_string, path),
            title=optional_field(obj, "title", expect_string, path),
            status=optional_field(obj, "status", self.decode_ontology_annotation, path),
            comments=optional_list(obj, "comments", self.decode_comment, path),
        )

    def decode_ontology_source_reference(self, value, path: str = "$") -> OntologySourceReference:
        obj = self._object(value, path, "OntologySourceReference")
        return OntologySourceReference(
            description=optional_field(obj, "description", expect_string, path),
            file=optional_field(obj, "file", expect_string, path),
            name=optional_field(obj, "name", expect_string, path),
            version=optional_field(obj, "version", expect_string, path),
            comments=optional_list(obj, "comments", self.decode_comment, path),
        )

    def sample_from_string(self, text: str) -> Sample:
        return from_json_string(self.decode_sample, text)
