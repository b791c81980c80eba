"""RO-Crate (JSON-LD) encoder and decoder for samples and their property values.

Every entity is written with ``@id``, a list-valued ``@type`` and an inline
``@context``. Entities without an identifier get a fallback ``@id`` derived
from their name, so encoding is deterministic. Decoding is lenient: keys it
does not know are ignored.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from isa_crate import patterns
from isa_crate.errors import TypeMismatch
from isa_crate.json_helpers import (
    choose,
    expect_list,
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
    Person,
    Sample,
    Source,
    Value,
    ValueKind,
)

logger = logging.getLogger(__name__)

RO_CRATE_PROFILE = "https://w3id.org/ro/crate/1.2"
METADATA_DESCRIPTOR_ID = "ro-crate-metadata.json"
ROOT_DATASET_ID = "./"

FACTOR_VALUE_TYPE = "FactorValue"
CHARACTERISTIC_VALUE_TYPE = "CharacteristicValue"

CRATE_CONTEXT = {
    "@vocab": "http://schema.org/",
    "about": {"@id": "http://schema.org/about", "@type": "@id"},
    "conformsTo": {"@id": "http://purl.org/dc/terms/conformsTo", "@type": "@id"},
    "hasPart": {"@id": "http://schema.org/hasPart", "@type": "@id"},
}

SAMPLE_CONTEXT = {
    "sdo": "http://schema.org/",
    "bio": "https://bioschemas.org/",
    "Sample": "bio:Sample",
    "name": "sdo:name",
    "additionalProperties": "sdo:additionalProperty",
    "derivesFrom": "bio:derivesFrom",
}

SOURCE_CONTEXT = {
    "sdo": "http://schema.org/",
    "bio": "https://bioschemas.org/",
    "Source": "bio:Sample",
    "name": "sdo:name",
    "additionalProperties": "sdo:additionalProperty",
}

PROPERTY_VALUE_CONTEXT = {
    "sdo": "http://schema.org/",
    "PropertyValue": "sdo:PropertyValue",
    "additionalType": "sdo:additionalType",
    "category": "sdo:name",
    "categoryCode": "sdo:propertyID",
    "value": "sdo:value",
    "valueCode": "sdo:valueReference",
    "unit": "sdo:unitText",
    "unitCode": "sdo:unitCode",
}

DEFINED_TERM_CONTEXT = {
    "sdo": "http://schema.org/",
    "DefinedTerm": "sdo:DefinedTerm",
    "name": "sdo:name",
    "termCode": "sdo:termCode",
    "inDefinedTermSet": "sdo:inDefinedTermSet",
    "comments": "sdo:disambiguatingDescription",
}

COMMENT_CONTEXT = {
    "sdo": "http://schema.org/",
    "Comment": "sdo:Comment",
    "name": "sdo:name",
    "value": "sdo:text",
}

PERSON_CONTEXT = {
    "sdo": "http://schema.org/",
    "Person": "sdo:Person",
    "orcid": "sdo:identifier",
    "firstName": "sdo:givenName",
    "lastName": "sdo:familyName",
    "midInitials": "sdo:additionalName",
    "email": "sdo:email",
    "phone": "sdo:telephone",
    "fax": "sdo:faxNumber",
    "address": "sdo:address",
    "affiliation": "sdo:affiliation",
    "roles": "sdo:jobTitle",
    "comments": "sdo:disambiguatingDescription",
}

ORGANIZATION_CONTEXT = {
    "sdo": "http://schema.org/",
    "Organization": "sdo:Organization",
    "name": "sdo:name",
}


def gen_id(kind: str, entity_id: Optional[str], name: Optional[str]) -> str:
    """Return ``entity_id`` or a fallback ``#<Kind>_<name>`` identifier."""
    if entity_id:
        return entity_id
    if name:
        return f"#{kind}_" + name.replace(" ", "_")
    return f"#Empty{kind}"


def term_source_from_accession(accession: Optional[str]) -> Optional[str]:
    """Recover the term source ref (the id space) of a parseable accession."""
    if not accession:
        return None
    parsed = patterns.try_parse_term_annotation(accession)
    return parsed.idspace if parsed else None


def as_list(value) -> List:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class GraphBuilder:
    def __init__(self) -> None:
        self._entities: Dict[str, dict] = {}
        self._order: List[str] = []

    def add(self, entity: dict) -> None:
        entity_id = entity["@id"]
        if entity_id in self._entities:
            self._entities[entity_id].update(entity)
            return
        self._entities[entity_id] = entity
        self._order.append(entity_id)

    def to_list(self) -> List[dict]:
        return [self._entities[entity_id] for entity_id in self._order]


def _property_value_name(category: Optional[str], value: Optional[Value]) -> Optional[str]:
    parts = [part for part in (category, value.print_compact() if value else None) if part]
    return "_".join(parts) or None


class ROCrateEncoder:
    def __init__(self, spaces: int = 0) -> None:
        self.spaces = spaces

    def to_string(self, tree) -> str:
        return to_json_string(tree, self.spaces)

    def encode_comment(self, comment: Comment) -> dict:
        name = "_".join(part for part in (comment.name, comment.value) if part) or None
        return choose(
            [
                ("@id", gen_id("Comment", None, name)),
                ("@type", ["Comment"]),
                try_include("name", identity, comment.name),
                try_include("value", identity, comment.value),
                ("@context", COMMENT_CONTEXT),
            ]
        )

    def encode_defined_term(self, oa: OntologyAnnotation) -> dict:
        return choose(
            [
                ("@id", gen_id("DefinedTerm", oa.term_accession, oa.name)),
                ("@type", ["DefinedTerm"]),
                try_include("name", identity, oa.name),
                try_include("termCode", identity, oa.term_accession),
                try_include("inDefinedTermSet", identity, oa.term_source_ref),
                try_include_list("comments", self.encode_comment, oa.comments),
                ("@context", DEFINED_TERM_CONTEXT),
            ]
        )

    def _encode_property_value(
        self,
        additional_type: str,
        entity_id: Optional[str],
        category: Optional[OntologyAnnotation],
        value: Optional[Value],
        unit: Optional[OntologyAnnotation],
    ) -> dict:
        category = category or OntologyAnnotation()
        value_text, value_code = None, None
        if value is not None:
            if value.kind is ValueKind.ONTOLOGY:
                oa = value.annotation or OntologyAnnotation()
                value_text, value_code = oa.name, oa.term_accession
            elif value.kind is ValueKind.NAME:
                value_text = value.text
            else:
                value_text = value.number
        return choose(
            [
                ("@id", gen_id(additional_type, entity_id, _property_value_name(category.name, value))),
                ("@type", ["PropertyValue"]),
                ("additionalType", additional_type),
                try_include("category", identity, category.name),
                try_include("categoryCode", identity, category.term_accession),
                try_include("value", identity, value_text),
                try_include("valueCode", identity, value_code),
                try_include("unit", identity, unit.name if unit else None),
                try_include("unitCode", identity, unit.term_accession if unit else None),
                ("@context", PROPERTY_VALUE_CONTEXT),
            ]
        )

    def encode_material_attribute_value(self, attribute_value: MaterialAttributeValue) -> dict:
        category = attribute_value.category.characteristic_type if attribute_value.category else None
        return self._encode_property_value(
            CHARACTERISTIC_VALUE_TYPE,
            attribute_value.id,
            category,
            attribute_value.value,
            attribute_value.unit,
        )

    def encode_factor_value(self, factor_value: FactorValue) -> dict:
        category = None
        if factor_value.category is not None:
            factor = factor_value.category
            category = factor.factor_type or OntologyAnnotation(name=factor.name)
        return self._encode_property_value(
            FACTOR_VALUE_TYPE,
            factor_value.id,
            category,
            factor_value.value,
            factor_value.unit,
        )

    def encode_source(self, source: Source) -> dict:
        return choose(
            [
                ("@id", gen_id("Source", source.id, source.name)),
                ("@type", ["Source"]),
                try_include("name", identity, source.name),
                try_include_list(
                    "additionalProperties",
                    self.encode_material_attribute_value,
                    source.characteristics,
                ),
                ("@context", SOURCE_CONTEXT),
            ]
        )

    def encode_sample(self, sample: Sample) -> dict:
        additional_properties = [self.encode_material_attribute_value(c) for c in sample.characteristics]
        additional_properties.extend(self.encode_factor_value(f) for f in sample.factor_values)
        return choose(
            [
                ("@id", gen_id("Sample", sample.id, sample.name)),
                ("@type", ["Sample"]),
                try_include("name", identity, sample.name),
                try_include_list("additionalProperties", identity, additional_properties),
                try_include_list("derivesFrom", self.encode_source, sample.derives_from),
                ("@context", SAMPLE_CONTEXT),
            ]
        )

    def encode_person(self, person: Person) -> dict:
        full_name = " ".join(part for part in (person.first_name, person.mid_initials, person.last_name) if part)
        person_id = build_orcid_id(person.orcid) if person.orcid else gen_id("Person", None, full_name)
        affiliation = None
        if person.affiliation:
            affiliation = {
                "@type": "Organization",
                "@id": "#Organization_" + person.affiliation.replace(" ", "_"),
                "name": person.affiliation,
                "@context": ORGANIZATION_CONTEXT,
            }
        return choose(
            [
                ("@id", person_id),
                ("@type", ["Person"]),
                try_include("orcid", identity, person.orcid),
                try_include("firstName", identity, person.first_name),
                try_include("lastName", identity, person.last_name),
                try_include("midInitials", identity, person.mid_initials),
                try_include("email", identity, person.email),
                try_include("phone", identity, person.phone),
                try_include("fax", identity, person.fax),
                try_include("address", identity, person.address),
                try_include("affiliation", identity, affiliation),
                try_include_list("roles", self.encode_defined_term, person.roles),
                try_include_list("comments", self.encode_comment, person.comments),
                ("@context", PERSON_CONTEXT),
            ]
        )

    def sample_to_string(self, sample: Sample) -> str:
        return self.to_string(self.encode_sample(sample))

    def build_crate(self, samples: Iterable[Sample], name: Optional[str] = None) -> dict:
        """Wrap encoded samples into a crate ``@graph`` with descriptor and root dataset.

        Samples sharing an ``@id`` (samples without an id but with the same name)
        are merged into one graph entity and listed once in ``hasPart``.
        """
        graph = GraphBuilder()
        graph.add(
            {
                "@id": METADATA_DESCRIPTOR_ID,
                "@type": "CreativeWork",
                "conformsTo": {"@id": RO_CRATE_PROFILE},
                "about": {"@id": ROOT_DATASET_ID},
            }
        )
        encoded = [self.encode_sample(sample) for sample in samples]
        root = {"@id": ROOT_DATASET_ID, "@type": "Dataset"}
        if name:
            root["name"] = name
        if encoded:
            part_ids = list(dict.fromkeys(entity["@id"] for entity in encoded))
            root["hasPart"] = [{"@id": part_id} for part_id in part_ids]
        graph.add(root)
        for entity in encoded:
            graph.add(entity)
        return {"@context": CRATE_CONTEXT, "@graph": graph.to_list()}


def build_orcid_id(orcid: str) -> str:
    orcid = orcid.strip()
    if "orcid.org" in orcid:
        return orcid
    return f"https://orcid.org/{orcid}"


def _decode_scalar(value, path: str):
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise TypeMismatch("value", "string or number", path)
    return value


def _decode_type(value, path: str) -> List[str]:
    return [expect_string(item, path) for item in as_list(value)]


class ROCrateDecoder:
    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def decode_comment(self, value, path: str = "$") -> Comment:
        obj = expect_object(value, path)
        return Comment(
            name=optional_field(obj, "name", expect_string, path),
            value=optional_field(obj, "value", expect_string, path),
        )

    def decode_defined_term(self, value, path: str = "$") -> OntologyAnnotation:
        obj = expect_object(value, path)
        return OntologyAnnotation(
            name=optional_field(obj, "name", expect_string, path),
            term_source_ref=optional_field(obj, "inDefinedTermSet", expect_string, path),
            term_accession=optional_field(obj, "termCode", expect_string, path),
            comments=optional_list(obj, "comments", self.decode_comment, path),
        )

    def _decode_term(self, obj: dict, name_key: str, code_key: str, path: str) -> Optional[OntologyAnnotation]:
        name = optional_field(obj, name_key, expect_string, path)
        code = optional_field(obj, code_key, expect_string, path)
        if name is None and code is None:
            return None
        return OntologyAnnotation(
            name=name,
            term_source_ref=term_source_from_accession(code),
            term_accession=code,
        )

    def _decode_value(self, obj: dict, path: str) -> Optional[Value]:
        raw = optional_field(obj, "value", _decode_scalar, path)
        code = optional_field(obj, "valueCode", expect_string, path)
        if code is not None:
            text = raw if raw is None or isinstance(raw, str) else str(raw)
            return Value.of_ontology(
                OntologyAnnotation(name=text, term_source_ref=term_source_from_accession(code), term_accession=code)
            )
        if raw is None:
            return None
        if isinstance(raw, int):
            return Value.of_int(raw)
        if isinstance(raw, float):
            return Value.of_float(raw)
        return Value.of_name(raw)

    def _decode_property_value(self, value, path: str) -> Tuple[dict, Optional[OntologyAnnotation], Optional[Value], Optional[OntologyAnnotation]]:
        obj = expect_object(value, path)
        category = self._decode_term(obj, "category", "categoryCode", path)
        return obj, category, self._decode_value(obj, path), self._decode_term(obj, "unit", "unitCode", path)

    def decode_material_attribute_value(self, value, path: str = "$") -> MaterialAttributeValue:
        obj, category, decoded_value, unit = self._decode_property_value(value, path)
        return MaterialAttributeValue(
            id=optional_field(obj, "@id", expect_string, path),
            category=MaterialAttribute(characteristic_type=category) if category else None,
            value=decoded_value,
            unit=unit,
        )

    def decode_factor_value(self, value, path: str = "$") -> FactorValue:
        obj, category, decoded_value, unit = self._decode_property_value(value, path)
        factor = None
        if category is not None:
            factor = Factor(name=category.name, factor_type=category)
        return FactorValue(
            id=optional_field(obj, "@id", expect_string, path),
            category=factor,
            value=decoded_value,
            unit=unit,
        )

    def decode_additional_property(self, value, path: str = "$"):
        """Route a ``PropertyValue`` by its ``additionalType``."""
        obj = expect_object(value, path)
        additional_type = obj.get("additionalType")
        if additional_type == FACTOR_VALUE_TYPE:
            return self.decode_factor_value(obj, path)
        return self.decode_material_attribute_value(obj, path)

    def decode_source(self, value, path: str = "$") -> Source:
        obj = expect_object(value, path)
        return Source(
            id=optional_field(obj, "@id", expect_string, path),
            name=optional_field(obj, "name", expect_string, path),
            characteristics=optional_list(obj, "additionalProperties", self.decode_material_attribute_value, path),
        )

    def decode_sample(self, value, path: str = "$") -> Sample:
        obj = expect_object(value, path)
        properties = optional_list(obj, "additionalProperties", self.decode_additional_property, path)
        return Sample(
            id=optional_field(obj, "@id", expect_string, path),
            name=optional_field(obj, "name", expect_string, path),
            characteristics=[p for p in properties if isinstance(p, MaterialAttributeValue)],
            factor_values=[p for p in properties if isinstance(p, FactorValue)],
            derives_from=optional_list(obj, "derivesFrom", self.decode_source, path),
        )

    def decode_person(self, value, path: str = "$") -> Person:
        obj = expect_object(value, path)
        affiliation = None
        if obj.get("affiliation") is not None:
            organization = expect_object(obj["affiliation"], f"{path}.affiliation")
            affiliation = optional_field(organization, "name", expect_string, f"{path}.affiliation")
        return Person(
            orcid=optional_field(obj, "orcid", expect_string, path),
            first_name=optional_field(obj, "firstName", expect_string, path),
            last_name=optional_field(obj, "lastName", expect_string, path),
            mid_initials=optional_field(obj, "midInitials", expect_string, path),
            email=optional_field(obj, "email", expect_string, path),
            phone=optional_field(obj, "phone", expect_string, path),
            fax=optional_field(obj, "fax", expect_string, path),
            address=optional_field(obj, "address", expect_string, path),
            affiliation=affiliation,
            roles=optional_list(obj, "roles", self.decode_defined_term, path),
            comments=optional_list(obj, "comments", self.decode_comment, path),
        )

    def sample_from_string(self, text: str) -> Sample:
        return from_json_string(self.decode_sample, text)

    def decode_crate(self, crate: dict) -> List[Sample]:
        """Return every ``Sample`` entity of a crate ``@graph``."""
        graph = expect_list(expect_object(crate).get("@graph", []), "$.@graph")
        samples = []
        for index, entity in enumerate(graph):
            if not isinstance(entity, dict):
                continue
            entity_path = f"$.@graph[{index}]"
            if "Sample" in _decode_type(entity.get("@type"), f"{entity_path}.@type"):
                samples.append(self.decode_sample(entity, entity_path))
        logger.debug("Decoded %d samples from a graph of %d entities", len(samples), len(graph))
        return samples

    def decode_path(self, path: Path) -> List[Sample]:
        crate = json.loads(Path(path).read_text(encoding=self.encoding))
        return self.decode_crate(crate)
