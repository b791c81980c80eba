"""JSON codec for the tagged cell and header unions and their payloads.

Cells and headers are written as ``{"<discriminator>": "<Variant>", "values": [...]}``.
``values`` is always present and is ``[]`` for variants without payload.
"""
from typing import Callable, List, Tuple

from isa_crate.errors import ArityMismatch, TypeMismatch, UnknownVariant
from isa_crate.json_helpers import (
    check_allowed_fields,
    child_path,
    choose,
    expect_list,
    expect_object,
    expect_string,
    identity,
    index_path,
    optional_field,
    optional_list,
    required_field,
    try_include,
    try_include_list,
)
from isa_crate.model import (
    CellType,
    Comment,
    CompositeCell,
    CompositeHeader,
    HeaderType,
    IOType,
    OntologyAnnotation,
    PayloadKind,
    Value,
    ValueKind,
)

CELL_TYPE = "celltype"
HEADER_TYPE = "headertype"
VALUES = "values"

COMMENT_FIELDS = ("@id", "name", "value")
ONTOLOGY_ANNOTATION_FIELDS = ("annotationValue", "termSource", "termAccession", "comments")


def encode_comment(comment: Comment) -> dict:
    return choose(
        [
            try_include("name", identity, comment.name),
            try_include("value", identity, comment.value),
        ]
    )


def decode_comment(value, path: str = "$", strict: bool = False) -> Comment:
    obj = expect_object(value, path)
    if strict:
        check_allowed_fields(obj, COMMENT_FIELDS, path)
    return Comment(
        name=optional_field(obj, "name", expect_string, path),
        value=optional_field(obj, "value", expect_string, path),
    )


def encode_oa(oa: OntologyAnnotation) -> dict:
    return choose(
        [
            try_include("annotationValue", identity, oa.name),
            try_include("termSource", identity, oa.term_source_ref),
            try_include("termAccession", identity, oa.term_accession),
            try_include_list("comments", encode_comment, oa.comments),
        ]
    )


def decode_oa(value, path: str = "$", strict: bool = False) -> OntologyAnnotation:
    obj = expect_object(value, path)
    if strict:
        check_allowed_fields(obj, ONTOLOGY_ANNOTATION_FIELDS, path)
    return OntologyAnnotation(
        name=optional_field(obj, "annotationValue", expect_string, path),
        term_source_ref=optional_field(obj, "termSource", expect_string, path),
        term_accession=optional_field(obj, "termAccession", expect_string, path),
        comments=optional_list(obj, "comments", decode_comment, path),
    )


def encode_io_type(io_type: IOType) -> str:
    return io_type.to_string()


def decode_io_type(value, path: str = "$") -> IOType:
    return IOType.from_string(expect_string(value, path))


def _decode_tagged(value, path: str, discriminator: str, strict: bool) -> Tuple[str, list]:
    obj = expect_object(value, path)
    if strict:
        check_allowed_fields(obj, (discriminator, VALUES), path)
    tag = required_field(obj, discriminator, expect_string, path)
    values = required_field(obj, VALUES, expect_list, path)
    return tag, values


def _check_arity(variant: str, expected: int, values: List, path: str) -> None:
    if len(values) != expected:
        raise ArityMismatch(variant, expected, len(values), child_path(path, VALUES))


def encode_cell(cell: CompositeCell) -> dict:
    if cell.cell_type is CellType.FREE_TEXT:
        values = [cell.text]
    elif cell.cell_type is CellType.TERM:
        values = [encode_oa(cell.annotation or OntologyAnnotation())]
    else:
        values = [cell.text, encode_oa(cell.annotation or OntologyAnnotation())]
    return {CELL_TYPE: cell.cell_type.value, VALUES: values}


def decode_cell(value, path: str = "$", strict: bool = False) -> CompositeCell:
    tag, values = _decode_tagged(value, path, CELL_TYPE, strict)
    try:
        cell_type = CellType(tag)
    except ValueError:
        raise UnknownVariant("CompositeCell", tag, child_path(path, CELL_TYPE)) from None
    _check_arity(tag, cell_type.arity, values, path)
    values_path = child_path(path, VALUES)
    if cell_type is CellType.FREE_TEXT:
        return CompositeCell.free_text(expect_string(values[0], index_path(values_path, 0)))
    if cell_type is CellType.TERM:
        return CompositeCell.term(decode_oa(values[0], index_path(values_path, 0), strict))
    return CompositeCell.unitized(
        expect_string(values[0], index_path(values_path, 0)),
        decode_oa(values[1], index_path(values_path, 1), strict),
    )


def encode_header(header: CompositeHeader) -> dict:
    payload = header.header_type.payload
    if payload is PayloadKind.TERM:
        values = [encode_oa(header.annotation or OntologyAnnotation())]
    elif header.is_io_column:
        values = [encode_io_type(header.io_type)]
    elif payload is PayloadKind.TEXT:
        values = [header.text or ""]
    else:
        values = []
    return {HEADER_TYPE: header.header_type.value, VALUES: values}


def decode_header(value, path: str = "$", strict: bool = False) -> CompositeHeader:
    tag, values = _decode_tagged(value, path, HEADER_TYPE, strict)
    try:
        header_type = HeaderType(tag)
    except ValueError:
        raise UnknownVariant("CompositeHeader", tag, child_path(path, HEADER_TYPE)) from None
    _check_arity(tag, header_type.arity, values, path)
    payload_path = index_path(child_path(path, VALUES), 0)
    payload = header_type.payload
    if payload is PayloadKind.TERM:
        return CompositeHeader(header_type, annotation=decode_oa(values[0], payload_path, strict))
    if payload is PayloadKind.IO_TYPE:
        return CompositeHeader(header_type, io_type=decode_io_type(values[0], payload_path))
    if payload is PayloadKind.TEXT:
        return CompositeHeader(header_type, text=expect_string(values[0], payload_path))
    return CompositeHeader(header_type)


def encode_value(value: Value, oa_encoder: Callable[[OntologyAnnotation], dict] = encode_oa):
    """Values are written untagged: an annotation object, a number or a string."""
    if value.kind is ValueKind.ONTOLOGY:
        return oa_encoder(value.annotation or OntologyAnnotation())
    if value.kind is ValueKind.NAME:
        return value.text or ""
    return value.number


def decode_value(value, path: str = "$", oa_decoder: Callable = decode_oa) -> Value:
    if isinstance(value, dict):
        return Value.of_ontology(oa_decoder(value, path))
    if isinstance(value, bool):
        raise TypeMismatch(None, "ontology annotation, number or string", path)
    if isinstance(value, int):
        return Value.of_int(value)
    if isinstance(value, float):
        return Value.of_float(value)
    if isinstance(value, str):
        return Value.of_name(value)
    raise TypeMismatch(None, "ontology annotation, number or string", path)
