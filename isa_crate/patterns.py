"""Regex patterns and matchers for ISA-Tab column headers and term accessions.

Every matcher works on the trimmed input and either matches the whole string
or returns ``None``. Nothing in here raises on a non-match; callers fall back
to free text when a header cannot be classified.
"""
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

# Deprecated "#2" style column ids, e.g. "Parameter [biological replicate#2]".
ID_PATTERN = r"#\d+"

SQUARED_BRACKETS_TERM_NAME_PATTERN = r"\[.*\]"

# 0.00 "degree Celsius" --> degree Celsius
EXCEL_NUMBER_FORMAT = r"\"(?P<numberFormat>(.*?))\""

UNIT_PATTERN = r"Unit"

REFERENCE_COLUMN_PATTERN = r"(Term Source REF|Term Accession Number)\s\((?P<id>.*)\)"

TERM_SOURCE_REF_COLUMN_PATTERN = r"Term Source REF\s\((?P<id>.*)\)"

TERM_ACCESSION_NUMBER_COLUMN_PATTERN = r"Term Accession Number\s\((?P<id>.*)\)"

TERM_ANNOTATION_SHORT_PATTERN = r"(?P<idspace>\w+?):(?P<localid>\w+)"

# https://obofoundry.org/id-policy.html#mapping-of-owl-ids-to-obo-format-ids
TERM_ANNOTATION_URI_PATTERN = r"http://purl.obolibrary.org/obo/(?P<idspace>\w+?)_(?P<localid>\w+)"

TERM_ANNOTATION_URI_PATTERN_LESS_RESTRICTIVE = r".*\/(?P<idspace>\w+?)[:_](?P<localid>\w+)"

TERM_ANNOTATION_URI_PATTERN_MS_RO_PO = r".*252F(?P<idspace>\w+?)_(?P<localid>\w+)"

IO_TYPE_PATTERN = r"(Input|Output)\s\[(?P<iotype>.+)\]"

INPUT_PATTERN = r"Input\s\[(?P<iotype>.+)\]"

OUTPUT_PATTERN = r"Output\s\[(?P<iotype>.+)\]"

COMMENT_PATTERN = r"Comment\s\[(?P<commentKey>.+)\]"

# The term name is greedy up to the last "]": "Parameter [a] [b]" -> "a] [b".
TERM_COLUMN_PATTERN = r"(?P<termcolumntype>.+?)\s\[(?P<termname>.+)\]"

AUTO_GENERATED_TABLE_NAME = r"^New\sTable\s(?P<number>\d+)$"

OBO_PURL = "http://purl.obolibrary.org/obo/"

PARAMETER_COLUMN_TYPES = ("Parameter", "Parameter Value")
FACTOR_COLUMN_TYPES = ("Factor", "Factor Value")
CHARACTERISTIC_COLUMN_TYPES = ("Characteristic", "Characteristics", "Characteristics Value")
COMPONENT_COLUMN_TYPES = ("Component", "Component Value")

_compiled = {}


def _regex(pattern: str) -> "re.Pattern":
    compiled = _compiled.get(pattern)
    if compiled is None:
        compiled = re.compile(pattern)
        _compiled[pattern] = compiled
    return compiled


def match(pattern: str, value: str) -> Optional["re.Match"]:
    """Match ``pattern`` against the whole trimmed ``value``."""
    return _regex(pattern).fullmatch(value.strip())


@dataclass(frozen=True)
class TermAnnotation:
    idspace: str
    local_id: str

    @property
    def short(self) -> str:
        return f"{self.idspace}:{self.local_id}"


@dataclass(frozen=True)
class ReferenceColumn:
    annotation: str


@dataclass(frozen=True)
class TermColumn:
    column_type: str
    term_name: str


@dataclass(frozen=True)
class UnitColumn:
    pass


@dataclass(frozen=True)
class ParameterColumn:
    term: str


@dataclass(frozen=True)
class FactorColumn:
    term: str


@dataclass(frozen=True)
class CharacteristicColumn:
    term: str


@dataclass(frozen=True)
class ComponentColumn:
    term: str


@dataclass(frozen=True)
class TSRColumn:
    idspace: str
    local_id: str
    full_accession: str


@dataclass(frozen=True)
class TANColumn:
    idspace: str
    local_id: str
    full_accession: str


@dataclass(frozen=True)
class InputColumn:
    io_type: str


@dataclass(frozen=True)
class OutputColumn:
    io_type: str


@dataclass(frozen=True)
class CommentColumn:
    key: str


@dataclass(frozen=True)
class AutoGeneratedTableName:
    number: int


Classification = Union[
    ReferenceColumn,
    TermColumn,
    UnitColumn,
    ParameterColumn,
    FactorColumn,
    CharacteristicColumn,
    ComponentColumn,
    TSRColumn,
    TANColumn,
    InputColumn,
    OutputColumn,
    CommentColumn,
    AutoGeneratedTableName,
]


# Term annotations


def try_parse_term_annotation_short(text: str) -> Optional[TermAnnotation]:
    m = match(TERM_ANNOTATION_SHORT_PATTERN, text)
    if m is None:
        return None
    return TermAnnotation(idspace=m.group("idspace"), local_id=m.group("localid"))


def try_parse_term_annotation(text: str) -> Optional[TermAnnotation]:
    """Extract ``IDSPACE`` and ``LOCALID`` from a short accession or an ontology URI.

    "MS:1003022" and "http://purl.obolibrary.org/obo/MS_1003022" both give
    ``TermAnnotation("MS", "1003022")``. The short form is tried first, the
    URI forms would otherwise swallow short accessions containing a slash.
    """
    for pattern in (
        TERM_ANNOTATION_SHORT_PATTERN,
        TERM_ANNOTATION_URI_PATTERN,
        TERM_ANNOTATION_URI_PATTERN_LESS_RESTRICTIVE,
        TERM_ANNOTATION_URI_PATTERN_MS_RO_PO,
    ):
        m = match(pattern, text)
        if m is not None:
            return TermAnnotation(idspace=m.group("idspace"), local_id=m.group("localid"))
    return None


def try_get_term_annotation_short_string(text: str) -> Optional[str]:
    parsed = try_parse_term_annotation(text)
    if parsed is None:
        return None
    return parsed.short


def get_term_annotation_short_string(text: str) -> str:
    """Like :func:`try_get_term_annotation_short_string` but raises on unparseable input."""
    short = try_get_term_annotation_short_string(text)
    if short is None:
        raise ValueError(f"Unable to parse '{text}' to term accession.")
    return short


def create_obo_uri(idspace: str, local_id: str) -> str:
    return f"{OBO_PURL}{idspace}_{local_id}"


# Column headers


def try_parse_reference_column_header(header: str) -> Optional[ReferenceColumn]:
    m = match(REFERENCE_COLUMN_PATTERN, header)
    if m is None:
        return None
    return ReferenceColumn(annotation=m.group("id"))


def try_parse_term_column(header: str) -> Optional[TermColumn]:
    m = match(TERM_COLUMN_PATTERN, header)
    if m is None:
        return None
    return TermColumn(column_type=m.group("termcolumntype"), term_name=m.group("termname"))


def try_parse_unit_column_header(header: str) -> Optional[UnitColumn]:
    if match(UNIT_PATTERN, header) is None:
        return None
    return UnitColumn()


def _term_name_for(header: str, column_types: Tuple[str, ...]) -> Optional[str]:
    term_column = try_parse_term_column(header)
    if term_column is None or term_column.column_type not in column_types:
        return None
    return term_column.term_name


def try_parse_parameter_column_header(header: str) -> Optional[ParameterColumn]:
    term = _term_name_for(header, PARAMETER_COLUMN_TYPES)
    return None if term is None else ParameterColumn(term=term)


def try_parse_factor_column_header(header: str) -> Optional[FactorColumn]:
    term = _term_name_for(header, FACTOR_COLUMN_TYPES)
    return None if term is None else FactorColumn(term=term)


def try_parse_characteristic_column_header(header: str) -> Optional[CharacteristicColumn]:
    term = _term_name_for(header, CHARACTERISTIC_COLUMN_TYPES)
    return None if term is None else CharacteristicColumn(term=term)


def try_parse_component_column_header(header: str) -> Optional[ComponentColumn]:
    term = _term_name_for(header, COMPONENT_COLUMN_TYPES)
    return None if term is None else ComponentColumn(term=term)


def _reference_parts(accession: str) -> Tuple[str, str, str]:
    # An empty or unparseable parenthetical still counts as a reference column.
    parsed = try_parse_term_annotation(accession)
    if parsed is None:
        return "", "", ""
    return parsed.idspace, parsed.local_id, parsed.short


def try_parse_tsr_column_header(header: str) -> Optional[TSRColumn]:
    m = match(TERM_SOURCE_REF_COLUMN_PATTERN, header)
    if m is None:
        return None
    idspace, local_id, full = _reference_parts(m.group("id"))
    return TSRColumn(idspace=idspace, local_id=local_id, full_accession=full)


def try_parse_tan_column_header(header: str) -> Optional[TANColumn]:
    m = match(TERM_ACCESSION_NUMBER_COLUMN_PATTERN, header)
    if m is None:
        return None
    idspace, local_id, full = _reference_parts(m.group("id"))
    return TANColumn(idspace=idspace, local_id=local_id, full_accession=full)


def try_parse_input_column_header(header: str) -> Optional[InputColumn]:
    m = match(INPUT_PATTERN, header)
    return None if m is None else InputColumn(io_type=m.group("iotype"))


def try_parse_output_column_header(header: str) -> Optional[OutputColumn]:
    m = match(OUTPUT_PATTERN, header)
    return None if m is None else OutputColumn(io_type=m.group("iotype"))


def try_parse_comment_column_header(header: str) -> Optional[CommentColumn]:
    m = match(COMMENT_PATTERN, header)
    return None if m is None else CommentColumn(key=m.group("commentKey"))


def try_parse_auto_generated_table_name(name: str) -> Optional[AutoGeneratedTableName]:
    m = match(AUTO_GENERATED_TABLE_NAME, name)
    return None if m is None else AutoGeneratedTableName(number=int(m.group("number")))


def try_parse_io_type_header(header: str) -> Optional[str]:
    """"Input [Sample]" --> "Sample"."""
    m = match(IO_TYPE_PATTERN, header)
    return None if m is None else m.group("iotype")


def try_parse_excel_number_format(number_format: str) -> Optional[str]:
    m = _regex(EXCEL_NUMBER_FORMAT).search(number_format.strip())
    return None if m is None else m.group("numberFormat")


def remove_column_id(header: str) -> str:
    return _regex(ID_PATTERN).sub("", header)


_MATCHERS: List[Callable[[str], Optional[Classification]]] = [
    try_parse_auto_generated_table_name,
    try_parse_tsr_column_header,
    try_parse_tan_column_header,
    try_parse_unit_column_header,
    try_parse_input_column_header,
    try_parse_output_column_header,
    try_parse_comment_column_header,
    try_parse_parameter_column_header,
    try_parse_factor_column_header,
    try_parse_characteristic_column_header,
    try_parse_component_column_header,
    try_parse_term_column,
]


def classify(header: str) -> Optional[Classification]:
    """Return the first classification whose pattern matches ``header``."""
    for matcher in _MATCHERS:
        result = matcher(header)
        if result is not None:
            return result
    return None
