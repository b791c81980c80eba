"""In-memory object model for investigations, studies, assays and annotation tables."""
import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from isa_crate import patterns

MISSING_IDENTIFIER_PREFIX = "MISSING_IDENTIFIER_"


def create_missing_identifier() -> str:
    return f"{MISSING_IDENTIFIER_PREFIX}{uuid.uuid4()}"


def is_missing_identifier(identifier: str) -> bool:
    return identifier.startswith(MISSING_IDENTIFIER_PREFIX)


def remove_missing_identifier(identifier: str) -> str:
    return "" if is_missing_identifier(identifier) else identifier


def none_if_empty(value: Optional[str]) -> Optional[str]:
    return value if value else None


def next_auto_generated_table_name(existing_names: Iterable[str]) -> str:
    """Return the next free ``"New Table <n>"`` name."""
    existing = list(existing_names)
    number = len(existing)
    for name in existing:
        parsed = patterns.try_parse_auto_generated_table_name(name)
        if parsed is not None:
            number = max(number, parsed.number + 1)
    while f"New Table {number}" in existing:
        number += 1
    return f"New Table {number}"


@dataclass
class Comment:
    name: Optional[str] = None
    value: Optional[str] = None

    @classmethod
    def from_string(cls, name: str, value: str) -> "Comment":
        return cls(name=none_if_empty(name), value=none_if_empty(value))

    def to_string(self) -> Tuple[str, str]:
        return self.name or "", self.value or ""


class OntologyAnnotationStrings(NamedTuple):
    term_name: str
    term_source_ref: str
    term_accession_number: str


@dataclass
class OntologyAnnotation:
    name: Optional[str] = None
    term_source_ref: Optional[str] = None
    term_accession: Optional[str] = None
    comments: List[Comment] = field(default_factory=list)

    @classmethod
    def from_string(
        cls,
        name: Optional[str] = None,
        tsr: Optional[str] = None,
        tan: Optional[str] = None,
        comments: Optional[List[Comment]] = None,
    ) -> "OntologyAnnotation":
        return cls(
            name=none_if_empty(name),
            term_source_ref=none_if_empty(tsr),
            term_accession=none_if_empty(tan),
            comments=list(comments or []),
        )

    @property
    def is_empty(self) -> bool:
        return self == OntologyAnnotation()

    @property
    def name_as_string(self) -> str:
        return self.name or ""

    @property
    def tan_info(self) -> Optional[patterns.TermAnnotation]:
        if not self.term_accession:
            return None
        return patterns.try_parse_term_annotation(self.term_accession)

    @property
    def short_accession(self) -> str:
        """``IDSPACE:LOCALID`` of the accession, ``""`` when it cannot be parsed."""
        info = self.tan_info
        return info.short if info else ""

    def to_string(self, as_ontobee_uri: bool = False) -> OntologyAnnotationStrings:
        accession = self.term_accession or ""
        if as_ontobee_uri and accession:
            short = patterns.try_parse_term_annotation_short(accession)
            if short is not None:
                accession = patterns.create_obo_uri(short.idspace, short.local_id)
        return OntologyAnnotationStrings(self.name or "", self.term_source_ref or "", accession)


class IOTypeKind(Enum):
    SOURCE = "Source Name"
    SAMPLE = "Sample Name"
    DATA = "Data"
    MATERIAL = "Material"
    FREE_TEXT = "FreeText"


_IO_TYPE_ALIASES = {
    "Source Name": IOTypeKind.SOURCE,
    "Source": IOTypeKind.SOURCE,
    "Sample Name": IOTypeKind.SAMPLE,
    "Sample": IOTypeKind.SAMPLE,
    "Data": IOTypeKind.DATA,
    "Material": IOTypeKind.MATERIAL,
}


@dataclass(frozen=True)
class IOType:
    kind: IOTypeKind
    free_text: Optional[str] = None

    def __post_init__(self) -> None:
        # Reserved names ("Sample", "Source Name", ...) always give the fixed kind.
        if self.kind is IOTypeKind.FREE_TEXT:
            kind = _IO_TYPE_ALIASES.get((self.free_text or "").strip())
            if kind is not None:
                object.__setattr__(self, "kind", kind)
                object.__setattr__(self, "free_text", None)

    @classmethod
    def source(cls) -> "IOType":
        return cls(IOTypeKind.SOURCE)

    @classmethod
    def sample(cls) -> "IOType":
        return cls(IOTypeKind.SAMPLE)

    @classmethod
    def data(cls) -> "IOType":
        return cls(IOTypeKind.DATA)

    @classmethod
    def material(cls) -> "IOType":
        return cls(IOTypeKind.MATERIAL)

    @classmethod
    def of_free_text(cls, text: str) -> "IOType":
        return cls(IOTypeKind.FREE_TEXT, text)

    @classmethod
    def from_string(cls, text: str) -> "IOType":
        return cls.of_free_text(text)

    def to_string(self) -> str:
        if self.kind is IOTypeKind.FREE_TEXT:
            return self.free_text or ""
        return self.kind.value


class CellType(Enum):
    FREE_TEXT = "FreeText"
    TERM = "Term"
    UNITIZED = "Unitized"

    @property
    def arity(self) -> int:
        return 2 if self is CellType.UNITIZED else 1


@dataclass
class CompositeCell:
    """A single annotation table cell.

    ``text`` holds the free text or the unitized value, ``annotation`` holds
    the term or the unit.
    """

    cell_type: CellType
    text: str = ""
    annotation: Optional[OntologyAnnotation] = None

    @classmethod
    def free_text(cls, text: str = "") -> "CompositeCell":
        return cls(CellType.FREE_TEXT, text=text)

    @classmethod
    def term(cls, annotation: OntologyAnnotation) -> "CompositeCell":
        return cls(CellType.TERM, annotation=annotation)

    @classmethod
    def unitized(cls, value: str, unit: OntologyAnnotation) -> "CompositeCell":
        return cls(CellType.UNITIZED, text=value, annotation=unit)

    @classmethod
    def empty_free_text(cls) -> "CompositeCell":
        return cls.free_text("")

    @classmethod
    def empty_term(cls) -> "CompositeCell":
        return cls.term(OntologyAnnotation())

    @classmethod
    def empty_unitized(cls) -> "CompositeCell":
        return cls.unitized("", OntologyAnnotation())

    @property
    def is_free_text(self) -> bool:
        return self.cell_type is CellType.FREE_TEXT

    @property
    def is_term(self) -> bool:
        return self.cell_type is CellType.TERM

    @property
    def is_unitized(self) -> bool:
        return self.cell_type is CellType.UNITIZED

    def to_string_cells(self, has_unit: bool = False) -> List[str]:
        """Spreadsheet cells for this value: main, [unit], term source, accession."""
        if self.is_free_text:
            return [self.text]
        oa = self.annotation.to_string() if self.annotation else OntologyAnnotation().to_string()
        if self.is_term:
            main = [oa.term_name, ""] if has_unit else [oa.term_name]
            return main + [oa.term_source_ref, oa.term_accession_number]
        return [self.text, oa.term_name, oa.term_source_ref, oa.term_accession_number]


class PayloadKind(Enum):
    TERM = "term"
    IO_TYPE = "iotype"
    TEXT = "text"
    NONE = "none"


class HeaderType(Enum):
    PARAMETER = "Parameter"
    FACTOR = "Factor"
    CHARACTERISTIC = "Characteristic"
    COMPONENT = "Component"
    PROTOCOL_TYPE = "ProtocolType"
    PROTOCOL_DESCRIPTION = "ProtocolDescription"
    PROTOCOL_URI = "ProtocolUri"
    PROTOCOL_VERSION = "ProtocolVersion"
    PROTOCOL_REF = "ProtocolREF"
    PERFORMER = "Performer"
    DATE = "Date"
    INPUT = "Input"
    OUTPUT = "Output"
    FREE_TEXT = "FreeText"
    COMMENT = "Comment"

    @property
    def payload(self) -> PayloadKind:
        return _HEADER_PAYLOADS[self]

    @property
    def arity(self) -> int:
        return 0 if self.payload is PayloadKind.NONE else 1


_HEADER_PAYLOADS = {
    HeaderType.PARAMETER: PayloadKind.TERM,
    HeaderType.FACTOR: PayloadKind.TERM,
    HeaderType.CHARACTERISTIC: PayloadKind.TERM,
    HeaderType.COMPONENT: PayloadKind.TERM,
    HeaderType.PROTOCOL_TYPE: PayloadKind.NONE,
    HeaderType.PROTOCOL_DESCRIPTION: PayloadKind.NONE,
    HeaderType.PROTOCOL_URI: PayloadKind.NONE,
    HeaderType.PROTOCOL_VERSION: PayloadKind.NONE,
    HeaderType.PROTOCOL_REF: PayloadKind.NONE,
    HeaderType.PERFORMER: PayloadKind.NONE,
    HeaderType.DATE: PayloadKind.NONE,
    HeaderType.INPUT: PayloadKind.IO_TYPE,
    HeaderType.OUTPUT: PayloadKind.IO_TYPE,
    HeaderType.FREE_TEXT: PayloadKind.TEXT,
    HeaderType.COMMENT: PayloadKind.TEXT,
}

# Spreadsheet labels of the columns without payload.
SINGLE_COLUMN_LABELS = {
    HeaderType.PROTOCOL_TYPE: "Protocol Type",
    HeaderType.PROTOCOL_DESCRIPTION: "Description",
    HeaderType.PROTOCOL_URI: "Protocol Uri",
    HeaderType.PROTOCOL_VERSION: "Protocol Version",
    HeaderType.PROTOCOL_REF: "Protocol REF",
    HeaderType.PERFORMER: "Performer",
    HeaderType.DATE: "Date",
}


@dataclass
class CompositeHeader:
    header_type: HeaderType
    annotation: Optional[OntologyAnnotation] = None
    io_type: Optional[IOType] = None
    text: Optional[str] = None

    @classmethod
    def parameter(cls, annotation: OntologyAnnotation) -> "CompositeHeader":
        return cls(HeaderType.PARAMETER, annotation=annotation)

    @classmethod
    def factor(cls, annotation: OntologyAnnotation) -> "CompositeHeader":
        return cls(HeaderType.FACTOR, annotation=annotation)

    @classmethod
    def characteristic(cls, annotation: OntologyAnnotation) -> "CompositeHeader":
        return cls(HeaderType.CHARACTERISTIC, annotation=annotation)

    @classmethod
    def component(cls, annotation: OntologyAnnotation) -> "CompositeHeader":
        return cls(HeaderType.COMPONENT, annotation=annotation)

    @classmethod
    def protocol_type(cls) -> "CompositeHeader":
        return cls(HeaderType.PROTOCOL_TYPE)

    @classmethod
    def protocol_description(cls) -> "CompositeHeader":
        return cls(HeaderType.PROTOCOL_DESCRIPTION)

    @classmethod
    def protocol_uri(cls) -> "CompositeHeader":
        return cls(HeaderType.PROTOCOL_URI)

    @classmethod
    def protocol_version(cls) -> "CompositeHeader":
        return cls(HeaderType.PROTOCOL_VERSION)

    @classmethod
    def protocol_ref(cls) -> "CompositeHeader":
        return cls(HeaderType.PROTOCOL_REF)

    @classmethod
    def performer(cls) -> "CompositeHeader":
        return cls(HeaderType.PERFORMER)

    @classmethod
    def date(cls) -> "CompositeHeader":
        return cls(HeaderType.DATE)

    @classmethod
    def input(cls, io_type: IOType) -> "CompositeHeader":
        return cls(HeaderType.INPUT, io_type=io_type)

    @classmethod
    def output(cls, io_type: IOType) -> "CompositeHeader":
        return cls(HeaderType.OUTPUT, io_type=io_type)

    @classmethod
    def free_text(cls, text: str) -> "CompositeHeader":
        return cls(HeaderType.FREE_TEXT, text=text)

    @classmethod
    def comment(cls, key: str) -> "CompositeHeader":
        return cls(HeaderType.COMMENT, text=key)

    @classmethod
    def of_single_column_label(cls, label: str) -> Optional["CompositeHeader"]:
        for header_type, known in SINGLE_COLUMN_LABELS.items():
            if known == label.strip():
                return cls(header_type)
        return None

    @property
    def is_term_column(self) -> bool:
        return self.header_type.payload is PayloadKind.TERM or self.header_type is HeaderType.PROTOCOL_TYPE

    @property
    def is_io_column(self) -> bool:
        return self.header_type.payload is PayloadKind.IO_TYPE

    @property
    def payload_arity(self) -> int:
        return self.header_type.arity

    def to_label(self) -> str:
        header_type = self.header_type
        if header_type.payload is PayloadKind.TERM:
            name = self.annotation.name_as_string if self.annotation else ""
            return f"{header_type.value} [{name}]"
        if header_type.payload is PayloadKind.IO_TYPE:
            io_type = self.io_type.to_string() if self.io_type else ""
            return f"{header_type.value} [{io_type}]"
        if header_type is HeaderType.COMMENT:
            return f"Comment [{self.text or ''}]"
        if header_type is HeaderType.FREE_TEXT:
            return self.text or ""
        return SINGLE_COLUMN_LABELS[header_type]

    def empty_cell(self) -> CompositeCell:
        if self.is_term_column:
            return CompositeCell.empty_term()
        return CompositeCell.empty_free_text()


@dataclass
class CompositeColumn:
    header: CompositeHeader
    cells: List[CompositeCell] = field(default_factory=list)

    def validate(self, raise_exception: bool = False) -> bool:
        if self.header.is_term_column:
            valid = all(cell.is_term or cell.is_unitized for cell in self.cells)
        else:
            valid = all(cell.is_free_text for cell in self.cells)
        if not valid and raise_exception:
            raise ValueError(f"Invalid combination of header `{self.header.to_label()}` and cells.")
        return valid


@dataclass
class ArcTable:
    name: str
    headers: List[CompositeHeader] = field(default_factory=list)
    values: Dict[Tuple[int, int], CompositeCell] = field(default_factory=dict)

    @classmethod
    def init(cls, name: str) -> "ArcTable":
        return cls(name=name)

    @classmethod
    def create(
        cls,
        name: str,
        headers: Iterable[CompositeHeader],
        values: Dict[Tuple[int, int], CompositeCell],
    ) -> "ArcTable":
        return cls(name=name, headers=list(headers), values=dict(values))

    @property
    def column_count(self) -> int:
        return len(self.headers)

    @property
    def row_count(self) -> int:
        if not self.values:
            return 0
        return max(row for _, row in self.values) + 1

    def try_get_cell(self, column: int, row: int) -> Optional[CompositeCell]:
        return self.values.get((column, row))

    def get_cell(self, column: int, row: int) -> CompositeCell:
        cell = self.values.get((column, row))
        if cell is None:
            return self.headers[column].empty_cell()
        return cell

    def get_column(self, index: int) -> CompositeColumn:
        if not 0 <= index < self.column_count:
            raise IndexError(f"Column index {index} out of range for table '{self.name}' with {self.column_count} columns.")
        cells = [self.get_cell(index, row) for row in range(self.row_count)]
        return CompositeColumn(header=self.headers[index], cells=cells)

    @property
    def columns(self) -> List[CompositeColumn]:
        return [self.get_column(i) for i in range(self.column_count)]

    def add_column(self, column: CompositeColumn) -> None:
        index = len(self.headers)
        self.headers.append(column.header)
        for row, cell in enumerate(column.cells):
            self.values[(index, row)] = cell

    def validate(self, raise_exception: bool = False) -> bool:
        for column, row in self.values:
            if column >= self.column_count:
                if raise_exception:
                    raise ValueError(
                        f"Table '{self.name}' has a value at ({column}, {row}) but only {self.column_count} headers."
                    )
                return False
        return all(column.validate(raise_exception) for column in self.columns)


class ValueKind(Enum):
    ONTOLOGY = "Ontology"
    INT = "Int"
    FLOAT = "Float"
    NAME = "Name"


@dataclass
class Value:
    kind: ValueKind
    annotation: Optional[OntologyAnnotation] = None
    number: Optional[Union[int, float]] = None
    text: Optional[str] = None

    @classmethod
    def of_ontology(cls, annotation: OntologyAnnotation) -> "Value":
        return cls(ValueKind.ONTOLOGY, annotation=annotation)

    @classmethod
    def of_int(cls, value: int) -> "Value":
        return cls(ValueKind.INT, number=value)

    @classmethod
    def of_float(cls, value: float) -> "Value":
        return cls(ValueKind.FLOAT, number=value)

    @classmethod
    def of_name(cls, value: str) -> "Value":
        return cls(ValueKind.NAME, text=value)

    @classmethod
    def from_options(
        cls,
        value: Optional[str],
        term_accession: Optional[str] = None,
        term_source: Optional[str] = None,
    ) -> Optional["Value"]:
        if term_accession is None and term_source is None:
            if value is None:
                return None
            # Underscored digits, nan and inf stay names.
            if "_" not in value:
                try:
                    return cls.of_int(int(value))
                except ValueError:
                    pass
                try:
                    number = float(value)
                except ValueError:
                    number = None
                if number is not None and math.isfinite(number):
                    return cls.of_float(number)
            return cls.of_name(value)
        return cls.of_ontology(OntologyAnnotation.from_string(value or "", term_source or "", term_accession or ""))

    def to_options(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Return ``(value, term_accession, term_source)``."""
        if self.kind is ValueKind.ONTOLOGY:
            oa = self.annotation or OntologyAnnotation()
            return oa.name, oa.term_accession, oa.term_source_ref
        if self.kind is ValueKind.NAME:
            return self.text, None, None
        return str(self.number), None, None

    def print_compact(self) -> str:
        if self.kind is ValueKind.ONTOLOGY:
            return self.annotation.name_as_string if self.annotation else ""
        if self.kind is ValueKind.NAME:
            return self.text or ""
        return str(self.number)


@dataclass
class Factor:
    id: Optional[str] = None
    name: Optional[str] = None
    factor_type: Optional[OntologyAnnotation] = None
    comments: List[Comment] = field(default_factory=list)

    @classmethod
    def from_string(
        cls,
        name: str,
        term: str,
        source: str,
        accession: str,
        comments: Optional[List[Comment]] = None,
    ) -> "Factor":
        oa = OntologyAnnotation.from_string(term, source, accession)
        return cls(
            name=none_if_empty(name),
            factor_type=None if oa.is_empty else oa,
            comments=list(comments or []),
        )

    def to_string(self) -> OntologyAnnotationStrings:
        return (self.factor_type or OntologyAnnotation()).to_string()


@dataclass
class FactorValue:
    id: Optional[str] = None
    category: Optional[Factor] = None
    value: Optional[Value] = None
    unit: Optional[OntologyAnnotation] = None


@dataclass
class MaterialAttribute:
    id: Optional[str] = None
    characteristic_type: Optional[OntologyAnnotation] = None


@dataclass
class MaterialAttributeValue:
    id: Optional[str] = None
    category: Optional[MaterialAttribute] = None
    value: Optional[Value] = None
    unit: Optional[OntologyAnnotation] = None


@dataclass
class Source:
    id: Optional[str] = None
    name: Optional[str] = None
    characteristics: List[MaterialAttributeValue] = field(default_factory=list)


@dataclass
class Sample:
    id: Optional[str] = None
    name: Optional[str] = None
    characteristics: List[MaterialAttributeValue] = field(default_factory=list)
    factor_values: List[FactorValue] = field(default_factory=list)
    derives_from: List[Source] = field(default_factory=list)


@dataclass
class Person:
    orcid: Optional[str] = None
    last_name: Optional[str] = None
    first_name: Optional[str] = None
    mid_initials: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    fax: Optional[str] = None
    address: Optional[str] = None
    affiliation: Optional[str] = None
    roles: List[OntologyAnnotation] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)


@dataclass
class Publication:
    pubmed_id: Optional[str] = None
    doi: Optional[str] = None
    authors: Optional[str] = None
    title: Optional[str] = None
    status: Optional[OntologyAnnotation] = None
    comments: List[Comment] = field(default_factory=list)


@dataclass
class OntologySourceReference:
    description: Optional[str] = None
    file: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    comments: List[Comment] = field(default_factory=list)


@dataclass
class ArcAssay:
    identifier: str
    measurement_type: Optional[OntologyAnnotation] = None
    technology_type: Optional[OntologyAnnotation] = None
    technology_platform: Optional[OntologyAnnotation] = None
    tables: List[ArcTable] = field(default_factory=list)
    performers: List[Person] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @classmethod
    def init(cls, identifier: str) -> "ArcAssay":
        return cls(identifier=identifier)

    def init_table(self, name: Optional[str] = None) -> ArcTable:
        table = ArcTable.init(name or next_auto_generated_table_name(t.name for t in self.tables))
        self.tables.append(table)
        return table


@dataclass
class ArcStudy:
    identifier: str
    title: Optional[str] = None
    description: Optional[str] = None
    submission_date: Optional[str] = None
    public_release_date: Optional[str] = None
    publications: List[Publication] = field(default_factory=list)
    contacts: List[Person] = field(default_factory=list)
    study_design_descriptors: List[OntologyAnnotation] = field(default_factory=list)
    tables: List[ArcTable] = field(default_factory=list)
    registered_assay_identifiers: List[str] = field(default_factory=list)
    factors: List[Factor] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @classmethod
    def init(cls, identifier: str) -> "ArcStudy":
        return cls(identifier=identifier)

    def init_table(self, name: Optional[str] = None) -> ArcTable:
        table = ArcTable.init(name or next_auto_generated_table_name(t.name for t in self.tables))
        self.tables.append(table)
        return table


@dataclass
class ArcInvestigation:
    identifier: str
    title: Optional[str] = None
    description: Optional[str] = None
    submission_date: Optional[str] = None
    public_release_date: Optional[str] = None
    ontology_source_references: List[OntologySourceReference] = field(default_factory=list)
    publications: List[Publication] = field(default_factory=list)
    contacts: List[Person] = field(default_factory=list)
    assays: List[ArcAssay] = field(default_factory=list)
    studies: List[ArcStudy] = field(default_factory=list)
    registered_study_identifiers: List[str] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    @classmethod
    def init(cls, identifier: str) -> "ArcInvestigation":
        return cls(identifier=identifier)
