"""Convert annotation tables to and from ISA-Tab string columns.

A string column is ``[header, cell, cell, ...]``. Term columns are spread
over several string columns::

    Parameter [temperature] | Unit | Term Source REF (NCIT:C25206) | Term Accession Number (NCIT:C25206)

The ``Unit`` column is only written when the column holds unitized cells.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from isa_crate import patterns
from isa_crate.model import (
    ArcTable,
    CompositeCell,
    CompositeColumn,
    CompositeHeader,
    HeaderType,
    IOType,
    OntologyAnnotation,
    next_auto_generated_table_name,
)

logger = logging.getLogger(__name__)

StringColumn = List[str]

UNIT_LABEL = "Unit"

LEGACY_IO_LABELS = ("Source Name", "Sample Name")


def tsr_label(short_accession: str) -> str:
    return f"Term Source REF ({short_accession})"


def tan_label(short_accession: str) -> str:
    return f"Term Accession Number ({short_accession})"


def _term_cell_strings(cell: CompositeCell, has_unit: bool) -> List[str]:
    if cell.is_free_text:
        cell = CompositeCell.term(OntologyAnnotation.from_string(cell.text))
    return cell.to_string_cells(has_unit)


def column_to_string_columns(column: CompositeColumn) -> List[StringColumn]:
    header = column.header
    if not header.is_term_column:
        return [[header.to_label()] + [cell.text for cell in column.cells]]
    has_unit = any(cell.is_unitized for cell in column.cells)
    short = header.annotation.short_accession if header.annotation else ""
    labels = [header.to_label()]
    if has_unit:
        labels.append(UNIT_LABEL)
    labels.extend([tsr_label(short), tan_label(short)])
    result = [[label] for label in labels]
    for cell in column.cells:
        for target, value in zip(result, _term_cell_strings(cell, has_unit)):
            target.append(value)
    return result


def to_string_columns(table: ArcTable) -> List[StringColumn]:
    """Flatten every composite column of ``table`` into string columns."""
    result: List[StringColumn] = []
    for column in table.columns:
        result.extend(column_to_string_columns(column))
    return result


@dataclass
class ColumnGroup:
    main: StringColumn
    unit: Optional[StringColumn] = None
    tsr: Optional[StringColumn] = None
    tan: Optional[StringColumn] = None
    reference: Optional[Union[patterns.TSRColumn, patterns.TANColumn]] = None

    @property
    def row_count(self) -> int:
        columns = [c for c in (self.main, self.unit, self.tsr, self.tan) if c is not None]
        return max(len(c) for c in columns) - 1


def _attach(group: ColumnGroup, column: StringColumn, classification) -> None:
    if isinstance(classification, patterns.UnitColumn):
        group.unit = column
    elif isinstance(classification, patterns.TSRColumn):
        group.tsr = column
        group.reference = classification
    else:
        group.tan = column
        if group.reference is None:
            group.reference = classification


def group_columns(columns: Sequence[StringColumn]) -> List[ColumnGroup]:
    """Pair every main column with the Unit/TSR/TAN columns that follow it."""
    groups: List[ColumnGroup] = []
    for column in columns:
        if not column:
            continue
        classification = patterns.classify(column[0])
        is_reference = isinstance(classification, (patterns.UnitColumn, patterns.TSRColumn, patterns.TANColumn))
        if is_reference and groups:
            _attach(groups[-1], list(column), classification)
            continue
        if is_reference:
            logger.debug("Reference column '%s' has no main column, reading it as free text", column[0])
        groups.append(ColumnGroup(main=list(column)))
    return groups


def header_from_group(group: ColumnGroup, has_input: bool = False) -> CompositeHeader:
    """Build the header of a column group.

    Legacy ISA-Tab node columns ("Source Name", "Sample Name") become the
    input column, or the output column once the table has an input.
    """
    label = patterns.remove_column_id(group.main[0]).strip()
    classification = patterns.classify(label)
    reference = group.reference

    def term(name: str) -> OntologyAnnotation:
        if reference is None:
            return OntologyAnnotation.from_string(name)
        return OntologyAnnotation.from_string(name, reference.idspace, reference.full_accession)

    if isinstance(classification, patterns.ParameterColumn):
        return CompositeHeader.parameter(term(classification.term))
    if isinstance(classification, patterns.FactorColumn):
        return CompositeHeader.factor(term(classification.term))
    if isinstance(classification, patterns.CharacteristicColumn):
        return CompositeHeader.characteristic(term(classification.term))
    if isinstance(classification, patterns.ComponentColumn):
        return CompositeHeader.component(term(classification.term))
    if isinstance(classification, patterns.InputColumn):
        return CompositeHeader.input(IOType.from_string(classification.io_type))
    if isinstance(classification, patterns.OutputColumn):
        return CompositeHeader.output(IOType.from_string(classification.io_type))
    if isinstance(classification, patterns.CommentColumn):
        return CompositeHeader.comment(classification.key)
    single = CompositeHeader.of_single_column_label(label)
    if single is not None:
        return single
    if label in LEGACY_IO_LABELS:
        io_type = IOType.from_string(label)
        return CompositeHeader.output(io_type) if has_input else CompositeHeader.input(io_type)
    logger.debug("Header '%s' matches no known column shape, reading it as free text", label)
    return CompositeHeader.free_text(label)


def _cell_at(column: Optional[StringColumn], row: int) -> str:
    if column is None or row + 1 >= len(column):
        return ""
    return column[row + 1]


def cells_from_group(group: ColumnGroup, header: CompositeHeader) -> List[CompositeCell]:
    cells = []
    for row in range(group.row_count):
        main = _cell_at(group.main, row)
        tsr = _cell_at(group.tsr, row)
        tan = _cell_at(group.tan, row)
        if group.unit is not None:
            unit = OntologyAnnotation.from_string(_cell_at(group.unit, row), tsr, tan)
            cells.append(CompositeCell.unitized(main, unit))
        elif header.is_term_column:
            cells.append(CompositeCell.term(OntologyAnnotation.from_string(main, tsr, tan)))
        else:
            cells.append(CompositeCell.free_text(main))
    return cells


def column_from_string_columns(group: ColumnGroup, has_input: bool = False) -> CompositeColumn:
    header = header_from_group(group, has_input)
    return CompositeColumn(header=header, cells=cells_from_group(group, header))


def from_string_columns(
    columns: Sequence[StringColumn],
    name: Optional[str] = None,
    existing_names: Sequence[str] = (),
) -> ArcTable:
    """Rebuild an :class:`ArcTable` from string columns.

    Without ``name`` the table gets the next free auto-generated name.
    """
    table = ArcTable.init(name or next_auto_generated_table_name(existing_names))
    for group in group_columns(columns):
        has_input = any(header.header_type is HeaderType.INPUT for header in table.headers)
        table.add_column(column_from_string_columns(group, has_input))
    return table


def from_rows(rows: Sequence[Sequence[str]], name: Optional[str] = None) -> ArcTable:
    """Read a row-major table (header row first) into an :class:`ArcTable`."""
    if not rows:
        return ArcTable.init(name or next_auto_generated_table_name([]))
    width = max(len(row) for row in rows)
    columns = [[row[i] if i < len(row) else "" for row in rows] for i in range(width)]
    return from_string_columns(columns, name)


def to_rows(table: ArcTable) -> List[List[str]]:
    columns = to_string_columns(table)
    if not columns:
        return []
    return [list(row) for row in zip(*columns)]
