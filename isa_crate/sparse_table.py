"""Sparse matrix of labelled rows used by the investigation file sections.

A section such as "STUDY ASSAYS" is a block of rows ``<prefix> <label>\tv0\tv1...``.
:class:`SparseTable` keeps the non-empty cells keyed by ``(label, column)``,
plus the ``Comment[...]`` keys found in the block.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from isa_crate.model import Comment

Row = List[str]

COMMENT_KEY_PATTERN = re.compile(r"Comment\s?\[<?(?P<key>.*?)>?\]")
REMARK_PREFIX = "#"


@dataclass
class Remark:
    line_number: int
    value: str


def trim_trailing_empty(values: List[str]) -> List[str]:
    trimmed = list(values)
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


def try_parse_comment_key(key: str) -> Optional[str]:
    match = COMMENT_KEY_PATTERN.fullmatch(key.strip())
    return match.group("key") if match else None


def try_parse_remark(key: str) -> Optional[str]:
    stripped = key.strip()
    if stripped.startswith(REMARK_PREFIX):
        return stripped[len(REMARK_PREFIX):]
    return None


def wrap_comment_key(key: str) -> str:
    return f"Comment[{key}]"


@dataclass
class SparseTable:
    matrix: Dict[Tuple[str, int], str] = field(default_factory=dict)
    keys: List[str] = field(default_factory=list)
    comment_keys: List[str] = field(default_factory=list)
    column_count: int = 0

    @classmethod
    def create(cls, keys: Optional[Iterable[str]] = None, length: int = 0) -> "SparseTable":
        return cls(keys=list(keys or []), column_count=length)

    def try_get(self, label: str, column: int) -> Optional[str]:
        return self.matrix.get((label, column))

    def get_or_default(self, default: str, label: str, column: int) -> str:
        return self.matrix.get((label, column), default)

    def set(self, label: str, column: int, value: str) -> None:
        self.matrix[(label, column)] = value

    def get_empty_comments(self) -> List[Comment]:
        return [Comment(name=key) for key in self.comment_keys]

    def add_row(self, label: str, values: Sequence[str]) -> None:
        for column, value in enumerate(values):
            if value:
                self.set(label, column, value)
        self.column_count = max(self.column_count, len(values))

    def add_comment(self, key: str, values: Sequence[str]) -> None:
        if key not in self.comment_keys:
            self.comment_keys.append(key)
        self.add_row(key, values)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Row],
        labels: Sequence[str],
        line_number: int,
        prefix: Optional[str] = None,
    ) -> Tuple[Optional[str], int, List[Remark], "SparseTable"]:
        """Read rows until a key that belongs to neither ``labels`` nor comments.

        Returns ``(next_key, line_number, remarks, table)``. ``next_key`` is the
        unconsumed key that ended the block, or ``None`` when ``rows`` ran out.
        """
        table = cls.create(keys=labels)
        lookup = {label if prefix is None else f"{prefix} {label}": label for label in labels}
        remarks: List[Remark] = []
        iterator: Iterator[Row] = iter(rows)
        for row in iterator:
            line_number += 1
            if not row:
                continue
            key = row[0].strip()
            values = trim_trailing_empty([value.strip() for value in row[1:]])
            comment_key = try_parse_comment_key(key)
            if comment_key is not None:
                table.add_comment(comment_key, values)
                continue
            remark = try_parse_remark(key)
            if remark is not None:
                remarks.append(Remark(line_number, remark))
                continue
            label = lookup.get(key)
            if label is None:
                return key, line_number, remarks, table
            table.add_row(label, values)
        return None, line_number, remarks, table

    def to_rows(self, prefix: Optional[str] = None) -> List[Row]:
        """Write one row per label, then one per comment key.

        Column 0 is reserved, so rows carry columns ``1..column_count - 1``.
        """
        rows: List[Row] = []
        for key in self.keys:
            label = key if prefix is None else f"{prefix} {key}"
            rows.append([label] + [self.get_or_default("", key, i) for i in range(1, self.column_count)])
        for key in self.comment_keys:
            rows.append([wrap_comment_key(key)] + [self.get_or_default("", key, i) for i in range(1, self.column_count)])
        return rows


def try_get(table: SparseTable, label: str, column: int) -> Optional[str]:
    return table.try_get(label, column)


def get_or_default(table: SparseTable, default: str, label: str, column: int) -> str:
    return table.get_or_default(default, label, column)


def set_value(table: SparseTable, label: str, column: int, value: str) -> None:
    table.set(label, column, value)


def rows_from_text(raw_text: str) -> List[Row]:
    """Split tab separated text into rows, skipping blank lines."""
    rows: List[Row] = []
    for raw_line in raw_text.splitlines():
        if not raw_line.strip():
            continue
        rows.append(raw_line.split("\t"))
    return rows


def rows_to_text(rows: Iterable[Row]) -> str:
    lines = ["\t".join(trim_trailing_empty(list(row))) for row in rows]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
