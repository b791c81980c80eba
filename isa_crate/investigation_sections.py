"""Investigation file sections read and written through :class:`SparseTable`.

Each section maps a block of labelled rows to a list of records, one record
per value column:

* ``assays``: "Study Assay ..." rows to :class:`ArcAssay`
* ``design_descriptors``: "Study Design ..." rows to :class:`OntologyAnnotation`
* ``factors``: "Study Factor ..." rows to :class:`Factor`
* ``contacts``: "Study Person ..." / "Investigation Person ..." rows to :class:`Person`
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from isa_crate.model import (
    ArcAssay,
    Comment,
    Factor,
    OntologyAnnotation,
    Person,
    create_missing_identifier,
    none_if_empty,
    remove_missing_identifier,
)
from isa_crate.sparse_table import Remark, Row, SparseTable

logger = logging.getLogger(__name__)

ROLE_SEPARATOR = ";"


class Section:
    """Shared sparse table plumbing. Subclasses map one column to one record."""

    labels: Tuple[str, ...] = ()

    def empty_entity(self, comments: List[Comment]):
        raise NotImplementedError

    def entity_from_column(self, table: SparseTable, column: int, comments: List[Comment]):
        raise NotImplementedError

    def entity_to_cells(self, item) -> Dict[str, str]:
        raise NotImplementedError

    def entity_comments(self, item) -> List[Comment]:
        return item.comments

    def from_sparse_table(self, table: SparseTable) -> list:
        if table.column_count == 0 and table.comment_keys:
            return [self.empty_entity(table.get_empty_comments())]
        items = []
        for column in range(table.column_count):
            comments = [Comment.from_string(key, table.get_or_default("", key, column)) for key in table.comment_keys]
            items.append(self.entity_from_column(table, column, comments))
        return items

    def to_sparse_table(self, items: Sequence) -> SparseTable:
        table = SparseTable.create(keys=self.labels, length=len(items) + 1)
        for column, item in enumerate(items, start=1):
            for label, value in self.entity_to_cells(item).items():
                table.set(label, column, value)
            for comment in self.entity_comments(item):
                name, value = comment.to_string()
                if name not in table.comment_keys:
                    table.comment_keys.append(name)
                table.set(name, column, value)
        return table

    def from_rows(
        self,
        prefix: Optional[str],
        line_number: int,
        rows: Iterable[Row],
    ) -> Tuple[Optional[str], int, List[Remark], list]:
        next_key, line_number, remarks, table = SparseTable.from_rows(rows, self.labels, line_number, prefix)
        items = self.from_sparse_table(table)
        logger.debug("Read %d %s entries ending at line %d", len(items), type(self).__name__, line_number)
        return next_key, line_number, remarks, items

    def to_rows(self, prefix: Optional[str], items: Sequence) -> List[Row]:
        return self.to_sparse_table(items).to_rows(prefix)


class AssaysSection(Section):
    measurement_type_label = "Measurement Type"
    measurement_type_tan_label = "Measurement Type Term Accession Number"
    measurement_type_tsr_label = "Measurement Type Term Source REF"
    technology_type_label = "Technology Type"
    technology_type_tan_label = "Technology Type Term Accession Number"
    technology_type_tsr_label = "Technology Type Term Source REF"
    technology_platform_label = "Technology Platform"
    file_name_label = "File Name"

    labels = (
        measurement_type_label,
        measurement_type_tan_label,
        measurement_type_tsr_label,
        technology_type_label,
        technology_type_tan_label,
        technology_type_tsr_label,
        technology_platform_label,
        file_name_label,
    )

    def empty_entity(self, comments: List[Comment]) -> ArcAssay:
        return ArcAssay(identifier=create_missing_identifier(), comments=comments)

    def entity_from_column(self, table: SparseTable, column: int, comments: List[Comment]) -> ArcAssay:
        measurement_type = OntologyAnnotation.from_string(
            table.get_or_default("", self.measurement_type_label, column),
            table.try_get(self.measurement_type_tsr_label, column),
            table.try_get(self.measurement_type_tan_label, column),
        )
        technology_type = OntologyAnnotation.from_string(
            table.get_or_default("", self.technology_type_label, column),
            table.try_get(self.technology_type_tsr_label, column),
            table.try_get(self.technology_type_tan_label, column),
        )
        platform = table.get_or_default("", self.technology_platform_label, column)
        return ArcAssay(
            identifier=table.get_or_default(create_missing_identifier(), self.file_name_label, column),
            measurement_type=None if measurement_type.is_empty else measurement_type,
            technology_type=None if technology_type.is_empty else technology_type,
            technology_platform=OntologyAnnotation(name=platform) if platform else None,
            comments=comments,
        )

    def entity_to_cells(self, assay: ArcAssay) -> Dict[str, str]:
        measurement_type = (assay.measurement_type or OntologyAnnotation()).to_string(as_ontobee_uri=True)
        technology_type = (assay.technology_type or OntologyAnnotation()).to_string(as_ontobee_uri=True)
        platform = assay.technology_platform.name_as_string if assay.technology_platform else ""
        return {
            self.measurement_type_label: measurement_type.term_name,
            self.measurement_type_tan_label: measurement_type.term_accession_number,
            self.measurement_type_tsr_label: measurement_type.term_source_ref,
            self.technology_type_label: technology_type.term_name,
            self.technology_type_tan_label: technology_type.term_accession_number,
            self.technology_type_tsr_label: technology_type.term_source_ref,
            self.technology_platform_label: platform,
            self.file_name_label: remove_missing_identifier(assay.identifier),
        }


class DesignDescriptorsSection(Section):
    type_label = "Type"
    type_tan_label = "Type Term Accession Number"
    type_tsr_label = "Type Term Source REF"

    labels = (type_label, type_tan_label, type_tsr_label)

    def empty_entity(self, comments: List[Comment]) -> OntologyAnnotation:
        return OntologyAnnotation(comments=comments)

    def entity_from_column(self, table: SparseTable, column: int, comments: List[Comment]) -> OntologyAnnotation:
        return OntologyAnnotation.from_string(
            table.get_or_default("", self.type_label, column),
            table.get_or_default("", self.type_tsr_label, column),
            table.get_or_default("", self.type_tan_label, column),
            comments,
        )

    def entity_to_cells(self, design: OntologyAnnotation) -> Dict[str, str]:
        oa = design.to_string(as_ontobee_uri=True)
        return {
            self.type_label: oa.term_name,
            self.type_tan_label: oa.term_accession_number,
            self.type_tsr_label: oa.term_source_ref,
        }


class FactorsSection(Section):
    name_label = "Name"
    type_label = "Type"
    type_tan_label = "Type Term Accession Number"
    type_tsr_label = "Type Term Source REF"

    labels = (name_label, type_label, type_tan_label, type_tsr_label)

    def empty_entity(self, comments: List[Comment]) -> Factor:
        return Factor(comments=comments)

    def entity_from_column(self, table: SparseTable, column: int, comments: List[Comment]) -> Factor:
        return Factor.from_string(
            table.get_or_default("", self.name_label, column),
            table.get_or_default("", self.type_label, column),
            table.get_or_default("", self.type_tsr_label, column),
            table.get_or_default("", self.type_tan_label, column),
            comments,
        )

    def entity_to_cells(self, factor: Factor) -> Dict[str, str]:
        oa = factor.to_string()
        return {
            self.name_label: factor.name or "",
            self.type_label: oa.term_name,
            self.type_tan_label: oa.term_accession_number,
            self.type_tsr_label: oa.term_source_ref,
        }


def split_roles(names: str, accessions: str, sources: str) -> List[OntologyAnnotation]:
    """Zip ``;`` separated role names, accessions and sources into annotations."""
    split = [value.split(ROLE_SEPARATOR) if value else [] for value in (names, accessions, sources)]
    count = max(len(values) for values in split)
    roles = []
    for i in range(count):
        name, accession, source = (values[i].strip() if i < len(values) else "" for values in split)
        oa = OntologyAnnotation.from_string(name, source, accession)
        if not oa.is_empty:
            roles.append(oa)
    return roles


def join_roles(roles: Sequence[OntologyAnnotation]) -> Tuple[str, str, str]:
    """Return ``(names, accessions, sources)`` joined with ``;``."""
    strings = [role.to_string() for role in roles]
    return (
        ROLE_SEPARATOR.join(s.term_name for s in strings),
        ROLE_SEPARATOR.join(s.term_accession_number for s in strings),
        ROLE_SEPARATOR.join(s.term_source_ref for s in strings),
    )


class ContactsSection(Section):
    last_name_label = "Last Name"
    first_name_label = "First Name"
    mid_initials_label = "Mid Initials"
    email_label = "Email"
    phone_label = "Phone"
    fax_label = "Fax"
    address_label = "Address"
    affiliation_label = "Affiliation"
    orcid_label = "ORCID"
    roles_label = "Roles"
    roles_tan_label = "Roles Term Accession Number"
    roles_tsr_label = "Roles Term Source REF"

    labels = (
        last_name_label,
        first_name_label,
        mid_initials_label,
        email_label,
        phone_label,
        fax_label,
        address_label,
        affiliation_label,
        orcid_label,
        roles_label,
        roles_tan_label,
        roles_tsr_label,
    )

    def empty_entity(self, comments: List[Comment]) -> Person:
        return Person(comments=comments)

    def entity_from_column(self, table: SparseTable, column: int, comments: List[Comment]) -> Person:
        def get(label: str) -> Optional[str]:
            return none_if_empty(table.get_or_default("", label, column))

        return Person(
            orcid=get(self.orcid_label),
            last_name=get(self.last_name_label),
            first_name=get(self.first_name_label),
            mid_initials=get(self.mid_initials_label),
            email=get(self.email_label),
            phone=get(self.phone_label),
            fax=get(self.fax_label),
            address=get(self.address_label),
            affiliation=get(self.affiliation_label),
            roles=split_roles(
                table.get_or_default("", self.roles_label, column),
                table.get_or_default("", self.roles_tan_label, column),
                table.get_or_default("", self.roles_tsr_label, column),
            ),
            comments=comments,
        )

    def entity_to_cells(self, person: Person) -> Dict[str, str]:
        names, accessions, sources = join_roles(person.roles)
        return {
            self.last_name_label: person.last_name or "",
            self.first_name_label: person.first_name or "",
            self.mid_initials_label: person.mid_initials or "",
            self.email_label: person.email or "",
            self.phone_label: person.phone or "",
            self.fax_label: person.fax or "",
            self.address_label: person.address or "",
            self.affiliation_label: person.affiliation or "",
            self.orcid_label: person.orcid or "",
            self.roles_label: names,
            self.roles_tan_label: accessions,
            self.roles_tsr_label: sources,
        }


assays = AssaysSection()
design_descriptors = DesignDescriptorsSection()
factors = FactorsSection()
contacts = ContactsSection()
