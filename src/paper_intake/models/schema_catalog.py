"""Known shapes of the registration store, oldest first.

Each version only adds: a table, nullable columns, or an index. Versions are
applied in order by the migration manager and are never rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import sqlalchemy as sa

from paper_intake.models.registration import REGISTRATIONS_TABLE

SCHEMA_VERSIONS_TABLE = "schema_versions"


@dataclass(frozen=True)
class ColumnSpec:
    table_name: str
    column_name: str
    column_type: sa.types.TypeEngine
    nullable: bool = True
    primary_key: bool = False

    def to_column(self, for_alter: bool = False) -> sa.Column:
        """Build a fresh SQLAlchemy column for DDL.

        Columns added to an existing table are always nullable and never part
        of the primary key, since rows already present have no value for them.
        """
        if for_alter:
            return sa.Column(self.column_name, self.column_type, nullable=True)
        return sa.Column(
            self.column_name,
            self.column_type,
            primary_key=self.primary_key,
            nullable=False if self.primary_key else self.nullable,
        )


@dataclass(frozen=True)
class IndexSpec:
    table_name: str
    index_name: str
    columns: tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True)
class SchemaVersion:
    version: int
    description: str
    columns: tuple[ColumnSpec, ...] = ()
    indexes: tuple[IndexSpec, ...] = ()


@dataclass(frozen=True)
class SchemaCatalog:
    versions: tuple[SchemaVersion, ...] = field(default_factory=tuple)

    def __post_init__(self):
        numbers = [v.version for v in self.versions]
        if numbers != sorted(set(numbers)):
            raise ValueError(f"Schema versions must be unique and ascending: {numbers}")

    def latest_version(self) -> int:
        return self.versions[-1].version if self.versions else 0

    def initial_columns(self, table_name: str) -> list[ColumnSpec]:
        """Columns of the version that first declares the table"""
        for version in self.versions:
            columns = [c for c in version.columns if c.table_name == table_name]
            if columns:
                return columns
        return []

    def columns_for(self, table_name: str) -> list[ColumnSpec]:
        """Full declared column set of a table across all versions"""
        return [
            column
            for version in self.versions
            for column in version.columns
            if column.table_name == table_name
        ]

    def tables(self) -> list[str]:
        names: list[str] = []
        for version in self.versions:
            for column in version.columns:
                if column.table_name not in names:
                    names.append(column.table_name)
        return names


REGISTRATION_SCHEMA = SchemaCatalog(
    versions=(
        SchemaVersion(
            version=1,
            description="Create registrations table",
            columns=(
                ColumnSpec(REGISTRATIONS_TABLE, "id", sa.Text(), primary_key=True),
                ColumnSpec(REGISTRATIONS_TABLE, "referenceNumber", sa.Text(), nullable=False),
                ColumnSpec(REGISTRATIONS_TABLE, "formType", sa.Text(), nullable=False),
                ColumnSpec(REGISTRATIONS_TABLE, "formTypeOtherText", sa.Text()),
                ColumnSpec(REGISTRATIONS_TABLE, "penColourNotUsed", sa.Text(), nullable=False),
                ColumnSpec(REGISTRATIONS_TABLE, "guidanceRead", sa.Text(), nullable=False),
                ColumnSpec(REGISTRATIONS_TABLE, "createdAt", sa.DateTime(timezone=True)),
            ),
        ),
        SchemaVersion(
            version=2,
            description="Add receipt preference and contact columns",
            columns=(
                ColumnSpec(REGISTRATIONS_TABLE, "receipt_preference", sa.Text()),
                ColumnSpec(REGISTRATIONS_TABLE, "email_address", sa.Text()),
                ColumnSpec(REGISTRATIONS_TABLE, "mobile_phone_number", sa.Text()),
            ),
        ),
        SchemaVersion(
            version=3,
            description="Enforce unique reference numbers",
            indexes=(
                IndexSpec(
                    REGISTRATIONS_TABLE,
                    "ux_registrations_reference_number",
                    ("referenceNumber",),
                    unique=True,
                ),
            ),
        ),
    )
)
