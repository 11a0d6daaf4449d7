"""Startup schema migration for the registration store.

Brings a store at any earlier shape up to the latest catalog version:

- creates missing tables from the columns of the version that introduced them
- adds every declared column that the live table lacks
- creates every declared index that the live table lacks
- checks that every declared column is now live
- records applied versions in ``schema_versions``

Decisions are made from live metadata only, so the pass is idempotent and
also correct for stores that never had a version marker. Nothing is ever
dropped, renamed, retyped or copied between columns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Connection, Engine

from paper_intake.errors import MigrationFailure
from paper_intake.models.schema_catalog import (
    REGISTRATION_SCHEMA,
    SCHEMA_VERSIONS_TABLE,
    IndexSpec,
    SchemaCatalog,
)

logger = logging.getLogger(__name__)


def _version_marker_columns() -> list[sa.Column]:
    return [
        sa.Column("version", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
    ]


schema_versions = sa.Table(
    SCHEMA_VERSIONS_TABLE, sa.MetaData(), *_version_marker_columns()
)


@dataclass
class MigrationReport:
    """What a migration pass changed"""

    created_tables: list[str] = field(default_factory=list)
    added_columns: list[tuple[str, str]] = field(default_factory=list)
    created_indexes: list[str] = field(default_factory=list)
    recorded_versions: list[int] = field(default_factory=list)
    latest_version: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created_tables or self.added_columns or self.created_indexes)


class MigrationManager:
    """Applies the schema catalog to a live store"""

    def __init__(self, engine: Engine, catalog: SchemaCatalog = REGISTRATION_SCHEMA):
        self.engine = engine
        self.catalog = catalog

    def ensure_latest_schema(self) -> MigrationReport:
        """Apply every missing table, column and index in one transaction.

        Raises:
            MigrationFailure: If any step fails. The store may be left at an
                earlier shape but never a partially altered table on backends
                with transactional DDL.
        """
        logger.info("Running database migrations...")
        try:
            with self.engine.begin() as connection:
                report = self._migrate(connection)
        except Exception as e:
            logger.error(f"Database migration failed: {type(e).__name__}: {e}")
            raise MigrationFailure(f"Schema migration failed: {e}") from e

        if report.changed:
            logger.info(
                f"Migrations completed: tables={report.created_tables} "
                f"columns={report.added_columns} indexes={report.created_indexes}"
            )
        else:
            logger.info("Migrations completed: schema already up to date")
        return report

    def applied_versions(self) -> list[int]:
        """Versions recorded by earlier migration passes, ascending"""
        with self.engine.connect() as connection:
            if not sa.inspect(connection).has_table(SCHEMA_VERSIONS_TABLE):
                return []
            rows = connection.execute(
                sa.select(schema_versions.c.version).order_by(schema_versions.c.version)
            )
            return [row[0] for row in rows]

    # Migration steps
    def _migrate(self, connection: Connection) -> MigrationReport:
        ops = Operations(MigrationContext.configure(connection))
        report = MigrationReport(latest_version=self.catalog.latest_version())

        self._create_missing_tables(connection, ops, report)
        self._add_missing_columns(connection, ops, report)
        self._create_missing_indexes(connection, ops, report)
        self._verify_columns(connection)
        self._record_versions(connection, ops, report)
        return report

    def _create_missing_tables(
        self, connection: Connection, ops: Operations, report: MigrationReport
    ) -> None:
        inspector = sa.inspect(connection)
        for table_name in self.catalog.tables():
            if inspector.has_table(table_name):
                logger.debug(f"Table {table_name} already exists")
                continue
            columns = [c.to_column() for c in self.catalog.initial_columns(table_name)]
            logger.info(f"Creating table: {table_name}")
            ops.create_table(table_name, *columns)
            report.created_tables.append(table_name)

    def _add_missing_columns(
        self, connection: Connection, ops: Operations, report: MigrationReport
    ) -> None:
        existing: dict[str, set[str]] = {}
        for version in self.catalog.versions:
            for spec in version.columns:
                if spec.table_name not in existing:
                    existing[spec.table_name] = self._existing_columns(
                        connection, spec.table_name
                    )
                present = existing[spec.table_name]
                if spec.column_name in present:
                    logger.debug(
                        f"Column {spec.column_name} already exists in {spec.table_name}"
                    )
                    continue
                logger.info(
                    f"Adding column: {spec.column_name} to table: {spec.table_name} "
                    f"(schema v{version.version})"
                )
                ops.add_column(spec.table_name, spec.to_column(for_alter=True))
                present.add(spec.column_name)
                report.added_columns.append((spec.table_name, spec.column_name))

    def _create_missing_indexes(
        self, connection: Connection, ops: Operations, report: MigrationReport
    ) -> None:
        for version in self.catalog.versions:
            for spec in version.indexes:
                if self._index_exists(connection, spec):
                    logger.debug(f"Index {spec.index_name} already exists")
                    continue
                logger.info(
                    f"Creating index: {spec.index_name} on {spec.table_name} "
                    f"(schema v{version.version})"
                )
                ops.create_index(
                    spec.index_name,
                    spec.table_name,
                    list(spec.columns),
                    unique=spec.unique,
                )
                report.created_indexes.append(spec.index_name)

    def _verify_columns(self, connection: Connection) -> None:
        """Refuse to record versions unless every declared column is live"""
        for table_name in self.catalog.tables():
            present = self._existing_columns(connection, table_name)
            missing = [
                c.column_name
                for c in self.catalog.columns_for(table_name)
                if c.column_name not in present
            ]
            if missing:
                raise RuntimeError(f"Table {table_name} still lacks columns: {missing}")

    def _record_versions(
        self, connection: Connection, ops: Operations, report: MigrationReport
    ) -> None:
        if not sa.inspect(connection).has_table(SCHEMA_VERSIONS_TABLE):
            ops.create_table(SCHEMA_VERSIONS_TABLE, *_version_marker_columns())

        recorded = {
            row[0] for row in connection.execute(sa.select(schema_versions.c.version))
        }
        now = datetime.now(timezone.utc)
        rows = [
            {
                "version": version.version,
                "description": version.description,
                "applied_at": now,
            }
            for version in self.catalog.versions
            if version.version not in recorded
        ]
        if rows:
            connection.execute(schema_versions.insert(), rows)
            report.recorded_versions.extend(row["version"] for row in rows)

    # Live metadata
    @staticmethod
    def _existing_columns(connection: Connection, table_name: str) -> set[str]:
        inspector = sa.inspect(connection)
        if not inspector.has_table(table_name):
            return set()
        return {column["name"] for column in inspector.get_columns(table_name)}

    @staticmethod
    def _index_exists(connection: Connection, spec: IndexSpec) -> bool:
        inspector = sa.inspect(connection)
        wanted = list(spec.columns)
        for index in inspector.get_indexes(spec.table_name):
            if index["name"] == spec.index_name:
                return True
            if bool(index.get("unique")) == spec.unique and index["column_names"] == wanted:
                return True
        if spec.unique:
            for constraint in inspector.get_unique_constraints(spec.table_name):
                if constraint["column_names"] == wanted:
                    return True
        return False
