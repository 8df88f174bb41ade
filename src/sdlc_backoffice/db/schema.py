"""
Idempotent schema bootstrap.

Creates every table and index declared on the ORM metadata if it is absent.
Running it against an initialized database is a no-op. Any failure, most
importantly a unique index that cannot be built over conflicting rows, aborts
the whole bootstrap inside one transaction and is raised as BootstrapError.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import Index, inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from sdlc_backoffice.exceptions import BootstrapError
from sdlc_backoffice.models.db import Base

logger = logging.getLogger(__name__)

# Indexes the query paths depend on. Bootstrap creates whatever the metadata
# declares; startup checks refuse to serve if any of these is missing.
REQUIRED_INDEXES: dict[str, tuple[str, ...]] = {
    "projects": (
        "idx_projects_jira_project_key_unique",
        "idx_projects_name",
        "idx_projects_created_at_desc",
    ),
    "webhook_events": (
        "idx_webhook_events_jira_issue_id",
        "idx_webhook_events_jira_issue_key",
        "idx_webhook_events_jira_project_key",
        "idx_webhook_events_created_at_desc",
        "idx_webhook_events_status_created_at",
    ),
    "developments": (
        "idx_developments_project_id",
        "idx_developments_jira_issue_id",
        "idx_developments_jira_issue_key",
        "idx_developments_jira_project_key",
        "idx_developments_status_created_at",
        "idx_developments_project_status_created_at",
    ),
}


@dataclass
class BootstrapReport:
    """What a bootstrap run created and what it found already in place."""

    created_tables: list[str] = field(default_factory=list)
    existing_tables: list[str] = field(default_factory=list)
    created_indexes: list[str] = field(default_factory=list)
    existing_indexes: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created_tables or self.created_indexes)


def _index_columns(index: Index) -> list[str]:
    """Column names of an index, ignoring sort direction."""
    names = []
    for expression in index.expressions:
        element = getattr(expression, "element", expression)
        names.append(getattr(element, "name", str(element)))
    return names


def _check_definition(index: Index, reflected: dict) -> None:
    """Refuse an existing index whose name matches but definition does not."""
    reflected_columns = [c for c in reflected.get("column_names") or [] if c]
    expected_columns = _index_columns(index)

    if reflected_columns and reflected_columns != expected_columns:
        raise BootstrapError(
            f"Index exists with different columns {reflected_columns}, "
            f"expected {expected_columns}",
            index.name,
        )
    if bool(reflected.get("unique")) != bool(index.unique):
        raise BootstrapError(
            f"Index exists with unique={bool(reflected.get('unique'))}, "
            f"expected unique={bool(index.unique)}",
            index.name,
        )


def _bootstrap(connection: Connection, report: BootstrapReport) -> None:
    for table in Base.metadata.sorted_tables:
        table_indexes = sorted(table.indexes, key=lambda ix: ix.name or "")

        if not inspect(connection).has_table(table.name):
            try:
                # Table.create also emits CREATE INDEX for its indexes
                table.create(connection)
            except SQLAlchemyError as e:
                raise BootstrapError(
                    f"Failed to create table: {e}", table.name
                ) from e
            report.created_tables.append(table.name)
            report.created_indexes.extend(ix.name for ix in table_indexes)
            logger.info(f"Created table {table.name}")
            continue

        report.existing_tables.append(table.name)
        reflected = {
            ix["name"]: ix for ix in inspect(connection).get_indexes(table.name)
        }

        for index in table_indexes:
            if index.name in reflected:
                _check_definition(index, reflected[index.name])
                report.existing_indexes.append(index.name)
                continue

            try:
                index.create(connection)
            except SQLAlchemyError as e:
                raise BootstrapError(
                    f"Failed to create index on {table.name}: {e}", index.name
                ) from e
            report.created_indexes.append(index.name)
            logger.info(f"Created index {index.name} on {table.name}")


def bootstrap_schema(engine: Engine) -> BootstrapReport:
    """
    Create all tables and indexes that do not exist yet.

    Args:
        engine: Engine bound to the target database

    Returns:
        BootstrapReport describing created and pre-existing objects

    Raises:
        BootstrapError: If any table or index cannot be created, or an
            existing index conflicts with its declared definition
    """
    report = BootstrapReport()
    try:
        with engine.begin() as connection:
            _bootstrap(connection, report)
    except BootstrapError:
        logger.error("Schema bootstrap aborted", exc_info=True)
        raise
    except SQLAlchemyError as e:
        logger.error("Schema bootstrap aborted", exc_info=True)
        raise BootstrapError(f"Database error during bootstrap: {e}") from e

    logger.info(
        "Schema bootstrap complete: %d tables created, %d indexes created",
        len(report.created_tables),
        len(report.created_indexes),
    )
    return report


def verify_schema(engine: Engine) -> list[str]:
    """
    Find required tables and indexes missing from the database.

    Args:
        engine: Engine bound to the target database

    Returns:
        Missing object names as "table" or "table.index"; empty when complete
    """
    missing: list[str] = []
    with engine.connect() as connection:
        inspector = inspect(connection)
        for table_name, index_names in REQUIRED_INDEXES.items():
            if not inspector.has_table(table_name):
                missing.append(table_name)
                continue
            present = {ix["name"] for ix in inspector.get_indexes(table_name)}
            missing.extend(
                f"{table_name}.{name}" for name in index_names if name not in present
            )
    return missing
