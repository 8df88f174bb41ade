"""
Startup dependency checks for the SDLC Backoffice API.

The API refuses to serve until the database settings resolve, the database
answers a trivial query, and every bootstrapped table and index is present.
Each check raises StartupCheckError with a hint pointing at the fix.
"""

import logging
import sys
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import text

from sdlc_backoffice.config import settings
from sdlc_backoffice.db.connection import SessionLocal, engine
from sdlc_backoffice.db.schema import verify_schema

logger = logging.getLogger(__name__)

BANNER_WIDTH = 70


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StartupMetrics:
    """Timings recorded by run_all_startup_checks and reported by /ready."""

    started_at: datetime
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None
    environment_check_ms: Optional[float] = None
    database_check_ms: Optional[float] = None
    schema_check_ms: Optional[float] = None
    checks_passed: bool = False
    last_check_time: Optional[datetime] = None

    def as_dict(self) -> dict:
        data = asdict(self)
        del data["checks_passed"]
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data


startup_metrics = StartupMetrics(started_at=_utc_now())


class StartupCheckError(Exception):
    """A startup check failed; `hint` tells the operator what to do next."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        rule = "=" * BANNER_WIDTH
        lines = [rule, "STARTUP CHECK FAILED", rule, "", self.message]
        if self.hint:
            lines += ["", f"Hint: {self.hint}"]
        lines.append(rule)
        return "\n" + "\n".join(lines) + "\n"


def check_required_environment() -> None:
    """
    Fail when the PostgreSQL settings needed to build a DSN are blank.

    DATABASE_URL, when set, replaces the individual POSTGRES_* settings.
    """
    if settings.database_url_override:
        return

    required = {
        "POSTGRES_HOST": settings.postgres_host,
        "POSTGRES_DB": settings.postgres_db,
        "POSTGRES_USER": settings.postgres_user,
        "POSTGRES_PASSWORD": settings.postgres_password,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise StartupCheckError(
            "Database settings are incomplete, missing:\n"
            + "\n".join(f"  - {name}" for name in missing),
            "Set these variables in your .env file, or set DATABASE_URL",
        )


def _connection_hint(error: Exception) -> str:
    reason = str(error).lower()
    target = f"{settings.postgres_host}:{settings.postgres_port}"

    if "could not connect" in reason or "connection refused" in reason:
        return (
            f"PostgreSQL is not running at {target}.\n"
            "  - Start it with: docker compose up -d postgres"
        )
    if "authentication failed" in reason or "password" in reason:
        return (
            f"Database authentication failed for user '{settings.postgres_user}'.\n"
            "  - Check POSTGRES_USER and POSTGRES_PASSWORD"
        )
    if "does not exist" in reason:
        return (
            f"Database '{settings.postgres_db}' does not exist.\n"
            f"  - Create it: createdb {settings.postgres_db}"
        )
    if "timeout" in reason or "timed out" in reason:
        return f"Connecting to {target} timed out.\n  - Verify network access to it"
    return f"Check the database settings in .env\nError: {error}"


def check_database_connection() -> None:
    """
    Run `SELECT 1` against the configured database.

    Raises:
        StartupCheckError: If the database cannot be reached or answers oddly
    """
    try:
        with SessionLocal() as session:
            answer = session.execute(text("SELECT 1")).scalar()
    except Exception as e:
        raise StartupCheckError(
            "Cannot connect to database\n"
            f"Host: {settings.postgres_host}:{settings.postgres_port}\n"
            f"Database: {settings.postgres_db}",
            _connection_hint(e),
        ) from e

    if answer != 1:
        raise StartupCheckError(
            f"Database returned an unexpected result for SELECT 1: {answer!r}",
            "Verify DATABASE_URL points at a PostgreSQL or SQLite database",
        )


def check_database_schema() -> None:
    """
    Verify every required table and index exists.

    Raises:
        StartupCheckError: If the schema has not been bootstrapped
    """
    try:
        missing = verify_schema(engine)
    except Exception as e:
        raise StartupCheckError(
            f"Failed to inspect database schema: {e}",
            "Verify the database user can read the catalog",
        ) from e

    if missing:
        raise StartupCheckError(
            "Database schema is incomplete. Missing:\n"
            + "\n".join(f"  - {name}" for name in missing),
            "Run: sdlc-backoffice init-db",
        )


def run_all_startup_checks() -> None:
    """
    Run the startup checks in dependency order, recording each duration.

    The process exits with status 1 on the first failed check.
    """
    checks: list[tuple[str, Callable[[], None], str]] = [
        ("Environment", check_required_environment, "environment_check_ms"),
        ("Database connection", check_database_connection, "database_check_ms"),
        ("Database schema", check_database_schema, "schema_check_ms"),
    ]
    begun = time.perf_counter()
    rule = "=" * BANNER_WIDTH
    print(f"\n{rule}\nSDLC Backoffice API startup checks\n{rule}\n")

    for label, check, metric in checks:
        print(f"  {label}...", end=" ", flush=True)
        check_begun = time.perf_counter()
        try:
            check()
        except StartupCheckError as e:
            setattr(startup_metrics, metric, (time.perf_counter() - check_begun) * 1000)
            print("FAIL")
            print(str(e))
            logger.error(f"Startup check '{label}' failed: {e.message}")
            sys.exit(1)
        elapsed = (time.perf_counter() - check_begun) * 1000
        setattr(startup_metrics, metric, elapsed)
        print(f"ok ({elapsed:.1f}ms)")

    finished = _utc_now()
    startup_metrics.completed_at = finished
    startup_metrics.last_check_time = finished
    startup_metrics.total_duration_ms = (time.perf_counter() - begun) * 1000
    startup_metrics.checks_passed = True
    print(f"\nReady to serve ({startup_metrics.total_duration_ms:.1f}ms)\n{rule}\n")


def check_readiness() -> tuple[bool, dict]:
    """
    Readiness probe used by /ready.

    Ready means the startup checks passed and the database still answers.
    """
    database_up = False
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
        database_up = True
    except Exception as e:
        logger.warning(f"Readiness probe: database unavailable: {e}")

    ready = startup_metrics.checks_passed and database_up
    return ready, {
        "ready": ready,
        "database": "healthy" if database_up else "unhealthy",
        "startup_completed": startup_metrics.checks_passed,
        "uptime_seconds": (_utc_now() - startup_metrics.started_at).total_seconds(),
        "startup_metrics": startup_metrics.as_dict(),
    }
