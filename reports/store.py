"""
reports/store.py -- SQLAlchemy-backed append-only store for submitted reports.

Uses SQLAlchemy Core (not ORM) so the Submission dataclass in reports/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

The store exposes insert, count and ping only. Rows are never updated or deleted by
this application.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = SubmissionStore("postgresql://user:pw@host/db")
    submission_id, created_at = store.insert(submission)
    store.close()
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import UpstreamUnavailable
from reports.models import Submission

logger = logging.getLogger("datawatchman.reports")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_submissions = Table(
    "submissions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("dataset_name", String(255), nullable=False),
    Column("dataset_url", Text, nullable=False),
    Column("dataset_owner", String(50), nullable=False),
    Column("owner_name", String(255), nullable=False),
    Column("description", String(500), nullable=False),
    Column("missing_type", String(10), nullable=False),  # both | usrn | uprn
    Column("job_title", String(255)),
    Column("sector", String(50), nullable=False),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SubmissionStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Route handlers run in a thread pool; the same connection may be
            # used from a thread other than the one that opened it.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        metadata.create_all(self.engine)

    def insert(self, submission: Submission) -> tuple[int, str]:
        """Append one report. Returns (id, created_at ISO timestamp).

        Raises UpstreamUnavailable if the database rejects the write or cannot
        be reached.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _submissions.insert().values(
                        dataset_name=submission.dataset_name,
                        dataset_url=submission.dataset_url,
                        dataset_owner=submission.dataset_owner,
                        owner_name=submission.owner_name,
                        description=submission.description,
                        missing_type=submission.missing_type.lower(),
                        job_title=submission.job_title or None,
                        sector=submission.sector,
                        created_at=created_at,
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0], created_at
        except SQLAlchemyError as exc:
            logger.error("Submission insert failed: %s", exc)
            raise UpstreamUnavailable("submissions database write failed") from exc

    def count(self) -> int:
        """Number of stored reports."""
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_submissions)).scalar_one()

    def ping(self) -> bool:
        """True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
            return True
        except SQLAlchemyError:
            logger.warning("Submissions database health check failed", exc_info=True)
            return False

    def close(self) -> None:
        self.engine.dispose()
