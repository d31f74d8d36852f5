"""
bduk/store.py -- Read-only access to BDUK premises in the analytical database.

Two externally managed tables are read:
  - the BDUK premises table (one row per UPRN, with gigabit flags), and
  - the OS open identifiers table linking UPRNs (identifier_1) to the USRN of
    their street (identifier_2).

Their names come from configuration (BDUK_TABLE, OS_IDENTIFIERS_TABLE) and may
be schema-qualified ("schema.table"). The application never creates or alters
them.

The engine is created on first query and reused for the process lifetime.
Creating it lazily keeps startup fast and lets the app boot while the
analytical database is unreachable.

Security: the USRN is a bound parameter. Table names are configuration, never
request input, and are quoted by SQLAlchemy.
"""

import logging
import threading
from typing import Any, Optional

from sqlalchemy import BigInteger, Boolean, Column, MetaData, String, Table, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from bduk.models import Premise
from core.errors import ConfigurationMissing, UpstreamUnavailable

logger = logging.getLogger("datawatchman.bduk")


def _split_name(qualified: str) -> tuple[Optional[str], str]:
    schema, _, name = qualified.rpartition(".")
    return (schema or None), name


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class PremisesStore:
    def __init__(self, db_url: str, bduk_table: str, identifiers_table: str) -> None:
        missing = [
            name
            for name, value in (
                ("ANALYTICS_DB_URL", db_url),
                ("BDUK_TABLE", bduk_table),
                ("OS_IDENTIFIERS_TABLE", identifiers_table),
            )
            if not value
        ]
        if missing:
            raise ConfigurationMissing(f"USRN lookup not configured: {', '.join(missing)} unset")

        self._db_url = db_url
        self._engine: Optional[Engine] = None
        self._engine_lock = threading.Lock()

        self.metadata = MetaData()
        schema, name = _split_name(bduk_table)
        self.premises = Table(
            name,
            self.metadata,
            Column("uprn", BigInteger, primary_key=True),
            Column("postcode", String),
            Column("country", String),
            Column("local_authority_district_ons", String),
            Column("region_ons", String),
            Column("current_gigabit", Boolean),
            Column("future_gigabit", Boolean),
            Column("lot_name", String),
            Column("subsidy_control_status", String),
            schema=schema,
        )
        schema, name = _split_name(identifiers_table)
        self.identifiers = Table(
            name,
            self.metadata,
            Column("identifier_1", BigInteger),  # UPRN
            Column("identifier_2", BigInteger),  # USRN
            schema=schema,
        )

    @property
    def engine(self) -> Engine:
        """The cached engine, created on first use."""
        if self._engine is None:
            with self._engine_lock:
                if self._engine is None:
                    connect_args: dict = {}
                    if self._db_url.startswith("sqlite"):
                        connect_args["check_same_thread"] = False
                    try:
                        self._engine = create_engine(self._db_url, connect_args=connect_args)
                    except (SQLAlchemyError, ImportError) as exc:
                        logger.error("Failed to create analytics engine: %s", exc)
                        raise UpstreamUnavailable("analytics database connection failed") from exc
        return self._engine

    def premises_for_usrn(self, usrn: str) -> list[Premise]:
        """All BDUK premises on a street, ordered by UPRN.

        The ordering makes repeated lookups against an unchanged dataset
        return identical lists.
        """
        p, ids = self.premises, self.identifiers
        stmt = (
            select(
                p.c.uprn,
                p.c.postcode,
                p.c.country,
                p.c.local_authority_district_ons.label("local_authority"),
                p.c.region_ons.label("region"),
                p.c.current_gigabit,
                p.c.future_gigabit,
                p.c.lot_name,
                p.c.subsidy_control_status,
            )
            .select_from(p.join(ids, p.c.uprn == ids.c.identifier_1))
            .where(ids.c.identifier_2 == int(usrn))
            .order_by(p.c.uprn)
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("USRN query failed for %s: %s", usrn, exc)
            raise UpstreamUnavailable("analytics database query failed") from exc

        return [
            Premise(
                uprn=_text(row["uprn"]),
                postcode=_text(row["postcode"]),
                country=_text(row["country"]),
                local_authority=_text(row["local_authority"]),
                region=_text(row["region"]),
                current_gigabit=bool(row["current_gigabit"]),
                future_gigabit=bool(row["future_gigabit"]),
                lot_name=_text(row["lot_name"]),
                subsidy_control_status=_text(row["subsidy_control_status"]),
            )
            for row in rows
        ]

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
