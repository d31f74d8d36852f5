"""
tests/helpers.py -- Test doubles shared by unit and integration tests.

  FakeClock    -- monotonic clock advanced by hand, for FixedWindowRateLimiter
  ban_search   -- BAN search stand-in answering from a dict, recording queries
  ban_feature  -- minimal BAN GeoJSON feature
  seed_premises -- BDUK premises + OS identifier rows for USRN lookups

Constants match the environment conftest.py sets before importing the app.
"""

from typing import Any, Optional


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def ban_search(mapping: dict[str, Optional[list[dict[str, Any]]]]):
    """Return a BAN search stand-in answering from `mapping`.

    Queries absent from the mapping answer with an empty feature list.
    Every query is recorded on the returned function's `calls` list.
    """
    calls: list[str] = []

    def _search(query: str) -> Optional[list[dict[str, Any]]]:
        calls.append(query)
        return mapping.get(query, [])

    _search.calls = calls
    return _search


def ban_feature(ban_id: str, label: str = "") -> dict[str, Any]:
    return {"type": "Feature", "properties": {"id": ban_id, "label": label}}


ORIGIN = "https://datawatchman.dev"
ORIGIN_HEADERS = {"Origin": ORIGIN}
USRN_PASSWORD = "test-password"
KNOWN_USRN = "11004423"

# USRN 11004423 (KNOWN_USRN): two premises in AB1 2CD, one without a postcode.
# UPRN 20001 sits on another street and must never appear in its report.
IDENTIFIER_ROWS = [
    {"identifier_1": 10001, "identifier_2": 11004423},
    {"identifier_1": 10002, "identifier_2": 11004423},
    {"identifier_1": 10003, "identifier_2": 11004423},
    {"identifier_1": 20001, "identifier_2": 22222222},
]
PREMISE_ROWS = [
    {
        "uprn": 10002,
        "postcode": "AB1 2CD",
        "country": "England",
        "local_authority_district_ons": "Westminster",
        "region_ons": "London",
        "current_gigabit": False,
        "future_gigabit": True,
        "lot_name": "Lot 29",
        "subsidy_control_status": "White",
    },
    {
        "uprn": 10001,
        "postcode": "AB1 2CD",
        "country": "England",
        "local_authority_district_ons": "Westminster",
        "region_ons": "London",
        "current_gigabit": True,
        "future_gigabit": True,
        "lot_name": "Lot 29",
        "subsidy_control_status": "Black",
    },
    {
        "uprn": 10003,
        "postcode": None,
        "country": "England",
        "local_authority_district_ons": "Westminster",
        "region_ons": "London",
        "current_gigabit": False,
        "future_gigabit": False,
        "lot_name": None,
        "subsidy_control_status": None,
    },
    {
        "uprn": 20001,
        "postcode": "ZZ9 9ZZ",
        "country": "Scotland",
        "local_authority_district_ons": "Highland",
        "region_ons": "Scotland",
        "current_gigabit": True,
        "future_gigabit": True,
        "lot_name": None,
        "subsidy_control_status": None,
    },
]


def seed_premises(store) -> None:
    """Create the BDUK tables on a PremisesStore's engine and load the rows above."""
    store.metadata.create_all(store.engine)
    with store.engine.begin() as conn:
        conn.execute(store.premises.delete())
        conn.execute(store.identifiers.delete())
        conn.execute(store.premises.insert(), PREMISE_ROWS)
        conn.execute(store.identifiers.insert(), IDENTIFIER_ROWS)
