"""
bduk/models.py -- Domain dataclasses for the USRN broadband report.

Pure data containers. The report only exists for one request/response cycle;
nothing here is persisted.
"""

from dataclasses import dataclass
from typing import Optional

# Unique Street Reference Number: exactly 8 digits.
USRN_PATTERN = r"^\d{8}$"


@dataclass
class Premise:
    uprn: Optional[str]
    postcode: Optional[str]
    country: Optional[str]
    local_authority: Optional[str]
    region: Optional[str]
    current_gigabit: bool
    future_gigabit: bool
    lot_name: Optional[str]
    subsidy_control_status: Optional[str]


@dataclass
class PostcodeGroup:
    postcode: str
    count: int = 0
    gigabit_ready: int = 0
    future_gigabit: int = 0


@dataclass
class UsrnSummary:
    postcodes: list[PostcodeGroup]
    total_gigabit_ready: int
    total_future_gigabit: int
    region: Optional[str]
    local_authority: Optional[str]


@dataclass
class UsrnReport:
    usrn: str
    total_premises: int
    showing: int
    summary: UsrnSummary
    premises: list[Premise]
