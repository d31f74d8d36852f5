"""
reports/models.py -- Domain dataclass for a missing-identifier report.

A pure data container. Validation of user input happens at the API boundary
(api/models.py); persistence lives in reports/store.py.
"""

from dataclasses import dataclass
from typing import Optional

DATASET_OWNERS = (
    "Public Sector",
    "Private Sector",
    "Academic/Research",
    "Non-profit",
    "Other",
)

MISSING_TYPES = ("Both", "USRN", "UPRN")


@dataclass
class Submission:
    """A report that a dataset lacks USRN and/or UPRN identifiers.

    missing_type keeps the user-facing spelling (Both | USRN | UPRN); the store
    lowercases it on write.
    """

    dataset_name: str
    dataset_url: str
    dataset_owner: str
    owner_name: str
    description: str
    missing_type: str
    sector: str
    job_title: Optional[str] = None
