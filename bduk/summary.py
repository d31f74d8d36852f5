"""
bduk/summary.py -- Aggregate a street's premises into the USRN report.

Pure function, no I/O. Postcode groups appear in the order their first premise
appears, so a deterministic premises list gives a deterministic summary.
"""

from bduk.models import Premise, PostcodeGroup, UsrnReport, UsrnSummary


def summarize_premises(usrn: str, premises: list[Premise]) -> UsrnReport:
    """Group premises by postcode and count gigabit-ready and planned premises."""
    groups: dict[str, PostcodeGroup] = {}
    for premise in premises:
        postcode = premise.postcode or "Unknown"
        group = groups.setdefault(postcode, PostcodeGroup(postcode=postcode))
        group.count += 1
        if premise.current_gigabit:
            group.gigabit_ready += 1
        if premise.future_gigabit:
            group.future_gigabit += 1

    first = premises[0] if premises else None
    summary = UsrnSummary(
        postcodes=list(groups.values()),
        total_gigabit_ready=sum(1 for p in premises if p.current_gigabit),
        total_future_gigabit=sum(1 for p in premises if p.future_gigabit),
        region=first.region if first else None,
        local_authority=first.local_authority if first else None,
    )
    return UsrnReport(
        usrn=usrn,
        total_premises=len(premises),
        showing=len(premises),
        summary=summary,
        premises=premises,
    )
