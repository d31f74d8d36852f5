"""Unit tests for bduk/summary.py -- summarize_premises."""

from bduk.models import Premise
from bduk.summary import summarize_premises


def _premise(uprn, postcode, current, future, region="London", lad="Camden") -> Premise:
    return Premise(
        uprn=uprn,
        postcode=postcode,
        country="England",
        local_authority=lad,
        region=region,
        current_gigabit=current,
        future_gigabit=future,
        lot_name=None,
        subsidy_control_status=None,
    )


def test_groups_by_postcode_in_first_seen_order():
    premises = [
        _premise("3", "NW1 2AA", True, True),
        _premise("1", "NW1 1AA", False, True),
        _premise("2", "NW1 2AA", False, False),
    ]
    report = summarize_premises("12345678", premises)

    assert [g.postcode for g in report.summary.postcodes] == ["NW1 2AA", "NW1 1AA"]
    first = report.summary.postcodes[0]
    assert (first.count, first.gigabit_ready, first.future_gigabit) == (2, 1, 1)
    second = report.summary.postcodes[1]
    assert (second.count, second.gigabit_ready, second.future_gigabit) == (1, 0, 1)


def test_totals_and_area_from_first_premise():
    premises = [
        _premise("1", "A", True, True, region="London", lad="Camden"),
        _premise("2", "A", True, False, region="Elsewhere", lad="Other"),
    ]
    report = summarize_premises("12345678", premises)

    assert report.usrn == "12345678"
    assert report.total_premises == 2
    assert report.showing == 2
    assert report.summary.total_gigabit_ready == 2
    assert report.summary.total_future_gigabit == 1
    assert report.summary.region == "London"
    assert report.summary.local_authority == "Camden"
    assert report.premises == premises


def test_missing_postcode_grouped_as_unknown():
    report = summarize_premises("12345678", [_premise("1", None, False, False), _premise("2", "", False, True)])
    assert len(report.summary.postcodes) == 1
    assert report.summary.postcodes[0].postcode == "Unknown"
    assert report.summary.postcodes[0].count == 2


def test_empty_premises():
    report = summarize_premises("12345678", [])
    assert report.total_premises == 0
    assert report.summary.postcodes == []
    assert report.summary.region is None
    assert report.summary.local_authority is None


def test_future_count_includes_already_ready_premises():
    """Both flags are counted independently; a premise can be in both totals."""
    report = summarize_premises("12345678", [_premise("1", "A", True, True)])
    assert report.summary.total_gigabit_ready == 1
    assert report.summary.total_future_gigabit == 1
