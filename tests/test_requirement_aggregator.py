"""
Roster compliance aggregation tests (legal readiness).
"""

from datetime import date, timedelta

from shiftgate.services.readiness.requirement_aggregator import (
    aggregate_compliance,
    build_compliance_overview,
    top_n,
)
from shiftgate.services.readiness.types import (
    ApplicabilityRule,
    ComplianceRecord,
    EmployeeRecord,
    Requirement,
)

TODAY = date(2026, 3, 2)

ALICE = EmployeeRecord(id="a", name="Alice", employee_number="E-001", line="L1")
BOB = EmployeeRecord(id="b", name="Bob", employee_number="E-002", line="L2")
MED = Requirement(id="r-med", code="MED", name="Medical check", category="medical")


def _aggregate(employees, catalog, records, rules=None, **kwargs):
    return aggregate_compliance(employees, catalog, records, rules or {}, as_of=TODAY, **kwargs)


def test_missing_and_expiring_scenario() -> None:
    """A has no record (missing), B expires in 5 days → LEGAL_NO_GO."""
    records = [ComplianceRecord("b", "r-med", valid_to=TODAY + timedelta(days=5))]
    agg = _aggregate([ALICE, BOB], [MED], records)

    assert agg.readiness_flag == "LEGAL_NO_GO"
    assert agg.requirements[0].to_dict()["missing_affected_employee_count"] == 1
    assert agg.requirements[0].to_dict()["expiring_affected_employee_count"] == 1
    statuses = agg.employee_status_by_id()
    assert statuses == {"a": "LEGAL_BLOCKED", "b": "LEGAL_WARNING"}
    assert agg.employees[0].employee_id == "a"
    assert agg.kpis.blocking_count == 1
    assert agg.kpis.expiring_count == 1
    assert agg.kpis.roster_employee_count == 2


def test_waiving_blocker_downgrades_to_warning() -> None:
    records = [
        ComplianceRecord("a", "r-med", valid_to=None, waived=True),
        ComplianceRecord("b", "r-med", valid_to=TODAY + timedelta(days=5)),
    ]
    agg = _aggregate([ALICE, BOB], [MED], records)

    assert agg.readiness_flag == "LEGAL_WARNING"
    assert agg.employee_status_by_id()["a"] == "LEGAL_OK"
    assert agg.kpis.healthy_count == 1


def test_adding_healthy_records_never_lowers_no_go() -> None:
    other = Requirement(id="r-fire", code="FIRE", name="Fire safety")
    base = [ComplianceRecord("b", "r-med", valid_to=TODAY + timedelta(days=90))]
    assert _aggregate([ALICE, BOB], [MED, other], base).readiness_flag == "LEGAL_NO_GO"

    more = base + [
        ComplianceRecord("b", "r-fire", valid_to=TODAY + timedelta(days=365)),
        ComplianceRecord("a", "r-fire", waived=True),
    ]
    assert _aggregate([ALICE, BOB], [MED, other], more).readiness_flag == "LEGAL_NO_GO"


def test_all_healthy_is_go() -> None:
    records = [
        ComplianceRecord("a", "r-med", valid_to=TODAY + timedelta(days=200)),
        ComplianceRecord("b", "r-med", waived=True),
    ]
    agg = _aggregate([ALICE, BOB], [MED], records)
    assert agg.readiness_flag == "LEGAL_GO"
    assert agg.expiring_sample == []


def test_empty_roster_is_vacuously_go() -> None:
    agg = _aggregate([], [], [])
    assert agg.readiness_flag == "LEGAL_GO"
    assert agg.kpis.to_dict() == {
        "roster_employee_count": 0,
        "blocking_count": 0,
        "non_blocking_count": 0,
        "healthy_count": 0,
        "requirement_count": 0,
        "expired_count": 0,
        "expiring_count": 0,
    }
    assert agg.requirements == [] and agg.employees == [] and agg.rows == []


def test_inactive_only_roster_still_reports_catalog_size() -> None:
    inactive = EmployeeRecord(id="x", name="Xavier", is_active=False)
    retired = Requirement(id="r-old", code="OLD", name="Retired", is_active=False)
    agg = _aggregate([inactive], [MED, retired], [])
    assert agg.readiness_flag == "LEGAL_GO"
    assert agg.kpis.roster_employee_count == 0
    assert agg.kpis.requirement_count == 1
    assert agg.employees == [] and agg.rows == []


def test_employee_without_applicable_requirements_is_listed_ok() -> None:
    rules = {"r-med": [ApplicabilityRule("r-med", applies_to_line="L9")]}
    agg = _aggregate([ALICE], [MED], [], rules)
    assert agg.readiness_flag == "LEGAL_GO"
    assert [e.to_dict()["status"] for e in agg.employees] == ["LEGAL_OK"]
    assert agg.requirements == []


def test_inactive_employees_and_requirements_are_skipped() -> None:
    inactive_emp = EmployeeRecord(id="x", name="Xavier", is_active=False)
    inactive_req = Requirement(id="r-old", code="OLD", name="Retired", is_active=False)
    agg = _aggregate([ALICE, inactive_emp], [MED, inactive_req], [])
    assert agg.kpis.roster_employee_count == 1
    assert agg.kpis.requirement_count == 1
    assert [r.requirement_code for r in agg.requirements] == ["MED"]


def test_requirement_sort_by_affected_then_code() -> None:
    reqs = [
        Requirement(id="r1", code="ZZZ", name="z"),
        Requirement(id="r2", code="AAA", name="a"),
        Requirement(id="r3", code="MMM", name="m"),
    ]
    records = [
        # r1: both missing; r2: only a missing; r3: only b missing
        ComplianceRecord("b", "r2", valid_to=TODAY + timedelta(days=100)),
        ComplianceRecord("a", "r3", valid_to=TODAY + timedelta(days=100)),
    ]
    agg = _aggregate([ALICE, BOB], reqs, records)
    assert [r.requirement_code for r in agg.requirements] == ["ZZZ", "AAA", "MMM"]


def test_employee_sort_by_severity_then_name() -> None:
    carol = EmployeeRecord(id="c", name="Carol")
    dave = EmployeeRecord(id="d", name="Dave")
    records = [
        ComplianceRecord("d", "r-med", valid_to=TODAY + timedelta(days=3)),
        ComplianceRecord("a", "r-med", valid_to=TODAY + timedelta(days=300)),
    ]
    agg = _aggregate([ALICE, BOB, carol, dave], [MED], records)
    assert [e.employee_name for e in agg.employees] == ["Bob", "Carol", "Dave", "Alice"]


def test_truncation_keeps_most_severe() -> None:
    employees = [EmployeeRecord(id=f"e{i:02d}", name=f"Emp {i:02d}") for i in range(6)]
    records = [
        ComplianceRecord(e.id, "r-med", valid_to=TODAY + timedelta(days=300))
        for e in employees[:4]
    ]
    agg = _aggregate(employees, [MED], records)
    for n in range(len(agg.employees) + 2):
        kept, has_more = top_n(agg.employees, n)
        assert kept == agg.employees[:n]
        assert has_more == (len(agg.employees) > n)
    top_two, _ = top_n(agg.employees, 2)
    assert {e.employee_id for e in top_two} == {"e04", "e05"}


def test_expiring_sample_order_and_cap() -> None:
    employees = [EmployeeRecord(id=f"e{i}", name=f"Emp {i}") for i in range(4)]
    records = [
        ComplianceRecord("e0", "r-med", valid_to=TODAY + timedelta(days=20)),
        ComplianceRecord("e1", "r-med", valid_to=TODAY - timedelta(days=1)),
        ComplianceRecord("e2", "r-med", valid_to=TODAY + timedelta(days=2)),
        ComplianceRecord("e3", "r-med", valid_to=TODAY - timedelta(days=30)),
    ]
    agg = _aggregate(employees, [MED], records, expiring_sample_size=3)
    sample = agg.expiring_sample
    assert [s["employee_id"] for s in sample] == ["e3", "e1", "e2"]
    assert sample[0]["status"] == "expired"
    assert sample[0]["compliance_name"] == "Medical check"


def test_duplicate_records_last_one_wins_and_sets_dedupe() -> None:
    records = [
        ComplianceRecord("a", "r-med", valid_to=TODAY - timedelta(days=1)),
        ComplianceRecord("a", "r-med", valid_to=TODAY + timedelta(days=100)),
    ]
    agg = _aggregate([ALICE], [MED], records)
    assert agg.readiness_flag == "LEGAL_GO"
    assert len(agg.rows) == 1


def test_overview_kpis_and_filters() -> None:
    records = [ComplianceRecord("b", "r-med", valid_to=TODAY + timedelta(days=5))]
    fire = Requirement(id="r-fire", code="FIRE", name="Fire safety", category="safety")
    records.append(ComplianceRecord("a", "r-fire", valid_to=TODAY + timedelta(days=300)))
    records.append(ComplianceRecord("b", "r-fire", valid_to=TODAY + timedelta(days=300)))

    overview = build_compliance_overview(
        [ALICE, BOB], [MED, fire], records, {}, as_of=TODAY, status_filter="expiring"
    )
    assert overview.kpis == {
        "legal_stoppers": {"employees": 1, "total_items": 1},
        "expiring_soon": {"employees": 1, "total_items": 1},
        "healthy": {"employees": 2, "total_items": 2},
    }
    assert [(r["employee_name"], r["compliance_code"]) for r in overview.rows] == [("Bob", "MED")]
    assert overview.rows[0]["days_left"] == 5


def test_overview_search_excludes_before_counting() -> None:
    overview = build_compliance_overview(
        [ALICE, BOB], [MED], [], {}, as_of=TODAY, search="e-002"
    )
    assert overview.kpis["legal_stoppers"] == {"employees": 1, "total_items": 1}
    assert [r["employee_id"] for r in overview.rows] == ["b"]


def test_overview_row_shape_and_site_name() -> None:
    emp = EmployeeRecord(id="a", first_name="Ann", last_name="Lee", team="Assembly", site_id="s1")
    lone = EmployeeRecord(id="z", name="Zed", site_id="s-unknown")
    overview = build_compliance_overview(
        [emp, lone], [MED], [], {}, site_names={"s1": "Plant North"}, as_of=TODAY
    )
    rows = {r["employee_id"]: r for r in overview.rows}
    assert rows["a"]["employee_name"] == "Ann Lee"
    assert rows["a"]["department"] == "Assembly"
    assert rows["a"]["site_name"] == "Plant North"
    assert rows["z"]["site_name"] == "Unknown site"
    assert rows["a"]["status"] == "missing"
    assert rows["a"]["days_left"] is None
