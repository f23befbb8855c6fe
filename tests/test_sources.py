"""
SQLAlchemy readiness sources tests (in-memory SQLite).
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from shiftgate.models import (
    ComplianceApplicability,
    ComplianceCatalog,
    Employee,
    EmployeeCompliance,
    EmployeeRole,
    EmployeeSkill,
    MachineDemand,
    Role,
    Shift,
    ShiftAssignment,
    Site,
    Skill,
    Station,
    StationSkillRequirement,
)
from shiftgate.services.readiness.errors import UpstreamDataError
from shiftgate.services.readiness.sources import (
    ReadinessSources,
    SqlCatalogSource,
    SqlRosterResolver,
    SqlSkillSource,
)

SHIFT_DATE = date(2026, 3, 2)


@pytest.fixture
def seeded(db: Session) -> dict:
    """One org with two sites, a few employees, shifts, stations, skills and compliance rows."""
    org = uuid.uuid4()
    other_org = uuid.uuid4()
    ids: dict = {"org": org}

    north = Site(org_id=org, name="Plant North")
    south = Site(org_id=org, name="Plant South")
    db.add_all([north, south])
    db.flush()
    ids["north"], ids["south"] = north.id, south.id

    alice = Employee(org_id=org, site_id=north.id, name="Alice", line="L1", employee_number="E-1")
    bob = Employee(org_id=org, site_id=None, first_name="Bob", last_name="Berg", line="L2")
    carl = Employee(org_id=org, site_id=south.id, name="Carl")
    dora = Employee(org_id=org, site_id=north.id, name="Dora")
    gone = Employee(org_id=org, site_id=north.id, name="Gone", is_active=False)
    stranger = Employee(org_id=other_org, site_id=None, name="Stranger")
    db.add_all([alice, bob, carl, dora, gone, stranger])
    db.flush()
    for name, emp in [("alice", alice), ("bob", bob), ("carl", carl), ("dora", dora), ("gone", gone)]:
        ids[name] = emp.id

    operator = Role(org_id=org, code="OPERATOR")
    lead = Role(org_id=org, code="LEAD")
    db.add_all([operator, lead])
    db.flush()
    db.add_all(
        [
            EmployeeRole(org_id=org, employee_id=alice.id, role_id=operator.id, is_primary=True),
            EmployeeRole(org_id=org, employee_id=bob.id, role_id=lead.id, is_primary=False),
        ]
    )

    weld = Station(org_id=org, code="WELD-1", name="Welding 1", line="L1")
    pack = Station(org_id=org, code="PACK-1", name="Packing 1", line="L1")
    retired = Station(org_id=org, code="OLD-1", is_active=False)
    db.add_all([weld, pack, retired])
    db.flush()
    ids["weld"], ids["pack"] = weld.id, pack.id

    day_north = Shift(org_id=org, site_id=north.id, shift_date=SHIFT_DATE, shift_code="Day")
    day_any = Shift(org_id=org, site_id=None, shift_date=SHIFT_DATE, shift_code="Day")
    day_south = Shift(org_id=org, site_id=south.id, shift_date=SHIFT_DATE, shift_code="Day")
    night_north = Shift(org_id=org, site_id=north.id, shift_date=SHIFT_DATE, shift_code="Night")
    day_tomorrow = Shift(
        org_id=org, site_id=north.id, shift_date=SHIFT_DATE + timedelta(days=1), shift_code="Day"
    )
    db.add_all([day_north, day_any, day_south, night_north, day_tomorrow])
    db.flush()
    db.add_all(
        [
            ShiftAssignment(org_id=org, shift_id=day_north.id, station_id=weld.id, employee_id=alice.id),
            ShiftAssignment(org_id=org, shift_id=day_north.id, station_id=pack.id, employee_id=alice.id),
            ShiftAssignment(org_id=org, shift_id=day_north.id, station_id=pack.id, employee_id=None),
            ShiftAssignment(org_id=org, shift_id=day_any.id, station_id=weld.id, employee_id=bob.id),
            ShiftAssignment(org_id=org, shift_id=day_south.id, station_id=weld.id, employee_id=carl.id),
            ShiftAssignment(org_id=org, shift_id=night_north.id, station_id=weld.id, employee_id=dora.id),
            ShiftAssignment(org_id=org, shift_id=day_tomorrow.id, station_id=weld.id, employee_id=dora.id),
        ]
    )

    med = ComplianceCatalog(org_id=org, category="medical", code="MED", name="Medical check")
    fork = ComplianceCatalog(org_id=org, category="licence", code="FORK", name="Forklift licence")
    old = ComplianceCatalog(org_id=org, category="medical", code="OLD", name="Old", is_active=False)
    db.add_all([med, fork, old])
    db.flush()
    ids["med"], ids["fork"] = med.id, fork.id
    db.add(ComplianceApplicability(org_id=org, compliance_id=fork.id, applies_to_line="L1"))
    db.add_all(
        [
            EmployeeCompliance(
                org_id=org, employee_id=alice.id, compliance_id=med.id,
                valid_to=SHIFT_DATE + timedelta(days=90),
            ),
            EmployeeCompliance(org_id=org, employee_id=bob.id, compliance_id=med.id, waived=True),
        ]
    )

    welding = Skill(org_id=org, code="WELDING")
    nameless = Skill(org_id=org, code=None)
    db.add_all([welding, nameless])
    db.flush()
    ids["welding"], ids["nameless"] = welding.id, nameless.id
    db.add_all(
        [
            StationSkillRequirement(org_id=org, station_id=weld.id, skill_id=welding.id, required_level=2),
            StationSkillRequirement(
                org_id=org, station_id=pack.id, skill_id=nameless.id, is_mandatory=False
            ),
            EmployeeSkill(org_id=org, employee_id=alice.id, skill_id=welding.id, level=3),
            EmployeeSkill(org_id=org, employee_id=bob.id, skill_id=welding.id, level=None),
        ]
    )
    db.add_all(
        [
            MachineDemand(org_id=org, station_id=weld.id, plan_date=SHIFT_DATE, shift_code="Day"),
            MachineDemand(org_id=org, station_id=weld.id, plan_date=SHIFT_DATE, shift_code="Night"),
        ]
    )
    db.commit()
    return ids


def _s(value: uuid.UUID) -> str:
    return str(value)


def test_roster_resolves_site_and_siteless_shifts(db: Session, seeded: dict) -> None:
    roster = SqlRosterResolver(db)
    org, north = _s(seeded["org"]), _s(seeded["north"])

    assert roster.resolve(org, north, SHIFT_DATE, "Day") == sorted(
        [_s(seeded["alice"]), _s(seeded["bob"])]
    )
    assert roster.resolve(org, None, SHIFT_DATE, "Day") == sorted(
        [_s(seeded["alice"]), _s(seeded["bob"]), _s(seeded["carl"])]
    )
    assert roster.resolve(org, north, SHIFT_DATE, "Night") == [_s(seeded["dora"])]
    assert roster.resolve(org, north, SHIFT_DATE, "Evening") == []


def test_roster_station_scope(db: Session, seeded: dict) -> None:
    roster = SqlRosterResolver(db)
    ids = roster.resolve(
        _s(seeded["org"]), _s(seeded["north"]), SHIFT_DATE, "Day", station_id=_s(seeded["pack"])
    )
    assert ids == [_s(seeded["alice"])]


def test_station_rosters(db: Session, seeded: dict) -> None:
    roster = SqlRosterResolver(db)
    org, north = _s(seeded["org"]), _s(seeded["north"])
    weld, pack = _s(seeded["weld"]), _s(seeded["pack"])

    rosters = roster.station_rosters(org, north, SHIFT_DATE)
    assert rosters == {
        (weld, "Day"): sorted([_s(seeded["alice"]), _s(seeded["bob"])]),
        (pack, "Day"): [_s(seeded["alice"])],
        (weld, "Night"): [_s(seeded["dora"])],
    }
    assert set(roster.station_rosters(org, north, SHIFT_DATE, "Night")) == {(weld, "Night")}


def test_active_employees_with_primary_role(db: Session, seeded: dict) -> None:
    sources = ReadinessSources.from_session(db)
    org = _s(seeded["org"])

    everyone = {e.display_name: e for e in sources.employees.active_employees(org, None)}
    assert set(everyone) == {"Alice", "Bob Berg", "Carl", "Dora"}
    assert everyone["Alice"].role == "OPERATOR"
    assert everyone["Bob Berg"].role is None
    assert everyone["Alice"].site_id == _s(seeded["north"])

    north = sources.employees.active_employees(org, _s(seeded["north"]))
    assert {e.display_name for e in north} == {"Alice", "Bob Berg", "Dora"}

    picked = sources.employees.active_employees(org, None, [_s(seeded["alice"]), _s(seeded["gone"])])
    assert [e.display_name for e in picked] == ["Alice"]
    assert sources.employees.active_employees(org, None, []) == []


def test_catalog_and_applicability(db: Session, seeded: dict) -> None:
    sources = ReadinessSources.from_session(db)
    org = _s(seeded["org"])

    codes = {r.code for r in sources.catalog.active_requirements(org)}
    assert codes == {"MED", "FORK"}
    licences = sources.catalog.active_requirements(org, category="licence")
    assert [r.code for r in licences] == ["FORK"]

    rules = sources.catalog.applicability_rules(org)
    assert len(rules) == 1
    assert rules[0].compliance_id == _s(seeded["fork"])
    assert rules[0].applies_to_line == "L1"
    assert rules[0].applies_globally is False


def test_compliance_records(db: Session, seeded: dict) -> None:
    sources = ReadinessSources.from_session(db)
    records = sources.records.for_employees(
        _s(seeded["org"]), [_s(seeded["alice"]), _s(seeded["bob"])]
    )
    by_employee = {r.employee_id: r for r in records}
    assert by_employee[_s(seeded["alice"])].valid_to == SHIFT_DATE + timedelta(days=90)
    assert by_employee[_s(seeded["bob"])].waived is True
    assert sources.records.for_employees(_s(seeded["org"]), []) == []


def test_stations_skills_and_levels(db: Session, seeded: dict) -> None:
    sources = ReadinessSources.from_session(db)
    org = _s(seeded["org"])

    stations = sources.stations.active_stations(org)
    assert {s.code for s in stations} == {"WELD-1", "PACK-1"}

    rows = sources.stations.requirements(org, [s.id for s in stations])
    by_station = {r.station_id: r for r in rows}
    assert by_station[_s(seeded["weld"])].required_level == 2
    assert by_station[_s(seeded["pack"])].is_mandatory is False

    codes = sources.skills.skill_codes(org, [_s(seeded["welding"]), _s(seeded["nameless"])])
    assert codes == {_s(seeded["welding"]): "WELDING"}

    levels = sources.skills.employee_levels(
        [_s(seeded["alice"]), _s(seeded["bob"])], [_s(seeded["welding"])]
    )
    assert {(l.employee_id, l.level) for l in levels} == {
        (_s(seeded["alice"]), 3),
        (_s(seeded["bob"]), None),
    }


def test_setup_counts_and_demand(db: Session, seeded: dict) -> None:
    sources = ReadinessSources.from_session(db)
    org = _s(seeded["org"])

    assert sources.setup.foundation_counts(org, None) == {
        "stations": 2,
        "employees": 4,
        "skills": 2,
        "requirements": 2,
        "ratings": 2,
    }
    assert sources.setup.foundation_counts(org, _s(seeded["south"]))["employees"] == 2
    assert sources.setup.demand_count(org, SHIFT_DATE) == 2
    assert sources.setup.demand_count(org, SHIFT_DATE, "Day") == 1
    assert sources.setup.demand_count(org, SHIFT_DATE + timedelta(days=5)) == 0


def test_site_names(db: Session, seeded: dict) -> None:
    sources = ReadinessSources.from_session(db)
    org = _s(seeded["org"])
    assert sources.sites.site_name(org, _s(seeded["north"])) == "Plant North"
    assert sources.sites.site_name(org, _s(uuid.uuid4())) is None
    assert set(sources.sites.site_names(org).values()) == {"Plant North", "Plant South"}


def test_database_failure_becomes_upstream_error(db: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    failure = OperationalError("SELECT 1", {}, Exception("connection refused"))
    monkeypatch.setattr(db, "query", MagicMock(side_effect=failure))

    with pytest.raises(UpstreamDataError) as exc_info:
        SqlCatalogSource(db).active_requirements(_s(uuid.uuid4()))
    err = exc_info.value
    assert err.step == "catalog"
    assert err.code == "UPSTREAM_READ_FAILED"
    assert "connection refused" not in err.message
    assert err.__cause__ is failure



def test_malformed_caller_id_is_not_an_upstream_error(db: Session) -> None:
    with pytest.raises(ValueError) as exc_info:
        SqlRosterResolver(db).resolve("not-a-uuid", None, SHIFT_DATE, "Day")
    assert not isinstance(exc_info.value, UpstreamDataError)


def test_malformed_row_becomes_upstream_error(db: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    query = MagicMock()
    query.return_value.filter.return_value.all.return_value = [("only-two", "columns")]
    monkeypatch.setattr(db, "query", query)

    with pytest.raises(UpstreamDataError) as exc_info:
        SqlSkillSource(db).employee_levels([_s(uuid.uuid4())], [_s(uuid.uuid4())])
    assert exc_info.value.step == "employee_skills"
    assert exc_info.value.message == "Malformed employee skills row"

def test_compliance_matrix_end_to_end(client_with_db, seeded: dict) -> None:
    response = client_with_db.get(
        "/api/compliance/matrix-v2",
        params={
            "org_id": _s(seeded["org"]),
            "site_id": _s(seeded["north"]),
            "date": SHIFT_DATE.isoformat(),
            "shift_code": "day",
            "debug": "1",
        },
    )
    assert response.status_code == 200
    data = response.json()
    # Alice (L1): MED valid, FORK missing. Bob (L2): MED waived.
    assert data["readiness_flag"] == "LEGAL_NO_GO"
    statuses = {e["employee_name"]: e["status"] for e in data["by_employee"]}
    assert statuses == {"Alice": "LEGAL_BLOCKED", "Bob Berg": "LEGAL_OK"}
    assert data["_debug"]["scope_inputs"]["roster_employee_ids_count"] == 2


def test_competence_matrix_end_to_end(client_with_db, seeded: dict) -> None:
    response = client_with_db.get(
        "/api/competence/matrix-v2",
        params={
            "org_id": _s(seeded["org"]),
            "site_id": _s(seeded["north"]),
            "date": SHIFT_DATE.isoformat(),
            "shift": "1",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["ops_readiness_flag"] == "OPS_GO"
    stations = {s["station_code"]: s for s in data["by_station"]}
    assert stations["WELD-1"]["eligible_employees_count"] == 1
    assert stations["PACK-1"]["required_skills_count"] == 0


def test_setup_readiness_end_to_end(client_with_db, seeded: dict) -> None:
    response = client_with_db.get(
        "/api/setup/readiness",
        params={"org_id": _s(seeded["org"]), "date": SHIFT_DATE.isoformat(), "shift_code": "Day"},
    )
    assert response.status_code == 200
    readiness = response.json()["readiness"]
    assert readiness["foundation"]["status"] == "GREEN"
    assert readiness["coverage"]["stations_with_requirements"] == 1
    assert readiness["operational"]["gaps_generated_count"] == 1
    # Alice is rostered on Day shifts and misses FORK
    assert readiness["operational"]["illegal_issues_count"] == 2
