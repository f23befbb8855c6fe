#!/usr/bin/env python3
"""Print legal and operational readiness for one shift.

Usage:
    python scripts/evaluate_shift.py --org <uuid> --date 2026-03-02 --shift Day
    python scripts/evaluate_shift.py --org <uuid> --site <uuid> --date 2026-03-02 --shift night --json

Exits 0 on success, 1 on invalid input or a failed read.
"""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from shiftgate.db.session import SessionLocal
from shiftgate.services.readiness.errors import ReadinessError
from shiftgate.services.readiness.shift_competence import evaluate_shift_competence
from shiftgate.services.readiness.shift_compliance import evaluate_shift_compliance
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.shift_params import parse_shift_context


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Evaluate shift readiness")
    parser.add_argument("--org", required=True, help="Organization UUID")
    parser.add_argument("--site", default=None, help="Site UUID (optional)")
    parser.add_argument("--date", required=True, help="Shift date, YYYY-MM-DD")
    parser.add_argument("--shift", required=True, help="Shift code or alias (Day, night, S2, ...)")
    parser.add_argument("--json", action="store_true", help="Print full payloads as JSON")
    args = parser.parse_args(argv)

    for name, value in (("org", args.org), ("site", args.site)):
        if value is None:
            continue
        try:
            uuid.UUID(value.strip())
        except ValueError:
            print(f"Invalid --{name}: must be a valid UUID", file=sys.stderr)
            return 1

    try:
        ctx = parse_shift_context(args.org, args.site, args.date, args.shift)
    except ReadinessError as e:
        print(f"Invalid input ({e.code}): {e.message}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        sources = ReadinessSources.from_session(db)
        legal = evaluate_shift_compliance(sources, ctx)
        ops = evaluate_shift_competence(sources, ctx)
    except ReadinessError as e:
        print(f"Failed at step={e.step}: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    if args.json:
        print(json.dumps({"legal": legal.to_json(), "operational": ops.to_json()}, indent=2))
        return 0

    print(f"Shift {ctx.date.isoformat()} {ctx.shift_code}")
    print(f"  legal:       {legal.readiness_flag} (roster={legal.kpis.roster_employee_count}, "
          f"blocking={legal.kpis.blocking_count}, expiring={legal.kpis.expiring_count})")
    print(f"  operational: {ops.ops_readiness_flag} (stations={ops.kpis.stations_total}, "
          f"no_go={ops.kpis.stations_no_go})")
    for emp in legal.by_employee:
        if emp.blocking_items:
            print(f"  blocked: {emp.employee_name}: {', '.join(emp.blocking_items)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
