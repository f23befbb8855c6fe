"""Requirement applicability: does a compliance requirement bind an employee.

No rules → applies to everyone. With rules, any matching rule applies it
(global, same line, or same primary role).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from shiftgate.services.readiness.types import ApplicabilityRule, EmployeeRecord


def _matches(rule_value: str | None, employee_value: str | None, empty_is_wildcard: bool) -> bool:
    if rule_value is None:
        return False
    wanted = rule_value.strip()
    if not wanted and not empty_is_wildcard:
        return False
    return wanted == (employee_value or "").strip()


def applies_to(
    employee: EmployeeRecord,
    rules: list[ApplicabilityRule] | None,
    *,
    treat_empty_rule_as_wildcard: bool = True,
) -> bool:
    """Return True if the requirement whose ``rules`` are given binds ``employee``.

    Line and role are compared case-sensitively after trimming. With
    ``treat_empty_rule_as_wildcard`` an empty rule line/role matches an employee
    that has no line/role (historical behaviour, kept until product decides).
    """
    if not rules:
        return True
    for rule in rules:
        if rule.applies_globally:
            return True
        if _matches(rule.applies_to_line, employee.line, treat_empty_rule_as_wildcard):
            return True
        if _matches(rule.applies_to_role, employee.role, treat_empty_rule_as_wildcard):
            return True
    return False


def group_rules_by_requirement(
    rules: Iterable[ApplicabilityRule],
) -> dict[str, list[ApplicabilityRule]]:
    """Index applicability rules by compliance_id."""
    grouped: dict[str, list[ApplicabilityRule]] = defaultdict(list)
    for rule in rules:
        grouped[rule.compliance_id].append(rule)
    return dict(grouped)
