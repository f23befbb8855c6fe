"""SQLAlchemy models."""

from shiftgate.models.compliance import (
    ComplianceApplicability,
    ComplianceCatalog,
    EmployeeCompliance,
)
from shiftgate.models.employee import Employee
from shiftgate.models.machine_demand import MachineDemand
from shiftgate.models.role import EmployeeRole, Role
from shiftgate.models.shift import Shift, ShiftAssignment
from shiftgate.models.site import Site
from shiftgate.models.station import EmployeeSkill, Skill, Station, StationSkillRequirement

__all__ = [
    "ComplianceApplicability",
    "ComplianceCatalog",
    "Employee",
    "EmployeeCompliance",
    "EmployeeRole",
    "EmployeeSkill",
    "MachineDemand",
    "Role",
    "Shift",
    "ShiftAssignment",
    "Site",
    "Skill",
    "Station",
    "StationSkillRequirement",
]
