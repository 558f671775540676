"""Core HR module: Employee, Department, Branch and Shift models, schemas and services."""

from hrdesk.core_hr.models import Branch, Department, Employee, Shift

__all__ = ["Employee", "Department", "Branch", "Shift"]
