"""Organization module — Company, PenaltyPolicy, Employee models, schemas and services."""

from timekeeper.organization.models import Company, Employee, PenaltyPolicy

__all__ = ["Company", "Employee", "PenaltyPolicy"]
