"""Audit logging package."""

from carihesap.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
