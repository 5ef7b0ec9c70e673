"""Statutory movements file encoding."""

from statutory_payroll.statutory.encoder import (
    CompanyRegistration,
    EncodedFile,
    MovementType,
    StatutoryFileEncoder,
    StatutoryMovementRecord,
)

__all__ = [
    "CompanyRegistration",
    "EncodedFile",
    "MovementType",
    "StatutoryFileEncoder",
    "StatutoryMovementRecord",
]
