"""Statutory payroll: ISR, IMSS and ISN calculation, GL overrides and movement files."""

__version__ = "0.1.0"
