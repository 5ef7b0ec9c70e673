"""HTTP API for the statutory payroll service."""
