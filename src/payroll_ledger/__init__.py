"""Weekly payroll ledger: obligation generation, check sequencing and an append-only payment ledger."""

__version__ = "0.1.0"
