"""Studio finance: reconciliation and payroll consolidation engine."""

__version__ = "0.1.0"
