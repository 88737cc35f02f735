"""Clinic visits: visit lifecycle, treatment ledger and finance reporting."""

__version__ = "0.1.0"
