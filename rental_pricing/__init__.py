"""Rental pricing core: rate schedules, tier pricing and parity auditing."""

__version__ = "0.4.0"
