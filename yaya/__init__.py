"""Yaya Labor: USSD job matching and SMS notifications for construction workers."""

__version__ = "0.1.0"
