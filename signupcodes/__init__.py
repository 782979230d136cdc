"""Capacity-limited, time-bounded signup-code redemption engine."""

__version__ = "0.1.0"
