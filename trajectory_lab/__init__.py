"""Multi-year financial trajectory projection engine."""

__version__ = "0.1.0"
