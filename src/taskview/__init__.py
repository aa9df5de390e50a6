"""taskview - client-side task view-state engine."""

__version__ = "0.1.0"
