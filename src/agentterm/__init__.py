"""Agent terminal detection with process-keyed marker files."""

__version__ = "0.1.0"
