"""Marker-file store shared with out-of-process readers."""

from .models import DEFAULT_MARKER_PREFIX, MarkerEntry, MarkerListing, MarkerRecord, MarkerResult
from .store import MarkerStore, validate_prefix

__all__ = [
    "DEFAULT_MARKER_PREFIX",
    "MarkerEntry",
    "MarkerListing",
    "MarkerRecord",
    "MarkerResult",
    "MarkerStore",
    "validate_prefix",
]
