"""
Utility functions for memograph.

This module contains low-level helpers used across the system.
No domain logic should live here.
"""

from memograph.utils.text import word_count, trigram_similarity
from memograph.utils.time import utc_now, iso_timestamp, elapsed_ms
from memograph.utils.helpers import in_unit_interval, unique_tags
from memograph.utils.timeouts import call_with_timeout

__all__ = [
    "word_count",
    "trigram_similarity",
    "utc_now",
    "iso_timestamp",
    "elapsed_ms",
    "in_unit_interval",
    "unique_tags",
    "call_with_timeout",
]
