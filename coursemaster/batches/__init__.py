"""Batch scheduling: cohorts of a course with a date range and capacity."""

from .models import BATCHES_TABLES_CQL, Batch, BatchStatus, derive_status


__all__ = [
    "BATCHES_TABLES_CQL",
    "Batch",
    "BatchStatus",
    "derive_status",
]
