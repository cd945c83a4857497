"""
Ingest-specific SQLAlchemy models.
"""

from .schema import ImportStaging, StagingRowStatus

__all__ = [
    "ImportStaging",
    "StagingRowStatus",
]
