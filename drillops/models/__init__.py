# drillops/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, db
from .drilling import DrillingEntry
from .ingest import ImportStaging, StagingRowStatus
from .reference import Project, Rig

__all__ = [
    "db",
    "BaseModel",
    "DrillingEntry",
    "ImportStaging",
    "StagingRowStatus",
    "Project",
    "Rig",
]
