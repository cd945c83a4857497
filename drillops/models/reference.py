# drillops/models/reference.py

"""
Admin-managed reference entities that ingested rows resolve against.

Rigs and projects are created through the admin screens; the ingest pipeline
only ever reads them.
"""

from .base import BaseModel, db


class Rig(BaseModel):
    """A drilling rig (primary equipment unit)"""

    __tablename__ = "rigs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    rig_type = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(50), nullable=False, default="Active")

    drilling_entries = db.relationship("DrillingEntry", back_populates="rig")

    def __repr__(self):
        return f"<Rig {self.name}>"


class Project(BaseModel):
    """A project or work site that drilling entries are grouped under"""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False, index=True)
    client_name = db.Column(db.String(200), nullable=True)
    location = db.Column(db.String(200), nullable=True)
    status = db.Column(db.String(50), nullable=False, default="Active")

    drilling_entries = db.relationship("DrillingEntry", back_populates="project")

    def __repr__(self):
        return f"<Project {self.name}>"
