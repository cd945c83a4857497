# drillops/models/drilling.py

from sqlalchemy import Index

from .base import BaseModel, db


class DrillingEntry(BaseModel):
    """One shift of drilling activity for a rig on a project"""

    __tablename__ = "drilling_entries"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    shift = db.Column(db.String(10), nullable=False)  # Day | Night
    rig_id = db.Column(db.Integer, db.ForeignKey("rigs.id"), nullable=False, index=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)

    # Production
    meters_drilled = db.Column(db.Float, nullable=False)
    hole_depth = db.Column(db.Float, nullable=True)
    bit_type = db.Column(db.String(100), nullable=True)
    formation = db.Column(db.String(100), nullable=True)
    mud_type = db.Column(db.String(100), nullable=True)

    # Hours
    total_shift_hours = db.Column(db.Float, nullable=False, default=12)
    drilling_hours = db.Column(db.Float, nullable=False, default=0)
    mechanical_downtime = db.Column(db.Float, nullable=False, default=0)
    operational_delay = db.Column(db.Float, nullable=False, default=0)
    weather_downtime = db.Column(db.Float, nullable=False, default=0)
    safety_downtime = db.Column(db.Float, nullable=False, default=0)
    waiting_on_parts = db.Column(db.Float, nullable=False, default=0)
    standby_hours = db.Column(db.Float, nullable=False, default=0)
    npt_hours = db.Column(db.Float, nullable=False, default=0)

    # Costs
    fuel_consumed = db.Column(db.Float, nullable=True)
    consumables_cost = db.Column(db.Float, nullable=True)

    # Metadata
    supervisor_name = db.Column(db.String(200), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="Pending", index=True)
    created_by_id = db.Column(db.Integer, nullable=True)
    import_batch_id = db.Column(db.String(64), nullable=True, index=True)

    rig = db.relationship("Rig", back_populates="drilling_entries")
    project = db.relationship("Project", back_populates="drilling_entries")

    __table_args__ = (Index("idx_drilling_entries_rig_date", "rig_id", "date"),)

    def __repr__(self):
        return f"<DrillingEntry {self.date} {self.shift} rig={self.rig_id}>"
