from sqlalchemy import Column, Integer, String, DateTime, JSON, Float, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from ..platform.database import Base


class MultiRaterSnapshot(Base):
    """One computed 360 result for a subject. Later recomputations supersede, never overwrite."""

    __tablename__ = "multi_rater_snapshots"
    __table_args__ = (UniqueConstraint("subject_id", "version", name="uq_multi_rater_subject_version"),)

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(String, index=True, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    is_current = Column(Boolean, default=True, index=True)
    completed_raters = Column(Integer)
    assigned_raters = Column(Integer)
    weighted_scores = Column(JSON)
    percentile = Column(JSON)
    stanine = Column(JSON)
    agreement = Column(JSON)
    overall_agreement = Column(Float)
    blind_spots = Column(JSON)
    role_weights = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
