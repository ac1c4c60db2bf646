from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Float, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..platform.database import Base


class FeedbackLoopRecord(Base):
    __tablename__ = "feedback_loops"

    id = Column(String, primary_key=True)
    state = Column(String, nullable=False, default="active", index=True)
    status = Column(String, nullable=False, default="active")
    convergence_reason = Column(String, nullable=True)
    priority = Column(String, default="medium")
    content_type = Column(String, nullable=True)
    config = Column(JSON)
    iteration_count = Column(Integer, default=0)
    final_confidence = Column(Float, nullable=True)
    requires_human_review = Column(Boolean, default=False)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    iterations = relationship(
        "FeedbackIterationRecord",
        back_populates="loop",
        order_by="FeedbackIterationRecord.number",
    )


class FeedbackIterationRecord(Base):
    """Append-only: rows are inserted once per iteration and never updated."""

    __tablename__ = "feedback_iterations"
    __table_args__ = (UniqueConstraint("loop_id", "number", name="uq_feedback_iteration_number"),)

    id = Column(Integer, primary_key=True, index=True)
    loop_id = Column(String, ForeignKey("feedback_loops.id"), index=True, nullable=False)
    number = Column(Integer, nullable=False)
    generation = Column(JSON)
    validation = Column(JSON)
    node_validations = Column(JSON)
    feedback = Column(JSON)
    disagreement = Column(JSON, nullable=True)
    iteration_metadata = Column("metadata", JSON)
    confidence = Column(Float)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    loop = relationship("FeedbackLoopRecord", back_populates="iterations")
