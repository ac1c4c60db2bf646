"""Persistence of computed 360 results as superseding snapshots."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ...models.multi_rater import MultiRaterSnapshot
from .schemas import MultiRaterResult

logger = logging.getLogger("ioc.ocean.repository")


def save_snapshot(
    db: Session,
    subject_id: str,
    result: MultiRaterResult,
    completed_raters: int,
    assigned_raters: int,
) -> MultiRaterSnapshot:
    """Insert a new current snapshot and retire the previous one."""
    previous = current_snapshot(db, subject_id)
    version = 1
    if previous is not None:
        previous.is_current = False
        version = previous.version + 1

    snapshot = MultiRaterSnapshot(
        subject_id=subject_id,
        version=version,
        is_current=True,
        completed_raters=completed_raters,
        assigned_raters=assigned_raters,
        weighted_scores=result.weighted.as_dict(),
        percentile=result.percentile,
        stanine=result.stanine,
        agreement=result.agreement,
        overall_agreement=result.overall_agreement,
        blind_spots=[spot.model_dump() for spot in result.blind_spots],
        role_weights=result.role_weights,
    )
    db.add(snapshot)
    db.commit()
    db.refresh(snapshot)
    logger.info("Stored 360 snapshot subject_id=%s version=%d", subject_id, version)
    return snapshot


def current_snapshot(db: Session, subject_id: str) -> Optional[MultiRaterSnapshot]:
    return (
        db.query(MultiRaterSnapshot)
        .filter(MultiRaterSnapshot.subject_id == subject_id, MultiRaterSnapshot.is_current.is_(True))
        .first()
    )


def snapshot_history(db: Session, subject_id: str) -> List[MultiRaterSnapshot]:
    return (
        db.query(MultiRaterSnapshot)
        .filter(MultiRaterSnapshot.subject_id == subject_id)
        .order_by(MultiRaterSnapshot.version.asc())
        .all()
    )
