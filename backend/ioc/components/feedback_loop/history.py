"""Append-only iteration history stores."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ...models.feedback_loop import FeedbackIterationRecord, FeedbackLoopRecord
from ...platform.database import async_session_maker
from .errors import LoopStateError
from .schemas import Iteration, LoopConfig, LoopResult

logger = logging.getLogger("ioc.feedback_loop.history")


class InMemoryLoopHistory:
    """Per-instance history for tests and single-process use."""

    def __init__(self):
        self.loops: Dict[str, Dict[str, Any]] = {}
        self._iterations: Dict[str, List[Iteration]] = {}

    async def start_loop(self, loop_id: str, config: LoopConfig, context: Dict[str, Any]) -> None:
        if loop_id in self.loops:
            raise LoopStateError(f"Loop {loop_id} already recorded")
        self.loops[loop_id] = {"state": "active", "config": config.model_dump(mode="json")}
        self._iterations[loop_id] = []

    async def append_iteration(self, loop_id: str, iteration: Iteration) -> None:
        recorded = self._iterations.get(loop_id)
        if recorded is None:
            raise LoopStateError(f"Loop {loop_id} was never started")
        if iteration.number != len(recorded) + 1:
            raise LoopStateError(
                f"Iteration {iteration.number} out of sequence for loop {loop_id} "
                f"(expected {len(recorded) + 1})"
            )
        recorded.append(iteration)

    async def finish_loop(self, result: LoopResult) -> None:
        entry = self.loops.setdefault(result.loop_id, {})
        entry.update(
            {
                "state": result.state.value,
                "status": result.status,
                "convergence_reason": result.convergence_reason,
                "error": result.error,
            }
        )

    async def iterations(self, loop_id: str) -> List[Iteration]:
        return list(self._iterations.get(loop_id, []))



def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; stored values are always UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyLoopHistory:
    """Relational history: one loop row plus insert-only iteration rows."""

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None):
        self._session_factory = session_factory or async_session_maker

    async def start_loop(self, loop_id: str, config: LoopConfig, context: Dict[str, Any]) -> None:
        async with self._session_factory() as db:
            db.add(
                FeedbackLoopRecord(
                    id=loop_id,
                    state="active",
                    status="active",
                    priority=config.priority.value,
                    content_type=config.content_type.value,
                    config=config.model_dump(mode="json"),
                    iteration_count=0,
                )
            )
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise LoopStateError(f"Loop {loop_id} already recorded") from exc

    async def append_iteration(self, loop_id: str, iteration: Iteration) -> None:
        payload = iteration.model_dump(mode="json")
        async with self._session_factory() as db:
            loop = await db.get(FeedbackLoopRecord, loop_id)
            if loop is None:
                raise LoopStateError(f"Loop {loop_id} was never started")
            db.add(
                FeedbackIterationRecord(
                    loop_id=loop_id,
                    number=iteration.number,
                    generation=payload["generation"],
                    validation=payload["validation"],
                    node_validations=payload["validation"].get("node_validations", []),
                    feedback=payload["feedback"],
                    disagreement={
                        "disagreement": payload["disagreement"],
                        "resolution": payload["resolution"],
                    }
                    if payload["disagreement"]
                    else None,
                    iteration_metadata=payload["metadata"],
                    confidence=iteration.confidence,
                    created_at=iteration.created_at,
                )
            )
            loop.iteration_count = max(loop.iteration_count or 0, iteration.number)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise LoopStateError(
                    f"Iteration {iteration.number} already recorded for loop {loop_id}"
                ) from exc

    async def finish_loop(self, result: LoopResult) -> None:
        async with self._session_factory() as db:
            loop = await db.get(FeedbackLoopRecord, result.loop_id)
            if loop is None:
                logger.error("Cannot finish unknown loop %s", result.loop_id)
                return
            loop.state = result.state.value
            loop.status = result.status
            loop.convergence_reason = result.convergence_reason
            loop.final_confidence = result.final_confidence
            loop.requires_human_review = result.requires_human_review
            loop.error = result.error
            loop.completed_at = datetime.now(timezone.utc)
            await db.commit()

    async def iterations(self, loop_id: str) -> List[Iteration]:
        async with self._session_factory() as db:
            rows = (
                await db.execute(
                    select(FeedbackIterationRecord)
                    .where(FeedbackIterationRecord.loop_id == loop_id)
                    .order_by(FeedbackIterationRecord.number.asc())
                )
            ).scalars().all()
        out: List[Iteration] = []
        for row in rows:
            disagreement = row.disagreement or {}
            out.append(
                Iteration.model_validate(
                    {
                        "number": row.number,
                        "generation": row.generation,
                        "validation": row.validation,
                        "feedback": row.feedback or [],
                        "disagreement": disagreement.get("disagreement"),
                        "resolution": disagreement.get("resolution"),
                        "metadata": row.iteration_metadata or {},
                        "created_at": _as_utc(row.created_at),
                    }
                )
            )
        return out
