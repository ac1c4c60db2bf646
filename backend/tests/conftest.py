import os
# Override DATABASE_URL before any ioc imports so tests never touch a real database
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
# No real sleeping between retries in unit tests
os.environ["FEEDBACK_LOOP_RETRY_BACKOFF_SECONDS"] = "0"
os.environ["GENERATOR_MODEL"] = "claude-3-5-sonnet-latest"
os.environ["FEEDBACK_CACHE_TTL_SECONDS"] = "120"

from typing import Any, Dict, List, Optional, Sequence

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from ioc.platform.database import Base
import ioc.models  # noqa: F401  (registers tables on Base.metadata)
from ioc.components.ocean.schemas import QuestionTraitMapping, TraitVector
from ioc.components.feedback_loop.schemas import (
    Generation,
    Issue,
    IssueCategory,
    IssueSeverity,
    NodeValidation,
    ValidationResult,
    ValidationScores,
    ValidationStatus,
)

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
# One connection per session so each asyncio.run gets its own aiosqlite connection
async_engine = create_async_engine("sqlite+aiosqlite:///./test.db", poolclass=NullPool)
TestingAsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)

# Enable foreign key support for SQLite
@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(async_engine.sync_engine, "connect")
def set_async_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory():
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def async_session_factory():
    Base.metadata.create_all(bind=engine)
    yield TestingAsyncSessionLocal
    Base.metadata.drop_all(bind=engine)


# ---------------------------------------------------------------------------
# OCEAN factory helpers
# ---------------------------------------------------------------------------

def make_vector(o=3.0, c=3.0, e=3.0, a=3.0, n=3.0) -> TraitVector:
    return TraitVector(openness=o, conscientiousness=c, extraversion=e, agreeableness=a, neuroticism=n)


def mapping(question_id, trait, **kwargs) -> QuestionTraitMapping:
    return QuestionTraitMapping(question_id=question_id, primary_trait=trait, **kwargs)


# ---------------------------------------------------------------------------
# Feedback-loop fakes
# ---------------------------------------------------------------------------

def make_validation(
    overall: float,
    status: ValidationStatus = ValidationStatus.APPROVED,
    issues: Sequence[Issue] = (),
    suggestions: Sequence[str] = (),
) -> ValidationResult:
    return ValidationResult(
        status=status,
        scores=ValidationScores(
            accuracy=overall, clarity=overall, bias=overall, ethics=overall, compliance=overall, overall=overall
        ),
        issues=list(issues),
        suggestions=list(suggestions),
    )


def make_issue(category=IssueCategory.ACCURACY, severity=IssueSeverity.MEDIUM, description="Needs work") -> Issue:
    return Issue(category=category, severity=severity, description=description)


class ScriptedGenerator:
    """Returns generations with scripted confidences; repeats the last one when exhausted.

    ``failures`` maps a zero-based call index to an exception raised on that call.
    """

    def __init__(self, confidences: Sequence[float] = (0.9,), failures: Optional[Dict[int, Exception]] = None,
                 content_factory=None):
        self.confidences = list(confidences)
        self.failures = dict(failures or {})
        self.content_factory = content_factory
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, context, feedback, *, model=None) -> Generation:
        index = len(self.calls)
        self.calls.append({"context": context, "feedback": list(feedback), "model": model})
        if index in self.failures:
            raise self.failures[index]
        confidence = self.confidences[min(index, len(self.confidences) - 1)]
        content = self.content_factory(index) if self.content_factory else {"draft": index}
        return Generation(content=content, confidence=confidence, model=model or "claude-3-5-sonnet-latest")


class ScriptedValidator:
    """Returns scripted validation results; repeats the last one when exhausted."""

    def __init__(self, results: Sequence[ValidationResult], failures: Optional[Dict[int, Exception]] = None):
        self.results = list(results)
        self.failures = dict(failures or {})
        self.calls: List[Any] = []

    async def validate(self, content, context) -> ValidationResult:
        index = len(self.calls)
        self.calls.append(content)
        if index in self.failures:
            raise self.failures[index]
        return self.results[min(index, len(self.results) - 1)]


class ScriptedNodeValidator(ScriptedValidator):
    """Also validates content nodes; ``node_scores`` maps node id to a confidence."""

    def __init__(self, results, node_scores: Dict[str, float], threshold: float = 0.85):
        super().__init__(results)
        self.node_scores = dict(node_scores)
        self.threshold = threshold
        self.node_calls: List[str] = []

    async def validate_node(self, node_id, node_content, context) -> NodeValidation:
        self.node_calls.append(node_id)
        confidence = self.node_scores.get(node_id, 0.0)
        status = ValidationStatus.APPROVED if confidence >= self.threshold else ValidationStatus.NEEDS_IMPROVEMENT
        return NodeValidation(node_id=node_id, confidence=confidence, status=status)


async def no_sleep(_seconds: float) -> None:
    return None
