"""
Result bundle store: one row per assessment session.

ResultStore is the storage port the pipeline writes through; SqlResultStore
implements it with SQLAlchemy. The database URL comes from settings
(MARKETING_ENGINE_DB_URL / DATABASE_URL, else SQLite). Saving the same
session twice overwrites the stored bundle (upsert), never appends.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Protocol

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from marketing_engine.analysis.models import ResultBundle
from marketing_engine.config import get_settings
from marketing_engine.core.exceptions import PersistenceUnavailableError, SessionNotFoundError
from marketing_engine.engine_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class AssessmentResult(Base):
    """Latest result bundle of one session (JSON payload plus headline columns)."""

    __tablename__ = "assessment_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    overall = Column(Integer, nullable=True)
    plan_type = Column(String(32), nullable=True)
    payload = Column(Text, nullable=False)  # ResultBundle.to_dict() as JSON
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "overall": self.overall,
            "plan_type": self.plan_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ResultStore(Protocol):
    """Storage port for result bundles."""

    def save_bundle(self, session_id: int | str, bundle: ResultBundle) -> None: ...

    def load_bundle(self, session_id: int | str) -> dict[str, Any]: ...


def _redact_url(url: str) -> str:
    return url.split("?")[0].split("//")[-1].split("@")[-1]


class SqlResultStore:
    """SQLAlchemy-backed ResultStore; the engine is created lazily on first use."""

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url or get_settings().database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    def _get_engine(self) -> Engine:
        if self._engine is None:
            connect_args = {}
            if self.database_url.startswith("sqlite"):
                connect_args["check_same_thread"] = False
            self._engine = create_engine(self.database_url, connect_args=connect_args, pool_pre_ping=True)
            logger.info("results_store_engine", url=_redact_url(self.database_url))
        return self._engine

    def _get_session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._get_engine())
        return self._session_factory

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back on error."""
        session = self._get_session_factory()()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_db(self) -> None:
        """Create tables if missing. Safe to call repeatedly."""
        try:
            Base.metadata.create_all(bind=self._get_engine())
            logger.info("results_store_init_db", url=_redact_url(self.database_url))
        except SQLAlchemyError as e:
            logger.exception("results_store_init_db_failed", error=str(e))
            raise PersistenceUnavailableError(f"Cannot initialise results store: {e}") from e

    def _upsert(self, key: str, bundle: ResultBundle, payload: str) -> None:
        now = datetime.now(timezone.utc)
        with self._session_scope() as session:
            row = session.execute(select(AssessmentResult).where(AssessmentResult.session_id == key)).scalar_one_or_none()
            if row is None:
                row = AssessmentResult(session_id=key, created_at=now)
                session.add(row)
            row.overall = bundle.scores.overall
            row.plan_type = bundle.plan_type.value
            row.payload = payload
            row.updated_at = now

    def save_bundle(self, session_id: int | str, bundle: ResultBundle) -> None:
        """Insert or overwrite the bundle stored for session_id."""
        key = str(session_id)
        payload = json.dumps(bundle.to_dict(), ensure_ascii=False)
        try:
            try:
                self._upsert(key, bundle, payload)
            except IntegrityError:
                # A concurrent writer inserted the row first; last writer wins.
                logger.info("results_store_upsert_retry", session_id=key)
                self._upsert(key, bundle, payload)
        except SQLAlchemyError as e:
            logger.exception("results_store_save_failed", session_id=key, error=str(e))
            raise PersistenceUnavailableError(f"Cannot save results for session {key}: {e}") from e
        logger.info(
            "results_store_saved",
            session_id=key,
            overall=bundle.scores.overall,
            plan_type=bundle.plan_type.value,
        )

    def load_bundle(self, session_id: int | str) -> dict[str, Any]:
        """Stored bundle as a plain dict. Raises SessionNotFoundError when nothing is stored."""
        key = str(session_id)
        try:
            with self._session_scope() as session:
                row = session.execute(
                    select(AssessmentResult).where(AssessmentResult.session_id == key)
                ).scalar_one_or_none()
                payload = row.payload if row is not None else None
        except SQLAlchemyError as e:
            logger.exception("results_store_load_failed", session_id=key, error=str(e))
            raise PersistenceUnavailableError(f"Cannot load results for session {key}: {e}") from e
        if payload is None:
            raise SessionNotFoundError(f"No results stored for session {key}")
        return json.loads(payload)

    def list_sessions(self) -> list[dict[str, Any]]:
        """Headline columns of every stored session, most recently updated first."""
        try:
            with self._session_scope() as session:
                rows = session.execute(
                    select(AssessmentResult).order_by(AssessmentResult.updated_at.desc())
                ).scalars()
                return [row.to_dict() for row in rows]
        except SQLAlchemyError as e:
            logger.exception("results_store_list_failed", error=str(e))
            raise PersistenceUnavailableError(f"Cannot list stored results: {e}") from e

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None


_default_store: SqlResultStore | None = None


def get_result_store() -> SqlResultStore:
    """Process-wide store for the configured database URL, with tables created."""
    global _default_store
    if _default_store is None:
        store = SqlResultStore()
        store.init_db()
        _default_store = store
    return _default_store


def reset_engine_for_test() -> None:
    """Dispose the process-wide store so the next call picks up a new database URL."""
    global _default_store
    if _default_store is not None:
        _default_store.dispose()
    _default_store = None
