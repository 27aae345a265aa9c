"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from collectflow.core.exceptions import LedgerUnavailableError
from collectflow.database import db as db_module

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or db_module.new_session()

    def commit(self) -> None:
        """Commit current transaction; roll back and surface ledger failures."""
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("ledger.write_failed", extra={"event": "ledger.write_failed"})
            raise LedgerUnavailableError(f"Ledger write failed: {exc}") from exc

    @contextmanager
    def reading(self, operation: str) -> Generator[None, None, None]:
        """Wrap a ledger read so driver errors surface as LedgerUnavailableError."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("ledger.read_failed", extra={"event": "ledger.read_failed", "operation": operation})
            raise LedgerUnavailableError(f"Ledger read failed ({operation}): {exc}") from exc

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
