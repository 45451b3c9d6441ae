"""Unit of work: batches entity mutations behind begin/commit/rollback."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from slc_addressing_mcp.errors import InputError, TransactionError

logger = logging.getLogger(__name__)


class EntityState(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class PendingChange(BaseModel):
    """One queued entity operation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    entity: Any
    entity_type: str
    entity_id: str = Field(default="")
    state: EntityState


class PersistenceBackend(Protocol):
    """Durable store the batch is written to on commit."""

    def apply(self, change: PendingChange) -> None:
        ...


class StateMemento(Protocol):
    def restore(self) -> None:
        ...


class UnitOfWork:
    """Tracks new, modified and deleted entities for one batch.

    The first ``register_*`` call begins a batch implicitly. When a
    ``capture`` callable is supplied, its memento is taken at begin and
    restored on rollback, so in-memory state follows the batch.
    """

    def __init__(
        self,
        backend: PersistenceBackend | None = None,
        capture: Callable[[], StateMemento] | None = None,
    ) -> None:
        self._backend = backend
        self._capture = capture
        self._new: list[PendingChange] = []
        self._modified: list[PendingChange] = []
        self._deleted: list[PendingChange] = []
        self._memento: StateMemento | None = None
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def pending_changes(self) -> list[PendingChange]:
        """Queued changes in processing order (deletions first)."""
        return [*self._deleted, *self._modified, *self._new]

    def begin(self) -> None:
        if self._active:
            raise TransactionError("A transaction is already active")
        self._clear()
        self._memento = self._capture() if self._capture else None
        self._active = True
        logger.debug("Transaction started")

    def register_new(self, entity: Any, entity_id: str = "") -> None:
        self._require_entity(entity)
        self._ensure_active()
        if self._find(self._new, entity) is None:
            self._new.append(self._change(entity, entity_id, EntityState.ADDED))

    def register_modified(self, entity: Any, entity_id: str = "") -> None:
        self._require_entity(entity)
        self._ensure_active()
        if self._find(self._new, entity) is not None:
            return
        existing = self._find(self._modified, entity)
        if existing is not None:
            self._modified.remove(existing)
        self._modified.append(self._change(entity, entity_id, EntityState.MODIFIED))

    def register_deleted(self, entity: Any, entity_id: str = "") -> None:
        self._require_entity(entity)
        self._ensure_active()
        added = self._find(self._new, entity)
        if added is not None:
            # Never persisted, so the pair cancels out
            self._new.remove(added)
            return
        existing = self._find(self._modified, entity)
        if existing is not None:
            self._modified.remove(existing)
        if self._find(self._deleted, entity) is None:
            self._deleted.append(self._change(entity, entity_id, EntityState.DELETED))

    def save_changes(self) -> int:
        """Hand pending changes to the backend without ending the batch."""
        if not self._active:
            raise TransactionError("No active transaction. Call begin() first")
        return self._process()

    def commit(self) -> int:
        """Process the batch and end it.

        Returns:
            Number of changes processed

        Raises:
            TransactionError: if no transaction is active
        """
        if not self._active:
            raise TransactionError("No active transaction to commit")
        try:
            count = self._process()
        except Exception:
            logger.warning(
                f"Commit failed, rolling back {len(self.pending_changes)} pending change(s)"
            )
            self.rollback()
            raise
        self._clear()
        self._memento = None
        self._active = False
        logger.info(f"Transaction committed: {count} change(s)")
        return count

    def rollback(self) -> None:
        """Discard the batch and restore captured state. No-op when idle."""
        if not self._active:
            return
        discarded = len(self.pending_changes)
        memento = self._memento
        self._clear()
        self._memento = None
        self._active = False
        if memento is not None:
            memento.restore()
        logger.info(f"Transaction rolled back: {discarded} change(s) discarded")

    # ── Internals ──────────────────────────────────────────────────────

    def _process(self) -> int:
        count = 0
        for change in self.pending_changes:
            if self._backend is not None:
                self._backend.apply(change)
            else:
                logger.debug(f"{change.state.value} {change.entity_type} {change.entity_id}")
            count += 1
        return count

    def _ensure_active(self) -> None:
        if not self._active:
            self.begin()

    def _clear(self) -> None:
        self._new.clear()
        self._modified.clear()
        self._deleted.clear()

    @staticmethod
    def _require_entity(entity: Any) -> None:
        if entity is None:
            raise InputError("entity must not be None")

    @staticmethod
    def _find(changes: list[PendingChange], entity: Any) -> PendingChange | None:
        for change in changes:
            if change.entity is entity:
                return change
        return None

    @staticmethod
    def _change(entity: Any, entity_id: str, state: EntityState) -> PendingChange:
        return PendingChange(
            entity=entity,
            entity_type=type(entity).__name__,
            entity_id=entity_id or str(getattr(entity, "device_id", "")),
            state=state,
        )
