"""Tests for UnitOfWork."""

import pytest

from slc_addressing_mcp.core.transaction import EntityState, UnitOfWork
from slc_addressing_mcp.errors import InputError, TransactionError
from slc_addressing_mcp.models.devices import Device


class RecordingBackend:
    def __init__(self, fail_on: str | None = None) -> None:
        self.applied = []
        self.fail_on = fail_on

    def apply(self, change):
        if change.entity_id == self.fail_on:
            raise RuntimeError(f"cannot write {change.entity_id}")
        self.applied.append((change.state, change.entity_id))


class RecordingMemento:
    def __init__(self) -> None:
        self.restored = False

    def restore(self) -> None:
        self.restored = True


class TestBoundaries:
    def test_begin_twice(self):
        uow = UnitOfWork()
        uow.begin()
        with pytest.raises(TransactionError):
            uow.begin()

    def test_implicit_begin(self):
        uow = UnitOfWork()
        uow.register_modified(Device(device_id="1"))
        assert uow.is_active

    def test_commit_without_batch(self):
        with pytest.raises(TransactionError):
            UnitOfWork().commit()

    def test_rollback_when_idle_is_noop(self):
        uow = UnitOfWork()
        uow.rollback()
        assert not uow.is_active

    def test_none_entity(self):
        with pytest.raises(InputError):
            UnitOfWork().register_new(None)


class TestRegistration:
    def test_new_then_deleted_cancels(self):
        uow = UnitOfWork()
        d = Device(device_id="1")
        uow.register_new(d)
        uow.register_deleted(d)
        assert uow.pending_changes == []

    def test_modified_registered_once(self):
        uow = UnitOfWork()
        d = Device(device_id="1")
        uow.register_modified(d)
        uow.register_modified(d)
        assert len(uow.pending_changes) == 1

    def test_modified_of_new_stays_new(self):
        uow = UnitOfWork()
        d = Device(device_id="1")
        uow.register_new(d)
        uow.register_modified(d)
        assert [c.state for c in uow.pending_changes] == [EntityState.ADDED]

    def test_identity_not_equality(self):
        uow = UnitOfWork()
        uow.register_modified(Device(device_id="1"))
        uow.register_modified(Device(device_id="1"))
        assert len(uow.pending_changes) == 2

    def test_deleted_replaces_modified(self):
        uow = UnitOfWork()
        d = Device(device_id="1")
        uow.register_modified(d)
        uow.register_deleted(d)
        assert [c.state for c in uow.pending_changes] == [EntityState.DELETED]


class TestCommit:
    def test_processing_order(self):
        backend = RecordingBackend()
        uow = UnitOfWork(backend)
        uow.register_new(Device(device_id="n"))
        uow.register_modified(Device(device_id="m"))
        uow.register_deleted(Device(device_id="d"))

        assert uow.commit() == 3
        assert backend.applied == [
            (EntityState.DELETED, "d"),
            (EntityState.MODIFIED, "m"),
            (EntityState.ADDED, "n"),
        ]
        assert not uow.is_active
        assert uow.pending_changes == []

    def test_failed_commit_rolls_back(self):
        memento = RecordingMemento()
        uow = UnitOfWork(RecordingBackend(fail_on="bad"), capture=lambda: memento)
        uow.begin()
        uow.register_modified(Device(device_id="bad"))

        with pytest.raises(RuntimeError):
            uow.commit()

        assert memento.restored
        assert not uow.is_active
        assert uow.pending_changes == []

    def test_save_changes_keeps_batch_open(self):
        backend = RecordingBackend()
        uow = UnitOfWork(backend)
        uow.register_modified(Device(device_id="1"))
        assert uow.save_changes() == 1
        assert uow.is_active

    def test_save_changes_without_batch(self):
        with pytest.raises(TransactionError):
            UnitOfWork().save_changes()


class TestRollback:
    def test_restores_memento(self):
        memento = RecordingMemento()
        uow = UnitOfWork(capture=lambda: memento)
        uow.register_modified(Device(device_id="1"))
        uow.rollback()
        assert memento.restored
        assert uow.pending_changes == []
        assert not uow.is_active
