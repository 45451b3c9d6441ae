"""Transaction control tools."""

from __future__ import annotations

from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.errors import TransactionError
from slc_addressing_mcp.tools.responses import error_response, ok


def begin_transaction(session: AddressingSession) -> dict:
    try:
        session.begin()
    except TransactionError as e:
        return error_response(e)
    return ok(active=True)


def commit_changes(session: AddressingSession) -> dict:
    """Commit the open batch; a failed commit is rolled back."""
    result = session.apply_changes()
    data = result.model_dump(mode="json")
    if not result.success:
        return {"status": "error", "error_type": "transaction", **data}
    return ok(**data)


def save_changes(session: AddressingSession) -> dict:
    """Hand pending changes to the backend without ending the batch."""
    try:
        saved = session.save_changes()
    except TransactionError as e:
        return error_response(e)
    return ok(saved=saved, active=session.unit_of_work.is_active)


def rollback_changes(session: AddressingSession) -> dict:
    discarded = len(session.unit_of_work.pending_changes)
    session.rollback()
    return ok(discarded=discarded)
