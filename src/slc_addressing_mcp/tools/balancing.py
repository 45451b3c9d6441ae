"""balance_circuits tool implementation."""

from __future__ import annotations

from pydantic import ValidationError

from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.models.options import BalancingOptions
from slc_addressing_mcp.tools.responses import error_response, ok


def balance_circuits(session: AddressingSession, options: dict | None = None) -> dict:
    """Redistribute devices from overloaded to underloaded circuits.

    Args:
        session: 주소 할당 세션
        options: {"target_utilization": 0.8, "maintain_location_grouping": true}

    Returns:
        이동 결과, 불균형(표준편차) 전/후
    """
    try:
        opts = BalancingOptions(**(options or {}))
    except ValidationError as e:
        return error_response(e)
    result = session.balance_circuits(opts)
    if result.error is not None:
        return {
            "status": "error",
            "error_type": "internal",
            "message": result.error,
            **result.model_dump(mode="json"),
        }
    return ok(**result.model_dump(mode="json"))
