"""FastMCP server entry point for the SLC addressing engine."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from slc_addressing_mcp.config import load_config
from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.core.strategies import create_default_registry
from slc_addressing_mcp.tools import assignment as _assignment
from slc_addressing_mcp.tools import balancing as _balancing
from slc_addressing_mcp.tools import panel as _panel
from slc_addressing_mcp.tools import snapshot as _snapshot
from slc_addressing_mcp.tools import transaction as _transaction

mcp = FastMCP(
    name="slc-addressing-mcp",
    instructions="화재경보 SLC 회로 주소 할당, 용량 검증, 회로 부하 균형",
)

session = AddressingSession(load_config())


# ── Panels ───────────────────────────────────────────────────────────────


@mcp.tool()
def initialize_panels(devices: list[dict]) -> dict:
    """호스트 디바이스 목록으로 패널/회로를 구성합니다.

    Args:
        devices: 디바이스 스냅샷 목록
            [{"element_id": "1001", "level": "L1", "room": "101",
              "current_draw": 0.05, "circuit_number": "P1-C1", "address": 3}]

    Returns:
        panel_ids, circuit_count, total_devices, addressed_devices, unassigned_devices, warnings
    """
    return _panel.initialize_panels(session, devices)


@mcp.tool()
def validate_panel(panel_id: str | None = None) -> dict:
    """패널(또는 전체)의 주소 범위, 중복, 용량, 전류 한계를 검증합니다.

    Args:
        panel_id: 패널 ID (None이면 전체 패널 + 미할당 디바이스)

    Returns:
        is_valid, messages (code/severity/entity_id), error_count, warning_count
    """
    return _panel.validate_panel(session, panel_id)


@mcp.tool()
def get_circuit_utilization(circuit_id: str) -> dict:
    """회로의 디바이스/전류/주소 사용률과 주소 할당 현황을 반환합니다.

    Args:
        circuit_id: 회로 번호 (예: "P1-C1")
    """
    return _panel.get_circuit_utilization(session, circuit_id)


@mcp.tool()
def get_statistics() -> dict:
    """전체 패널/회로/디바이스 통계 (종류별, 층별 포함)를 반환합니다."""
    return _panel.get_statistics(session)


# ── Assignment ───────────────────────────────────────────────────────────


@mcp.tool()
def auto_assign_all(options: dict | None = None) -> dict:
    """회로에 속한 모든 디바이스에 주소를 자동 할당합니다.

    잠긴(locked) 디바이스는 항상 건너뜁니다.

    Args:
        options: {"strategy": "sequential|by_floor|by_zone|by_device_type|optimized",
                  "start_address": 1, "overwrite_existing": false,
                  "respect_locks": true, "validate_electrical": true}

    Returns:
        devices_processed, devices_assigned, devices_skipped, devices_failed, outcomes
    """
    return _assignment.auto_assign_all(session, options)


@mcp.tool()
def assign_device_to_circuit(
    device_id: str,
    circuit_id: str,
    options: dict | None = None,
) -> dict:
    """디바이스를 회로에 배치하고 다음 빈 주소를 할당합니다.

    Args:
        device_id: 디바이스 ID
        circuit_id: 대상 회로 번호
        options: {"auto_assign_address": true, "validate_electrical": true,
                  "preserve_existing": false, "start_address": 1}

    Returns:
        outcome (status: assigned/failed, address, code, message, suggested_alternatives)
    """
    return _assignment.assign_device_to_circuit(session, device_id, circuit_id, options)


@mcp.tool()
def remove_device_from_circuit(device_id: str, circuit_id: str) -> dict:
    """디바이스를 회로에서 제거하고 주소를 반환합니다."""
    return _assignment.remove_device_from_circuit(session, device_id, circuit_id)


@mcp.tool()
def update_device_address(
    device_id: str,
    address: int | str | None,
    validate: bool = True,
) -> dict:
    """디바이스 주소를 변경합니다. 충돌 시 근처 빈 주소를 제안합니다.

    Args:
        device_id: 디바이스 ID
        address: 새 주소 (None이면 해제)
        validate: 검증 후 변경 여부
    """
    return _assignment.update_device_address(session, device_id, address, validate)


@mcp.tool()
def set_device_lock(device_id: str, lock_state: str) -> dict:
    """디바이스 잠금 상태를 설정합니다.

    Args:
        device_id: 디바이스 ID
        lock_state: "unlocked" | "locked" (현장 설치됨) | "manual" (수동 지정)
    """
    return _assignment.set_device_lock(session, device_id, lock_state)


# ── Balancing ────────────────────────────────────────────────────────────


@mcp.tool()
def balance_circuits(options: dict | None = None) -> dict:
    """과부하 회로의 디바이스를 여유 회로로 이동하여 부하를 균형화합니다.

    불균형(사용률 표준편차)이 감소하지 않으면 원래 상태로 복원합니다.

    Args:
        options: {"target_utilization": 0.8, "maintain_location_grouping": true}
    """
    return _balancing.balance_circuits(session, options)


# ── Snapshots ────────────────────────────────────────────────────────────


@mcp.tool()
def export_snapshot(output_format: str = "csv", output_path: str | None = None) -> dict:
    """주소 할당 결과를 CSV 또는 JSON으로 내보냅니다.

    Args:
        output_format: "csv" | "json"
        output_path: 저장 경로 (None이면 content만 반환)
    """
    return _snapshot.export_snapshot(session, output_format, output_path)


@mcp.tool()
def import_snapshot(
    content: str | None = None,
    file_path: str | None = None,
    options: dict | None = None,
) -> dict:
    """CSV/JSON 스냅샷을 가져옵니다 (형식 자동 감지).

    Args:
        content: 스냅샷 텍스트
        file_path: 스냅샷 파일 경로 (content가 없을 때)
        options: {"overwrite_existing": false, "validate_before_import": true,
                  "create_missing": true}
    """
    return _snapshot.import_snapshot(session, content, file_path, options)


# ── Transactions ─────────────────────────────────────────────────────────


@mcp.tool()
def begin_transaction() -> dict:
    """변경 배치를 시작합니다."""
    return _transaction.begin_transaction(session)


@mcp.tool()
def commit_changes() -> dict:
    """배치를 커밋합니다. 실패하면 자동 롤백됩니다."""
    return _transaction.commit_changes(session)


@mcp.tool()
def save_changes() -> dict:
    """배치를 유지한 채 대기 중인 변경을 저장소에 반영합니다."""
    return _transaction.save_changes(session)


@mcp.tool()
def rollback_changes() -> dict:
    """배치를 취소하고 배치 시작 시점 상태로 복원합니다."""
    return _transaction.rollback_changes(session)


# ── Resources ────────────────────────────────────────────────────────────


@mcp.resource("slc://configuration")
def get_configuration() -> str:
    """현재 회로 한계값, 용량 임계값, 할당 전략 목록을 제공합니다."""
    registry = create_default_registry()
    return json.dumps({
        "config": session.config.model_dump(mode="json"),
        "strategies": [
            {"name": s.strategy.value, "description": s.description}
            for s in registry.strategies
        ],
        "validation_codes": {
            "ADDR_001": "주소 범위 초과",
            "ADDR_002": "주소 중복",
            "ADDR_003": "잠긴 디바이스가 사용 중인 주소",
            "ADDR_004": "회로 내 중복 주소",
            "CAP_001": "회로 최대 디바이스 수 초과",
            "CAP_002": "사용률 95% 초과 (위험)",
            "CAP_003": "안전 임계값 초과",
            "ELEC_001": "전류 한계 초과 (할당 거부)",
            "ELEC_002": "전류 한계 90% 초과",
            "ELEC_003": "회로 총 전류 한계 초과",
            "OPT_001": "설치 순서 기반 주소 제안",
            "SYS_001": "시스템 오류",
        },
    }, ensure_ascii=False, indent=2)


def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
