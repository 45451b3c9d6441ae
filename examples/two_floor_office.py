"""2층 사무실: 회로 구성 → 자동 주소 할당 → 균형화 → CSV export.

동작:
  P1-C1: 1층 감지기 20개 (과부하, 사용률 80% 초과)
  P1-C2: 2층 감지기 4개 + 수동발신기 1개
  P1-C3: 2층 모듈 1개 (현장 설치 완료, 주소 5 잠금)
  미할당: 스피커 스트로브 1개 → P1-C3에 배치

검증:
  잠긴 모듈의 주소 5는 자동 할당 후에도 그대로 유지
  균형화 후 불균형(표준편차)이 감소
"""

from __future__ import annotations

import os
import sys

from slc_addressing_mcp.config import load_config
from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.models.options import AutoAssignOptions, BalancingOptions


def build_host_devices() -> list[dict]:
    """Host device snapshots for the two-floor office."""
    devices: list[dict] = []
    for i in range(1, 21):
        devices.append({
            "element_id": str(1000 + i),
            "level": "L1",
            "room": f"1{i // 5:02d}",
            "family_name": "FA Smoke Detector",
            "x": float(i),
            "current_draw": 0.05,
            "circuit_number": "P1-C1",
        })
    for i in range(1, 5):
        devices.append({
            "element_id": str(2000 + i),
            "level": "L2",
            "room": "201",
            "family_name": "Heat Detector",
            "current_draw": 0.05,
            "circuit_number": "P1-C2",
        })
    devices.append({
        "element_id": "2100",
        "level": "L2",
        "room": "201",
        "family_name": "Manual Pull Station",
        "current_draw": 0.05,
        "circuit_number": "P1-C2",
    })
    devices.append({
        "element_id": "2200",
        "level": "L2",
        "room": "202",
        "family_name": "Monitor Module",
        "current_draw": 0.1,
        "circuit_number": "P1-C3",
        "address": "5",
        "lock_state": "locked",
    })
    devices.append({
        "element_id": "2300",
        "level": "L2",
        "room": "202",
        "family_name": "Speaker Strobe",
        "current_draw": 0.3,
    })
    return devices


if __name__ == "__main__":
    session = AddressingSession(load_config())

    # Panels
    init = session.initialize_panels(build_host_devices())
    print(f"=== Panels: {init.panel_ids}, {init.circuit_count} circuits, "
          f"{init.total_devices} devices ===")
    for warning in init.warnings:
        print(f"  ! {warning}")

    # Place the unassigned speaker strobe
    outcome = session.assign_device_to_circuit("2300", "P1-C3")
    print(f"2300 -> P1-C3: {outcome.status}")

    # Auto-assign by floor
    result = session.auto_assign_all(AutoAssignOptions(strategy="by_floor"))
    print(f"\n=== Auto-assign: {result.devices_assigned} assigned, "
          f"{result.devices_skipped} skipped, {result.devices_failed} failed ===")
    session.commit()

    locked = session.find_device("2200")
    if locked.address != 5:
        print(f"\nLocked address check: FAIL (got {locked.address})")
        sys.exit(1)
    print("Locked address check: PASS")

    # Balance
    balance = session.balance_circuits(BalancingOptions(target_utilization=0.6))
    print(f"\n=== Balancing: {balance.devices_moved} moved, imbalance "
          f"{balance.imbalance_before:.3f} -> {balance.imbalance_after:.3f} ===")
    for move in balance.moves:
        print(f"  {move.device_id}: {move.from_circuit} -> {move.to_circuit or '-'} "
              f"({move.message})")
    if balance.devices_moved and not balance.success:
        print("Balancing check: FAIL")
        sys.exit(1)
    session.commit()

    # Validate
    validation = session.validate_panel()
    print(f"\n=== Validation: valid={validation.is_valid}, "
          f"{validation.error_count} error(s), {validation.warning_count} warning(s) ===")
    for message in validation.messages:
        print(f"  [{message.code}] {message.message}")

    # Export CSV
    out_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "out")
    os.makedirs(out_dir, exist_ok=True)
    csv_path = os.path.join(out_dir, "two_floor_office.csv")
    with open(csv_path, "wb") as f:
        f.write(session.export_snapshot("csv"))
    print(f"\nCSV exported: {csv_path}")
