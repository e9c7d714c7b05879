"""Consume generated fixtures and replay them against the Python ledger."""

from __future__ import annotations

import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from settle_spec.state_digest import compute_state_digest  # noqa: E402
from settle_spec.state_transition import apply_call  # noqa: E402
from tools.fixtures_io import call_from_json, state_from_json, state_to_json  # noqa: E402


def _check_call_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = json.loads(path.read_text())

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        call = call_from_json(case["call"])
        post_state, result = apply_call(pre_state, call)

        expected = case["expected"]
        if result.ok != expected["ok"]:
            failures.append(f"{case['name']}: ok_mismatch")
            continue

        actual_err = result.error.code.name if result.error else None
        if actual_err != expected["error"]:
            failures.append(f"{case['name']}: error_mismatch")
            continue

        expected_post = expected["post_state"]
        if compute_state_digest(post_state) != expected_post["state_digest"]:
            failures.append(f"{case['name']}: digest_mismatch")
            continue

        actual_post = state_to_json(post_state)
        if actual_post["assets"] != expected_post["assets"]:
            failures.append(f"{case['name']}: balance_mismatch")
            continue

        if actual_post["events"] != expected_post["events"]:
            failures.append(f"{case['name']}: event_mismatch")

    return failures


def main() -> None:
    fixtures = ROOT / "fixtures"

    failures: list[str] = []
    for path in sorted(fixtures.rglob("*.json")):
        failures.extend(_check_call_cases(path))

    if failures:
        for f in failures:
            print("FAIL", f)
        raise SystemExit(1)

    print("All fixtures passed")


if __name__ == "__main__":
    main()
