"""Regenerate the ledger fixture files under fixtures/.

Runs the test suite with ``--output fixtures``. Every case a test pushes
through the ``call_test_group`` or ``vector_test_group`` fixtures is written
out as JSON at session end; ``tools/consume.py`` replays those files against
the ledger. ``PYTHONPATH`` covers both ``src`` and the repo root so the tests
can import ``settle_spec`` and ``tools``.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
OUT = ROOT / "fixtures"


def main() -> int:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(ROOT / "tests"),
        "-q",
        "--output",
        str(OUT),
    ]
    print("Running:", " ".join(cmd))
    return subprocess.call(cmd, env=env, cwd=str(ROOT))


if __name__ == "__main__":
    raise SystemExit(main())
