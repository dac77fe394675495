from __future__ import annotations
import argparse
import sys
from pathlib import Path

# Ensure project root (which contains `sandworm/`) is on sys.path
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sandworm.config import EngineOptions  # noqa: E402
from sandworm.engine import RuntimeFault, run_source  # noqa: E402
from sandworm.loader import LoadError  # noqa: E402

DEFAULT_MAX_STEPS = 100_000


def check_program(path: Path, max_steps: int = DEFAULT_MAX_STEPS) -> int:
    """Run PROGRAM with PROGRAM.in (if any) and compare stdout bytes with PROGRAM.out."""
    golden_path = Path(str(path) + ".out")
    if not golden_path.exists():
        print(f"[ERROR] Missing golden: {golden_path}")
        return 1
    input_path = Path(str(path) + ".in")
    data = input_path.read_bytes() if input_path.exists() else b""
    try:
        _, port = run_source(path.read_bytes(), data, options=EngineOptions(max_steps=max_steps))
    except (LoadError, RuntimeFault) as e:
        print(f"[FAIL] {path.name}: {e}")
        return 2
    expected = golden_path.read_bytes()
    if bytes(port.output) == expected:
        print(f"[OK] {path.name} matches golden.")
        return 0
    print(f"[FAIL] {path.name}: expected {expected!r}, got {bytes(port.output)!r}")
    return 3


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Run Programs/*.worm and compare output with .out goldens")
    ap.add_argument("--dir", default=str(ROOT / "Programs"))
    ap.add_argument("--max-steps", type=int, default=DEFAULT_MAX_STEPS)
    args = ap.parse_args(argv)

    base = Path(args.dir)
    if not base.exists():
        print(f"[ERROR] {base} not found.")
        return 1
    rc = 0
    for p in sorted(base.glob("*.worm")):
        rc |= check_program(p, args.max_steps)
    return 1 if rc else 0


if __name__ == "__main__":
    raise SystemExit(main())
