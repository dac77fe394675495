# sandworm/receipts.py
# Run receipts: a JSON record of one program run (status, final worm state, logs, trace).

from __future__ import annotations
import hashlib
import json
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
from jsonschema import Draft202012Validator

from .loader import Program

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
RECEIPT_SCHEMA_PATH = SCHEMA_DIR / "worm-receipt.schema.json"
EMPTY_HASH = "sha256:" + hashlib.sha256(b"").hexdigest()


def make_base_receipt(program: Optional[Program], *, name: str = "<unknown>", path: Optional[str] = None) -> Dict[str, Any]:
    if program is not None:
        prog = {"name": program.name, "path": program.path, "hash": program.hash}
    else:
        # load failed; hash of nothing keeps the shape valid
        prog = {"name": name, "path": path, "hash": EMPTY_HASH}
    return {
        "engine": "worm",
        "program": prog,
        "run": {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "uuid": str(uuid.uuid4()),
        },
        "status": "running",
        "reason": None,
        "logs": [],
        "steps": [],
    }


def output_text(port: Any) -> str:
    data = getattr(port, "output", None)
    if data is None:
        data = getattr(port, "written", b"")
    return bytes(data).decode("utf-8", errors="replace")


def finalize_receipt(
    base: Dict[str, Any],
    engine: Any = None,
    *,
    status: Optional[str] = None,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge engine logs/trace/final state into base. status defaults from engine.halted."""
    receipt = dict(base)
    if engine is not None:
        receipt["logs"] = list(base.get("logs", [])) + list(engine.receipt.get("logs", []))
        receipt["steps"] = list(engine.receipt.get("steps", []))
        receipt["final"] = engine.summary()
        receipt["output"] = output_text(engine.port)
        receipt["run"] = dict(base["run"], options=engine.options.to_dict())
        if status is None:
            status = "halted" if engine.halted else "running"
    receipt["status"] = status or "error"
    receipt["reason"] = reason
    return receipt


def load_schema(path: Path = RECEIPT_SCHEMA_PATH) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def receipt_errors(receipt: Dict[str, Any]) -> List[str]:
    validator = Draft202012Validator(load_schema())
    return [
        f"{'/'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
        for err in sorted(validator.iter_errors(receipt), key=lambda e: [str(p) for p in e.absolute_path])
    ]


def validate_receipt(receipt: Dict[str, Any]) -> None:
    """Raise jsonschema.ValidationError if the receipt does not match the schema."""
    jsonschema.validate(instance=receipt, schema=load_schema())


def write_receipt(path: Optional[str], receipt: Dict[str, Any], print_receipt: bool) -> None:
    dump = json.dumps(receipt, indent=2, sort_keys=True)
    if print_receipt:
        print(dump)
    if path:
        with open(path, "w", encoding="utf-8") as f:
            f.write(dump + "\n")
