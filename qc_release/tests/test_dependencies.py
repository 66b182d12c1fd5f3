"""
Smoke test to confirm that required Python dependencies are present.

Running `pytest qc_release/tests/test_dependencies.py -s` will print a line per dependency
in the format `Dependency name - Status`.
"""
from __future__ import annotations

import importlib

DEPENDENCIES = [
    ("fastapi", "fastapi"),
    ("uvicorn", "uvicorn"),
    ("pydantic", "pydantic"),
    ("reportlab", "reportlab"),
    ("httpx", "httpx"),  # required by fastapi.testclient
]


def test_dependencies_available():
    missing = []
    status_lines = []

    for display_name, module_name in DEPENDENCIES:
        try:
            importlib.import_module(module_name)
            status_lines.append(f"{display_name} - OK")
        except Exception as exc:  # pragma: no cover - import errors don't need coverage
            status_lines.append(f"{display_name} - MISSING ({exc})")
            missing.append(display_name)

    print("\n".join(status_lines))

    if missing:
        raise AssertionError(f"Missing dependencies: {', '.join(missing)}")
