"""ASGI entrypoint for the Nuclear Pulse API.

Run with ``uvicorn main:app`` or directly with ``python main.py [port]``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import uvicorn

# Ensure the src directory is on the Python path so the nuclearpulse package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from nuclearpulse.api.app import app  # noqa: E402  (import after path setup)

__all__ = ("app",)


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8000
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="info")
