"""RizeOS API entrypoint for running from the repo root.

    uvicorn app.main:app --reload
"""

from backend.app.main import app

__all__ = ["app"]
