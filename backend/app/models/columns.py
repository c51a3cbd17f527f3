from datetime import datetime, timezone
from uuid import uuid4


def new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    # Python-side timestamps keep microseconds, so newest-first ordering is stable on SQLite too.
    return datetime.now(timezone.utc)
