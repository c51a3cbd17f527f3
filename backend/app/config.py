import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so edits to backend/.env take effect on process reload.
#
# Tests point DATABASE_URL at a temporary SQLite file; set DISABLE_DOTENV=1 so a
# developer's .env cannot override it.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or default).strip() in {"1", "true", "True", "yes", "YES"}


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Default to a local SQLite DB so the backend starts out-of-the-box.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "rizeos.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# Auth / JWT
# NOTE: keep a default for local dev so the server can boot even if SECRET_KEY isn't set.
SECRET_KEY = os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET") or "dev_secret_change_me"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)) or "10080")
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10") or "10")

# -------------------- AI enrichment (OpenAI-compatible chat completions) --------------------
AI_API_KEY = os.getenv("AI_API_KEY") or os.getenv("OPENAI_API_KEY")
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://api.openai.com/v1")
AI_MODEL = os.getenv("AI_MODEL", "gpt-4o")

# Per-attempt HTTP timeout, retry count and an overall deadline for one AI operation.
AI_TIMEOUT_S = float(os.getenv("AI_TIMEOUT_S", "10") or "10")
AI_MAX_RETRIES = int(os.getenv("AI_MAX_RETRIES", "1") or "1")
AI_TOTAL_TIMEOUT_S = float(os.getenv("AI_TOTAL_TIMEOUT_S", "25") or "25")
AI_LOG_PAYLOADS = _env_flag("AI_LOG_PAYLOADS")

# -------------------- Matching --------------------
# Product caps: top-N in the deterministic listing, and how many active jobs are scored.
MATCH_RESULTS_LIMIT = int(os.getenv("MATCH_RESULTS_LIMIT", "10") or "10")
MATCH_CANDIDATE_POOL = int(os.getenv("MATCH_CANDIDATE_POOL", "50") or "50")

# -------------------- Payments (simulated chain verification) --------------------
PAYMENT_VERIFY_DELAY_S = float(os.getenv("PAYMENT_VERIFY_DELAY_S", "1.0") or "1.0")

LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
FRONTEND_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]
