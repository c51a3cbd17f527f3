import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import ai as ai_api
from .api import applications as applications_api
from .api import auth as auth_api
from .api import connections as connections_api
from .api import jobs as jobs_api
from .api import payments as payments_api
from .api import posts as posts_api
from .api import users as users_api
from .config import FRONTEND_ORIGINS, LOG_LEVEL
from .database import engine, init_db
from .services.ai_service import ai_enabled
from .utils.error_handlers import register_exception_handlers

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="RizeOS API")

app.include_router(auth_api.router)
app.include_router(users_api.router)
app.include_router(jobs_api.router)
app.include_router(posts_api.router)
app.include_router(applications_api.router)
app.include_router(connections_api.router)
app.include_router(payments_api.router)
app.include_router(ai_api.router)

register_exception_handlers(app)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "RizeOS API", "aiEnabled": ai_enabled()}


_default_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=[*_default_origins, *FRONTEND_ORIGINS],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    try:
        init_db()
        app.state.db_init_error = None
    except Exception as e:
        logger.exception("Database initialization failed")
        app.state.db_init_error = str(e)


@app.get("/db/health")
def db_health():
    if getattr(app.state, "db_init_error", None):
        raise HTTPException(
            status_code=503,
            detail=f"DB init failed: {app.state.db_init_error}",
        )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"DB connection failed: {e}",
        )

    return {"status": "ok"}
