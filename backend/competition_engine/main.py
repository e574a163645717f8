import logging
import os
import subprocess
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from competition_engine.database import engine, init_db
from competition_engine.db_schema_patch import ensure_competition_columns, ensure_match_columns
from competition_engine.routes import bracket, clubs, competitions, results, standings

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Competition Engine API"

app = FastAPI(title=APP_NAME)


def get_build_info():
    """Get git commit hash or build timestamp"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=os.path.dirname(os.path.dirname(__file__)),
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass

    # Fallback to build timestamp
    return datetime.now().strftime("%Y%m%d-%H%M%S")


BUILD_HASH = get_build_info()

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    _cors_origins.extend(o.strip() for o in _extra.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clubs.router, prefix="/api", tags=["clubs"])
app.include_router(competitions.router, prefix="/api", tags=["competitions"])
app.include_router(bracket.router, prefix="/api", tags=["bracket"])
# Results and advancement (record / correct / reset)
app.include_router(results.router, prefix="/api", tags=["results"])
app.include_router(standings.router, prefix="/api", tags=["standings"])


@app.on_event("startup")
def on_startup():
    init_db()
    ensure_competition_columns(engine)
    ensure_match_columns(engine)

    route_count = 0
    for r in app.routes:
        path = getattr(r, "path", None)
        if not path:
            continue
        methods = getattr(r, "methods", None)
        logger.debug("%-20s %s", ", ".join(sorted(methods)) if methods else "N/A", path)
        route_count += 1
    logger.info("%s started: %d routes, build %s", APP_NAME, route_count, BUILD_HASH)


@app.get("/api/health")
def health_check():
    """Diagnostic endpoint to verify which code is running"""
    return {"app_name": APP_NAME, "build_hash": BUILD_HASH, "status": "healthy"}
