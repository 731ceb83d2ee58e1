import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pitchplan.config import CORS_ORIGINS
from pitchplan.database import init_db
from pitchplan.logging_config import setup_logging
from pitchplan.routes import competitions, pitches, schedule, tournaments

logger = logging.getLogger(__name__)

APP_NAME = "Pitchplan API"

app = FastAPI(title=APP_NAME)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]
_cors_origins.extend(o for o in CORS_ORIGINS if o not in _cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(pitches.router, prefix="/api", tags=["pitches"])
app.include_router(competitions.router, prefix="/api", tags=["competitions"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])


@app.on_event("startup")
def on_startup():
    setup_logging()
    init_db()  # Use centralized init_db() which imports models and creates tables
    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("%s started with %d routes", APP_NAME, route_count)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
