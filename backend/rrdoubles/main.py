import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rrdoubles import config
from rrdoubles.database import init_db
from rrdoubles.routes import competitors, runtime, schedule, tournaments

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

APP_NAME = "Round-Robin Doubles Scheduler API"

app = FastAPI(title=APP_NAME)

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

# Include routers
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(competitors.router, prefix="/api", tags=["competitors"])
app.include_router(schedule.router, prefix="/api", tags=["schedule"])
# Score entry + standings (no schedule mutation)
app.include_router(runtime.router, prefix="/api", tags=["runtime"])


@app.on_event("startup")
def on_startup():
    init_db()
    route_count = sum(1 for r in app.routes if getattr(r, "path", None))
    logger.info("%s started: %d routes registered", APP_NAME, route_count)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "status": "healthy"}
