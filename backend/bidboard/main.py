import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from bidboard.database import engine
from bidboard.models.base import Base
import bidboard.models  # noqa: F401 - register every table for create_all
from bidboard.api.endpoints import (
    analytics,
    apm,
    changes,
    notes,
    project_vendors,
    projects,
    reports,
    users,
    vendors,
)
from bidboard.services.file_service import ensure_upload_dir, upload_dir


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    ensure_upload_dir()
    yield


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


app = FastAPI(title="Bid Board API", version="0.1.0", lifespan=lifespan)

# Uploaded insurance certificates are served at /static/<relative path>
app.mount("/static", StaticFiles(directory=str(upload_dir()), check_dir=False), name="static")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(projects.router)
app.include_router(project_vendors.router)
app.include_router(notes.router)
app.include_router(vendors.router)
app.include_router(apm.router)
app.include_router(reports.router)
app.include_router(analytics.router)
app.include_router(changes.router)


@app.get("/health")
def health():
    """Health check endpoint for load balancers and readiness probes."""
    return {
        "status": "ok",
        "service": "bidboard-backend",
        "email_configured": bool(os.getenv("SMTP2GO_API_KEY", "").strip()),
    }
