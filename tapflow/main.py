import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from tapflow.core.config import settings
from tapflow.core.database import Base, engine
from tapflow.scheduler import start_scheduler, scheduler
from tapflow.api import campaigns, leads, outreach, events

# Registers every pipeline function on the bus
import tapflow.workers.pipeline  # noqa: F401
from tapflow.models import *  # noqa: F401,F403

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


app = FastAPI(title="Tapflow Backend")

# -------------------------
# CORS
# -------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------
# Include Routers
# -------------------------
app.include_router(campaigns.router)
app.include_router(leads.router)
app.include_router(outreach.router)
app.include_router(events.router)


# -------------------------
# DB INIT
# -------------------------
Base.metadata.create_all(bind=engine)


# -------------------------
# Errors
# -------------------------
@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# -------------------------
# FastAPI lifecycle
# -------------------------

@app.on_event("startup")
def startup():
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
        logger.info("Scheduler started")

@app.on_event("shutdown")
def shutdown():
    if scheduler.running:
        scheduler.shutdown()

# -------------------------
# Routes
# -------------------------

@app.get("/")
def root():
    return {"status": "running"}
