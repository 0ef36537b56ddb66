"""Main FastAPI application with modularized routes."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ielts_mock.database import init_db
from ielts_mock.routes import content, mocks, review, sessions
from ielts_mock.services.attempt_service import AttemptJournal
from ielts_mock.services.review_service import ReviewRegistry
from ielts_mock.services.session_service import SessionRegistry
from logging_setup import setup_console_logging

setup_console_logging()

app = FastAPI(title="IELTS Mock Exam API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session stores, injected into routes through dependencies
app.state.sessions = SessionRegistry()
app.state.reviews = ReviewRegistry()
app.state.journal = AttemptJournal()


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize the attempt journal database on startup."""
    init_db()


@app.on_event("shutdown")
def shutdown_events() -> None:
    """Stop running timers and auto-save loops."""
    app.state.sessions.clear()
    app.state.reviews.clear()


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


# Include routers
app.include_router(mocks.router)
app.include_router(content.router)
app.include_router(sessions.router)
app.include_router(review.router)
