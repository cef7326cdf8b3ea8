import logging
import threading
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from ulid import ULID

from reprise.application.session import ReviewSession
from reprise.application.summary import ReviewSummary
from reprise.consts import VERSION
from reprise.domain.errors import (
    InvalidAction,
    InvalidArgument,
    NodeNotFoundError,
    PropertyWriteError,
    RepriseError,
)
from reprise.domain.models import Phase
from reprise.infrastructure.rendering import render_nodes

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("reprise.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"reprise server v{VERSION} starting up...")
    yield
    # Shutdown
    for entry in list(_sessions.values()):
        entry.session.close()
    _sessions.clear()
    logger.info("reprise server shutting down...")


app = FastAPI(
    title="reprise server",
    description="HTTP front end for reprise review sessions.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------------------------------------------------------------------------
# Session registry
# ---------------------------------------------------------------------------


@dataclass
class _SessionEntry:
    session: ReviewSession
    # Actions on one session are serialized; different sessions run freely.
    lock: threading.Lock = field(default_factory=threading.Lock)
    summary: ReviewSummary | None = None


_sessions: dict[str, _SessionEntry] = {}


def _get_entry(session_id: str) -> _SessionEntry:
    entry = _sessions.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return entry


def _http_error(e: RepriseError) -> HTTPException:
    if isinstance(e, NodeNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidArgument):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, InvalidAction):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PropertyWriteError):
        logger.error(f"Write failed: {e}")
        return HTTPException(status_code=500, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


class SessionView(BaseModel):
    id: str
    status: str
    read_only: bool
    cursor: int
    queue_length: int
    phase: str | None = None
    node_id: str | None = None
    card_type: str | None = None
    content: str | None = None
    config: dict[str, Any] = {}
    tally: dict[str, int] = {}
    hints: dict[str, int] = {}
    summary: dict[str, Any] | None = None


def _view(session_id: str, entry: _SessionEntry) -> SessionView:
    session = entry.session
    view = SessionView(
        id=session_id,
        status=session.status.value,
        read_only=session.read_only,
        cursor=session.cursor,
        queue_length=len(session.queue),
        tally={str(k): len(v) for k, v in session.tally.items()},
        summary=entry.summary.to_dict() if entry.summary else None,
    )
    if not session.is_active:
        return view

    card = session.current
    config = session.display_config()
    view.phase = "answer" if session.phase is Phase.ANSWER else "question"
    view.node_id = card.node_id
    view.card_type = card.card_type.value
    view.content = render_nodes(session.visible_nodes(), config)
    view.config = config
    if session.phase is Phase.ANSWER and not session.read_only:
        view.hints = {str(q): days for q, days in session.score_hints().items()}
    return view


def _act(session_id: str, action) -> SessionView:
    entry = _get_entry(session_id)
    with entry.lock:
        try:
            action(entry.session)
            view = _view(session_id, entry)
        except RepriseError as e:
            raise _http_error(e) from e
        if not entry.session.is_active:
            # The final view carries the summary; the session is gone after it.
            _sessions.pop(session_id, None)
            logger.debug(f"Session {session_id} {view.status}, removed from registry")
        return view


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


class SessionRequest(BaseModel):
    # If None, use defaults/config file.
    vault_root: str | None = None
    deck: str | None = None
    preview: bool = False


class ScoreRequest(BaseModel):
    quality: int = Field(ge=0, le=5)


@app.post("/sessions", response_model=SessionView, status_code=201)
def create_session(req: SessionRequest):
    """
    Start a review (or a read-only preview) over the requested vault.
    """
    from reprise.application.config import resolve_config
    from reprise.application.factory import get_review_service

    logger.info(f"Session requested via API: {req}")

    overrides = {"vault_root": req.vault_root, "deck": req.deck}
    config = resolve_config({k: v for k, v in overrides.items() if v is not None})
    service = get_review_service(config)

    session_id = str(ULID())

    def keep_summary(summary: ReviewSummary) -> None:
        entry = _sessions.get(session_id)
        if entry is not None:
            entry.summary = summary

    try:
        if req.preview:
            session = service.start_preview(config.deck)
        else:
            session = service.start_review(config.deck, on_summary=keep_summary)
    except RepriseError as e:
        raise _http_error(e) from e

    if session is None:
        raise HTTPException(status_code=404, detail="No cards to review")

    entry = _SessionEntry(session=session)
    _sessions[session_id] = entry
    return _view(session_id, entry)


@app.get("/sessions/{session_id}", response_model=SessionView)
def get_session(session_id: str):
    return _act(session_id, lambda s: None)


@app.post("/sessions/{session_id}/reveal", response_model=SessionView)
def reveal(session_id: str):
    return _act(session_id, lambda s: s.reveal())


@app.post("/sessions/{session_id}/hide", response_model=SessionView)
def hide(session_id: str):
    return _act(session_id, lambda s: s.hide())


@app.post("/sessions/{session_id}/score", response_model=SessionView)
def score(session_id: str, req: ScoreRequest):
    return _act(session_id, lambda s: s.score(req.quality))


@app.post("/sessions/{session_id}/skip", response_model=SessionView)
def skip(session_id: str):
    return _act(session_id, lambda s: s.skip())


@app.post("/sessions/{session_id}/next", response_model=SessionView)
def next_item(session_id: str):
    return _act(session_id, lambda s: s.next_item())


@app.post("/sessions/{session_id}/reset", response_model=SessionView)
def reset(session_id: str):
    return _act(session_id, lambda s: s.reset())


@app.post("/sessions/{session_id}/finish", response_model=SessionView)
def finish(session_id: str):
    return _act(session_id, lambda s: s.finish())


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    """Discard a session. Nothing further is written for it."""
    entry = _get_entry(session_id)
    with entry.lock:
        entry.session.close()
        _sessions.pop(session_id, None)
    return {"ok": True}
