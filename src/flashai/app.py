from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from .db import RecordStore
from .generator import GenerationError
from .mastery import points_for_interval
from .models import Card, DifficultyLevel, Rating, StudyMode
from .selection import DEFAULT_SESSION_LIMIT
from .session import NothingDueError, StudyEngine, StudySession
from .stats import display_topic


class GenerateRequest(BaseModel):
    topic: str = Field(min_length=1)
    level: DifficultyLevel = DifficultyLevel.HIGH_SCHOOL
    count: int = Field(default=5, ge=1, le=50)
    mode: StudyMode = "flashcard"
    bidirectional: bool = False


class RateRequest(BaseModel):
    rating: Rating


@asynccontextmanager
async def lifespan(app: FastAPI):
    if getattr(app.state, "engine", None) is None:
        store = RecordStore()
        store.init()
        app.state.engine = StudyEngine(store)
    app.state.sessions = {}
    yield


app = FastAPI(title="FlashAI", lifespan=lifespan)


def get_engine(request: Request) -> StudyEngine:
    return request.app.state.engine


def _sessions(request: Request) -> dict[str, StudySession]:
    sessions = getattr(request.app.state, "sessions", None)
    if sessions is None:
        sessions = request.app.state.sessions = {}
    return sessions


def _card_payload(card: Card) -> dict[str, Any]:
    payload = card.to_dict()
    payload["points"] = points_for_interval(card.interval)
    return payload


def _session_payload(session: StudySession) -> dict[str, Any]:
    current = session.current
    return {
        "id": session.id,
        "mode": session.mode,
        "index": session.index,
        "total": len(session.cards),
        "finished": session.finished,
        "progress_percent": session.progress_percent,
        "current": _card_payload(current) if current is not None else None,
        "stats": asdict(session.stats),
    }


def _get_session(request: Request, session_id: str) -> StudySession:
    session = _sessions(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@app.get("/api/library")
async def library(engine: StudyEngine = Depends(get_engine)) -> dict[str, Any]:
    cards = engine.cards.load_all()
    return {"count": len(cards), "cards": [_card_payload(card) for card in cards]}


@app.get("/api/due")
async def due(engine: StudyEngine = Depends(get_engine)) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {"due_count": engine.selector.count_due(now)}


@app.post("/api/sessions/generate", status_code=status.HTTP_201_CREATED)
async def start_generated_session(
    request: Request,
    body: GenerateRequest,
    engine: StudyEngine = Depends(get_engine),
) -> dict[str, Any]:
    try:
        session = engine.start_generated(
            body.topic,
            body.level,
            body.count,
            mode=body.mode,
            bidirectional=body.bidirectional,
        )
    except GenerationError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate cards. Check your API key or try a different topic.",
        )
    _sessions(request)[session.id] = session
    return _session_payload(session)


@app.post("/api/sessions/interleaved", status_code=status.HTTP_201_CREATED)
async def start_interleaved_session(
    request: Request,
    limit: int = Query(DEFAULT_SESSION_LIMIT, ge=1),
    engine: StudyEngine = Depends(get_engine),
) -> dict[str, Any]:
    try:
        session = engine.start_interleaved(limit)
    except NothingDueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    _sessions(request)[session.id] = session
    return _session_payload(session)


@app.get("/api/sessions/{session_id}")
async def session_state(request: Request, session_id: str) -> dict[str, Any]:
    return _session_payload(_get_session(request, session_id))


@app.post("/api/sessions/{session_id}/rate")
async def rate_card(
    request: Request,
    session_id: str,
    body: RateRequest,
    engine: StudyEngine = Depends(get_engine),
) -> dict[str, Any]:
    session = _get_session(request, session_id)
    if session.finished:
        raise HTTPException(status_code=409, detail="Session is already finished")
    outcome = engine.rate(session, body.rating)
    if outcome.finished:
        _sessions(request).pop(session_id, None)
    return {
        "card": _card_payload(outcome.card),
        "points": outcome.points,
        "session": _session_payload(session),
    }


@app.get("/api/stats/topics")
async def topic_stats(engine: StudyEngine = Depends(get_engine)) -> dict[str, Any]:
    return {key: stat.to_dict() for key, stat in engine.topic_stats.get_all().items()}


@app.get("/api/stats/global")
async def global_stats(engine: StudyEngine = Depends(get_engine)) -> dict[str, Any]:
    return engine.topic_stats.get_global().to_dict()


@app.get("/api/stats/top")
async def top_topics(limit: int = 5, engine: StudyEngine = Depends(get_engine)) -> dict[str, Any]:
    return {"topics": [display_topic(key) for key in engine.topic_stats.get_top(limit)]}


@app.get("/api/level")
async def level(engine: StudyEngine = Depends(get_engine)) -> dict[str, Any]:
    return asdict(engine.mastery.level_info())


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run("flashai.app:app", host="127.0.0.1", port=8000, reload=True)


if __name__ == "__main__":
    main()
