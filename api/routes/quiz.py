from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict

from core import state
from core.errors import InvalidTransition, NoSelectionAtSubmit, OutOfRange
from services.quiz_session import OptionMarker, QuizSession, QuizState, RenderState, render_state

router = APIRouter(prefix="/quiz-sessions", tags=["quiz"])


class OptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    index: int
    text: str
    marker: OptionMarker
    enabled: bool


class FeedbackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    correct: bool
    headline: str
    rationale: Optional[str] = None
    message: Optional[str] = None


class SessionView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    session_id: str
    state: QuizState
    question: str
    options: List[OptionOut]
    can_submit: bool
    can_dismiss: bool
    feedback: Optional[FeedbackOut] = None
    notice: Optional[str] = None

    @classmethod
    def from_session(cls, rendered: RenderState) -> "SessionView":
        return cls.model_validate(rendered)


class Selection(BaseModel):
    index: int


def _session(session_id: str) -> QuizSession:
    with state.sessions_lock:
        session = state.quiz_sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="quiz session not found")
    return session


@router.get("/{session_id}", response_model=SessionView)
def get_session(session_id: str):
    return SessionView.from_session(render_state(_session(session_id)))


@router.post("/{session_id}/select", response_model=SessionView)
def select(session_id: str, body: Selection):
    session = _session(session_id)
    try:
        session.select(body.index)
    except OutOfRange as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return SessionView.from_session(render_state(session))


@router.post("/{session_id}/submit", response_model=SessionView)
def submit(session_id: str):
    session = _session(session_id)
    try:
        session.submit()
    except NoSelectionAtSubmit:
        # stays presented; the notice is part of the rendered state
        pass
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return SessionView.from_session(render_state(session))


@router.post("/{session_id}/dismiss", response_model=SessionView)
def dismiss(session_id: str):
    session = _session(session_id)
    try:
        session.dismiss()
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    with state.sessions_lock:
        state.quiz_sessions.pop(session_id, None)
    return SessionView.from_session(render_state(session))
