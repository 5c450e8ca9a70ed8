import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core import state
from core.errors import LessonNotFound, OutOfRange
from models.lesson import Lesson, LessonSummary
from models.zone import BannerAction
from services.geometry import find_zone_at
from services.lesson_store import LessonStore
from services.quiz_session import QuizSession, render_state
from services.resolver import Dispatch, resolve_and_dispatch
from api.deps import get_store
from api.routes.quiz import SessionView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lessons", tags=["lessons"])


class Click(BaseModel):
    x: float
    y: float


class ClickResult(BaseModel):
    action: Literal["banner", "quiz", "navigate", "advance", "miss"]
    zone_index: Optional[int] = None
    view_index: Optional[int] = None
    banner: Optional[BannerAction] = None
    quiz: Optional[SessionView] = None
    error: Optional[str] = None


class ViewerContext:
    """Collects what a click asks the viewer to do."""

    def __init__(self, current_index: int, view_count: int):
        self.current_index = current_index
        self.view_count = view_count
        self.errors: list[str] = []

    def show_banner(self, banner: BannerAction) -> None:
        # the client shows it from the returned dispatch
        pass

    def start_quiz(self, session: QuizSession) -> None:
        limit = state.settings.QUIZ_SESSIONS_MAX if state.settings else None
        with state.sessions_lock:
            state.quiz_sessions[session.id] = session
            # oldest abandoned attempts go first
            while limit is not None and len(state.quiz_sessions) > limit:
                evicted, _ = state.quiz_sessions.popitem(last=False)
                logger.info("Dropped quiz session %s (over %d live sessions)", evicted, limit)

    def navigate(self, index: int) -> None:
        # the client moves to the returned view index
        pass

    def report_error(self, error: Exception) -> None:
        self.errors.append(str(error))


@router.get("", response_model=list[LessonSummary])
def list_lessons(store: LessonStore = Depends(get_store)):
    with state.store_lock:
        return store.list_lessons()


@router.get("/{name}", response_model=Lesson)
def get_lesson(name: str, store: LessonStore = Depends(get_store)):
    try:
        with state.store_lock:
            return store.get_lesson(name)
    except LessonNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/{name}/views/{view_index}/click", response_model=ClickResult)
def click(name: str, view_index: int, body: Click, store: LessonStore = Depends(get_store)):
    try:
        with state.store_lock:
            lesson = store.get_lesson(name)
    except LessonNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if not (0 <= view_index < lesson.view_count):
        raise HTTPException(status_code=404, detail=str(OutOfRange(view_index, lesson.view_count)))

    zones = lesson.views[view_index].zones
    zone_index = find_zone_at(zones, body.x, body.y)
    if zone_index is None:
        return ClickResult(action="miss", view_index=view_index)

    context = ViewerContext(view_index, lesson.view_count)
    dispatch: Dispatch = resolve_and_dispatch(zones[zone_index], context)
    return ClickResult(
        action=dispatch.kind.value,
        zone_index=zone_index,
        view_index=dispatch.view_index,
        banner=dispatch.banner,
        quiz=SessionView.from_session(render_state(dispatch.session)) if dispatch.session else None,
        error=dispatch.error,
    )
