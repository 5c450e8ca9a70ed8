from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from core.errors import OutOfRange
from models.zone import BannerAction, QuizAction, TargetedAction, Zone
from services.navigator import advance_sequential, navigate_to
from services.quiz_session import QuizSession

logger = logging.getLogger(__name__)


class DispatchKind(str, Enum):
    BANNER = "banner"
    QUIZ = "quiz"
    NAVIGATE = "navigate"
    ADVANCE = "advance"


@dataclass
class Dispatch:
    kind: DispatchKind
    view_index: Optional[int] = None
    banner: Optional[BannerAction] = None
    session: Optional[QuizSession] = None
    error: Optional[str] = None
    # the click stops at this zone
    handled: bool = True


class ClickContext(Protocol):
    current_index: int
    view_count: int

    def show_banner(self, banner: BannerAction) -> None: ...

    def start_quiz(self, session: QuizSession) -> None: ...

    def navigate(self, index: int) -> None: ...

    def report_error(self, error: Exception) -> None: ...


def _advance(context: ClickContext, error: Optional[str] = None) -> Dispatch:
    index = advance_sequential(context.current_index, context.view_count)
    context.navigate(index)
    return Dispatch(DispatchKind.ADVANCE, view_index=index, error=error)


def resolve_and_dispatch(zone: Zone, context: ClickContext) -> Dispatch:
    """Run exactly one action for a click on ``zone``.

    Branch order is banner, quiz, targeted, sequential, matching the order in
    which stored records are decoded. A target outside the lesson is reported
    and replaced by sequential advancement.
    """
    action = zone.action

    if isinstance(action, BannerAction):
        context.show_banner(action)
        return Dispatch(DispatchKind.BANNER, banner=action)

    if isinstance(action, QuizAction):
        session = QuizSession(action)
        context.start_quiz(session)
        return Dispatch(DispatchKind.QUIZ, session=session)

    if isinstance(action, TargetedAction):
        try:
            index = navigate_to(action.view_index, context.view_count)
        except OutOfRange as exc:
            logger.error("Zone %r targets missing view: %s", zone.label, exc)
            context.report_error(exc)
            return _advance(context, error=str(exc))
        context.navigate(index)
        return Dispatch(DispatchKind.NAVIGATE, view_index=index)

    return _advance(context)
