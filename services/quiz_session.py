"""One quiz attempt, from the click on a quiz zone until the student continues.

The session is strictly linear::

    PRESENTED --submit (with a selection)--> ANSWERED --dismiss--> CLOSED

A new click always builds a new session, so nothing carries over between
attempts. Presentation is derived from the session by :func:`render_state`
and never stored on it.
"""
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from core.errors import InvalidTransition, NoSelectionAtSubmit, OutOfRange
from models.zone import QuizAction

logger = logging.getLogger(__name__)

NO_SELECTION_NOTICE = "Please select an answer."
CORRECT_HEADLINE = "Correct!"
INCORRECT_HEADLINE = "Incorrect"


class QuizState(str, Enum):
    PRESENTED = "presented"
    ANSWERED = "answered"
    CLOSED = "closed"


class OptionMarker(str, Enum):
    NONE = "none"
    SELECTED = "selected"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class OptionView:
    index: int
    text: str
    marker: OptionMarker
    enabled: bool


@dataclass(frozen=True)
class Feedback:
    correct: bool
    headline: str
    rationale: Optional[str] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class RenderState:
    session_id: str
    state: QuizState
    question: str
    options: List[OptionView]
    can_submit: bool
    can_dismiss: bool
    feedback: Optional[Feedback] = None
    notice: Optional[str] = None


class QuizSession:
    def __init__(self, quiz: QuizAction, session_id: str | None = None):
        self.id = session_id or uuid.uuid4().hex
        self.quiz = quiz
        self.state = QuizState.PRESENTED
        self.selected_index: int | None = None
        self.notice: str | None = None

    def _require(self, expected: QuizState, event: str):
        if self.state is not expected:
            raise InvalidTransition(self.state.value, event)

    def select(self, index: int) -> None:
        """Choose an option; replaces any earlier choice."""
        self._require(QuizState.PRESENTED, "select")
        if not (0 <= index < len(self.quiz.answers)):
            raise OutOfRange(index, len(self.quiz.answers), what="answer")
        self.selected_index = index
        self.notice = None

    def submit(self) -> bool:
        """Freeze the selection and return whether it was correct."""
        self._require(QuizState.PRESENTED, "submit")
        if self.selected_index is None:
            self.notice = NO_SELECTION_NOTICE
            raise NoSelectionAtSubmit()
        self.state = QuizState.ANSWERED
        self.notice = None
        logger.debug("Quiz session %s answered %d (correct=%s)", self.id, self.selected_index, self.is_correct)
        return self.is_correct

    def dismiss(self) -> None:
        self._require(QuizState.ANSWERED, "dismiss")
        self.state = QuizState.CLOSED

    @property
    def is_correct(self) -> bool:
        return self.selected_index is not None and self.selected_index == self.quiz.correct_index


def _feedback(session: QuizSession) -> Feedback:
    quiz = session.quiz
    if session.is_correct:
        return Feedback(correct=True, headline=CORRECT_HEADLINE)
    chosen = quiz.answers[session.selected_index]
    if quiz.show_rationale and chosen.rationale and chosen.rationale.strip():
        return Feedback(correct=False, headline=INCORRECT_HEADLINE, rationale=chosen.rationale)
    return Feedback(
        correct=False,
        headline=INCORRECT_HEADLINE,
        message=f"The correct answer is: {quiz.correct_answer.text}",
    )


def _marker(session: QuizSession, index: int) -> OptionMarker:
    if session.state is QuizState.PRESENTED:
        return OptionMarker.SELECTED if index == session.selected_index else OptionMarker.NONE
    if index == session.quiz.correct_index:
        return OptionMarker.CORRECT
    if index == session.selected_index:
        return OptionMarker.INCORRECT
    return OptionMarker.NONE


def render_state(session: QuizSession) -> RenderState:
    presented = session.state is QuizState.PRESENTED
    options = [
        OptionView(index=i, text=a.text, marker=_marker(session, i), enabled=presented)
        for i, a in enumerate(session.quiz.answers)
    ]
    return RenderState(
        session_id=session.id,
        state=session.state,
        question=session.quiz.question,
        options=options,
        can_submit=presented,
        can_dismiss=session.state is QuizState.ANSWERED,
        feedback=None if presented else _feedback(session),
        notice=session.notice,
    )
