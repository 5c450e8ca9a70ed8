from __future__ import annotations
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator


def _check_percent(value: float, name: str) -> float:
    # coordinates are percentages of the rendered image, not pixels
    if not (0.0 <= value <= 100.0):
        raise ValueError(f"{name} must be a percentage 0..100")
    return value


class Point(BaseModel):
    x: float
    y: float

    @model_validator(mode="after")
    def _norm(self):
        _check_percent(self.x, "x")
        _check_percent(self.y, "y")
        return self


class RectShape(BaseModel):
    type: Literal["rect"] = "rect"
    x: float
    y: float
    width: float
    height: float

    @model_validator(mode="after")
    def _norm(self):
        for name in ("x", "y", "width", "height"):
            _check_percent(getattr(self, name), name)
        if self.x + self.width > 100.0 or self.y + self.height > 100.0:
            raise ValueError("rect must lie inside the image")
        return self


class PolyShape(BaseModel):
    type: Literal["poly"] = "poly"
    points: List[Point]

    @field_validator("points")
    @classmethod
    def _norm(cls, pts: List[Point]):
        if len(pts) < 3:
            raise ValueError("polygon must have >= 3 points")
        return pts


Shape = Annotated[Union[RectShape, PolyShape], Field(discriminator="type")]


# flat wire record keys owned by the shape and by the action variants
SHAPE_KEYS = frozenset({"type", "x", "y", "width", "height", "points", "label"})
ACTION_KEYS = frozenset({
    "actionType",
    "bannerText",
    "bannerPosition",
    "quizQuestion",
    "quizAnswers",
    "quizCorrectIndex",
    "quizShowRationale",
    "targetView",
})
RESERVED_KEYS = SHAPE_KEYS | ACTION_KEYS


class ActionKind(str, Enum):
    NONE = "none"
    BANNER = "banner"
    TARGETED = "targeted"
    QUIZ = "quiz"


class Answer(BaseModel):
    text: str
    rationale: Optional[str] = None

    @field_validator("text")
    @classmethod
    def _non_blank(cls, text: str):
        if not text.strip():
            raise ValueError("answer text must not be blank")
        return text


class NoAction(BaseModel):
    kind: Literal["none"] = "none"


class BannerAction(BaseModel):
    kind: Literal["banner"] = "banner"
    text: str
    position: Literal["top", "bottom"] = "top"

    @field_validator("text")
    @classmethod
    def _non_blank(cls, text: str):
        if not text.strip():
            raise ValueError("banner text must not be blank")
        return text


class TargetedAction(BaseModel):
    kind: Literal["targeted"] = "targeted"
    view_index: int = Field(ge=0)


class QuizAction(BaseModel):
    kind: Literal["quiz"] = "quiz"
    question: str
    answers: List[Answer] = Field(min_length=2, max_length=4)
    correct_index: int
    show_rationale: bool = False

    @model_validator(mode="after")
    def _check(self):
        if not self.question.strip():
            raise ValueError("question must not be blank")
        if not (0 <= self.correct_index < len(self.answers)):
            raise ValueError("correct_index must address one of the answers")
        # the correct answer never carries a rationale
        correct = self.answers[self.correct_index]
        if correct.rationale is not None:
            self.answers[self.correct_index] = correct.model_copy(update={"rationale": None})
        return self

    @property
    def correct_answer(self) -> Answer:
        return self.answers[self.correct_index]


Action = Annotated[
    Union[NoAction, BannerAction, TargetedAction, QuizAction],
    Field(discriminator="kind"),
]


class Zone(BaseModel):
    shape: Shape
    label: Optional[str] = None
    action: Action = Field(default_factory=NoAction)
    # unknown wire keys from newer writers, written back untouched
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("extra")
    @classmethod
    def _no_reserved_keys(cls, extra: Dict[str, Any]):
        # shape/action properties only ever come from shape and action
        return {k: v for k, v in extra.items() if k not in RESERVED_KEYS}

    @property
    def kind(self) -> ActionKind:
        return ActionKind(self.action.kind)
