from __future__ import annotations
import re
from typing import Any, List, Mapping, Optional

from core.errors import ValidationError, ValidationErrorKind
from models.zone import Answer, BannerAction, QuizAction, TargetedAction

MIN_ANSWERS = 2
MAX_ANSWERS = 4

_INT = re.compile(r"-?[0-9]+")


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # ASCII digits only; str.isdigit also accepts superscripts int() rejects
    if isinstance(value, str) and _INT.fullmatch(value.strip()):
        return int(value.strip())
    return None


def validate_quiz(fields: Mapping[str, Any]) -> QuizAction:
    """Validate quiz form fields and build the action.

    ``answers`` are the form's answer slots; blank slots are dropped and
    ``correct_index`` must point at a non-blank slot. ``rationales``, when
    given, is aligned with the slots; the correct slot's entry is ignored.
    Raises ``ValidationError`` and has no side effects.
    """
    question = _clean(fields.get("question"))
    if not question:
        raise ValidationError(ValidationErrorKind.EMPTY_QUESTION, "Please enter a question.")

    slots: List[Any] = list(fields.get("answers") or [])
    filled = [i for i, text in enumerate(slots) if _clean(text)]
    if len(filled) < MIN_ANSWERS:
        raise ValidationError(
            ValidationErrorKind.TOO_FEW_ANSWERS,
            f"Please provide at least {MIN_ANSWERS} answers.",
        )
    if len(filled) > MAX_ANSWERS:
        raise ValidationError(
            ValidationErrorKind.TOO_MANY_ANSWERS,
            f"A quiz can have at most {MAX_ANSWERS} answers.",
        )

    correct_slot = _as_int(fields.get("correct_index"))
    if correct_slot is None or correct_slot not in filled:
        raise ValidationError(
            ValidationErrorKind.INVALID_CORRECT_INDEX,
            "The correct answer must be one of the answers you entered.",
        )

    rationales: List[Any] = list(fields.get("rationales") or [])
    show_rationale = bool(fields.get("show_rationale", False))
    answers = []
    for slot in filled:
        rationale = None
        if show_rationale and slot != correct_slot and slot < len(rationales):
            rationale = _clean(rationales[slot]) or None
        answers.append(Answer(text=_clean(slots[slot]), rationale=rationale))

    return QuizAction(
        question=question,
        answers=answers,
        correct_index=filled.index(correct_slot),
        show_rationale=show_rationale,
    )


def validate_banner(fields: Mapping[str, Any]) -> BannerAction:
    text = _clean(fields.get("text"))
    if not text:
        raise ValidationError(ValidationErrorKind.EMPTY_BANNER_TEXT, "Please enter the banner text.")
    position = fields.get("position") or "top"
    if position not in ("top", "bottom"):
        raise ValidationError(
            ValidationErrorKind.INVALID_BANNER_POSITION,
            "Banner position must be 'top' or 'bottom'.",
        )
    return BannerAction(text=text, position=position)


def validate_target(fields: Mapping[str, Any], view_count: Optional[int] = None) -> TargetedAction:
    index = _as_int(fields.get("view_index"))
    if index is None or index < 0 or (view_count is not None and index >= view_count):
        upper = f" and {view_count - 1}" if view_count else ""
        raise ValidationError(
            ValidationErrorKind.INVALID_TARGET_VIEW,
            f"Target view must be a number between 0{upper}.",
        )
    return TargetedAction(view_index=index)
