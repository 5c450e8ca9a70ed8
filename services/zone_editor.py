"""Admin-side editing of a zone's action.

Edits never touch the shape. An action is staged and validated in full
before it replaces the zone's current one, so a failed or cancelled edit
leaves the zone exactly as it was.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol

from core.errors import OutOfRange, ValidationError, ValidationErrorKind
from models.zone import ActionKind, NoAction, QuizAction, Zone
from services.validation import MAX_ANSWERS, validate_banner, validate_quiz, validate_target

logger = logging.getLogger(__name__)


@dataclass
class FormField:
    id: str
    label: str
    kind: str = "text"  # text | textarea | select | checkbox | readonly
    options: List[str] = field(default_factory=list)
    value: Any = None


@dataclass
class Form:
    id: str
    title: str
    fields: List[FormField]


class FormCollector(Protocol):
    def collect(self, form: Form) -> Optional[Mapping[str, Any]]:
        """Return field id -> value, or ``None`` if the admin cancelled."""
        ...

    def report_error(self, error: ValidationError) -> None: ...


class EditOutcome(str, Enum):
    COMMITTED = "committed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


def _stage(kind: ActionKind, fields: Mapping[str, Any], view_count: Optional[int]):
    if kind is ActionKind.NONE:
        return NoAction()
    if kind is ActionKind.BANNER:
        return validate_banner(fields)
    if kind is ActionKind.TARGETED:
        return validate_target(fields, view_count)
    if kind is ActionKind.QUIZ:
        return validate_quiz(fields)
    raise ValidationError(ValidationErrorKind.UNKNOWN_ACTION_KIND, f"unknown action kind {kind!r}")


def set_action(
    zone: Zone,
    kind: ActionKind | str,
    fields: Mapping[str, Any],
    view_count: Optional[int] = None,
) -> Zone:
    """Replace the zone's action with a validated action of ``kind``.

    Properties of every other kind disappear with the old action. Raises
    ``ValidationError`` with the zone untouched.
    """
    kind = _kind(kind)
    _commit(zone, kind, _stage(kind, fields, view_count))
    return zone


def _kind(kind: ActionKind | str) -> ActionKind:
    try:
        return ActionKind(kind)
    except ValueError:
        raise ValidationError(ValidationErrorKind.UNKNOWN_ACTION_KIND, f"unknown action kind {kind!r}") from None


def _commit(zone: Zone, kind: ActionKind, staged) -> None:
    previous = zone.kind
    # single assignment: the old action and all its properties go at once
    zone.action = staged
    logger.info("Zone %r action %s -> %s", zone.label, previous.value, kind.value)


# ---- form-driven flow ----

def banner_form(zone: Zone) -> Form:
    return Form(
        id="banner",
        title="Banner",
        fields=[
            FormField("text", "Banner text", "textarea"),
            FormField("position", "Position", "select", options=["top", "bottom"], value="top"),
        ],
    )


def target_form(zone: Zone, view_count: Optional[int]) -> Form:
    options = [str(i) for i in range(view_count)] if view_count else []
    return Form(
        id="target",
        title="Go to view",
        fields=[FormField("view_index", "Target view", "select" if options else "text", options=options)],
    )


def quiz_form(zone: Zone) -> Form:
    fields = [FormField("question", "Question", "textarea")]
    fields += [FormField(f"answer_{i + 1}", f"Answer {i + 1}") for i in range(MAX_ANSWERS)]
    fields += [
        FormField(
            "correct_index",
            "Correct answer",
            "select",
            options=[str(i) for i in range(MAX_ANSWERS)],
            value="0",
        ),
        FormField("show_rationale", "Explain wrong answers", "checkbox", value=False),
    ]
    return Form(id="quiz", title="Quiz question", fields=fields)


def rationale_form(quiz: QuizAction) -> Form:
    fields = []
    for i, answer in enumerate(quiz.answers):
        if i == quiz.correct_index:
            # shown for context only; never collected
            fields.append(FormField(f"rationale_{i + 1}", f"{answer.text} (correct)", "readonly"))
        else:
            fields.append(FormField(f"rationale_{i + 1}", f"Why is \"{answer.text}\" wrong?", "textarea"))
    return Form(id="rationales", title="Explanations", fields=fields)


def _quiz_fields(values: Mapping[str, Any]) -> Dict[str, Any]:
    show = values.get("show_rationale", False)
    if isinstance(show, str):
        show = show.strip().lower() in {"1", "true", "yes", "on"}
    return {
        "question": values.get("question"),
        "answers": [values.get(f"answer_{i + 1}") for i in range(MAX_ANSWERS)],
        "correct_index": values.get("correct_index"),
        "show_rationale": bool(show),
    }


def _collect_quiz(zone: Zone, forms: FormCollector) -> Optional[QuizAction]:
    values = forms.collect(quiz_form(zone))
    if values is None:
        return None
    fields = _quiz_fields(values)
    draft = validate_quiz(fields)
    if not draft.show_rationale:
        return draft

    explanations = forms.collect(rationale_form(draft))
    if explanations is None:
        return None
    # rationale slots follow the compacted answers; map back to the form's answer slots
    filled = [i for i, text in enumerate(fields["answers"]) if isinstance(text, str) and text.strip()]
    rationales: List[Any] = [None] * MAX_ANSWERS
    for position, slot in enumerate(filled):
        if position != draft.correct_index:
            rationales[slot] = explanations.get(f"rationale_{position + 1}")
    return validate_quiz({**fields, "rationales": rationales})


def edit_action(
    zone: Zone,
    kind: ActionKind | str,
    forms: FormCollector,
    view_count: Optional[int] = None,
) -> EditOutcome:
    """Collect fields for ``kind`` through ``forms`` and commit them to ``zone``.

    Validation errors go to ``forms.report_error`` and leave the zone as it
    was; the caller may prompt again.
    """
    try:
        kind = _kind(kind)
        if kind is ActionKind.NONE:
            staged = NoAction()
        elif kind is ActionKind.QUIZ:
            staged = _collect_quiz(zone, forms)
        else:
            form = banner_form(zone) if kind is ActionKind.BANNER else target_form(zone, view_count)
            values = forms.collect(form)
            staged = None if values is None else _stage(kind, values, view_count)
    except ValidationError as exc:
        logger.info("Zone %r edit rejected: %s", zone.label, exc.kind.value)
        forms.report_error(exc)
        return EditOutcome.REJECTED

    if staged is None:
        logger.info("Zone %r edit cancelled", zone.label)
        return EditOutcome.CANCELLED
    _commit(zone, kind, staged)
    return EditOutcome.COMMITTED


class PrefilledFormCollector:
    """Answers forms from values already submitted, e.g. in an HTTP request.

    ``answers`` maps form id to field values; a form without an entry is
    treated as cancelled. Reported errors are kept in ``errors``.
    """

    def __init__(self, answers: Mapping[str, Mapping[str, Any]]):
        self.answers = answers
        self.errors: List[ValidationError] = []

    def collect(self, form: Form) -> Optional[Mapping[str, Any]]:
        return self.answers.get(form.id)

    def report_error(self, error: ValidationError) -> None:
        self.errors.append(error)


# ---- zone list ----

def add_zone(zones: List[Zone], shape, label: Optional[str] = None) -> Zone:
    zone = Zone(shape=shape, label=label)
    zones.append(zone)
    return zone


def delete_zone(zones: List[Zone], index: int) -> Zone:
    """Remove a zone by position, whatever its action."""
    if not (0 <= index < len(zones)):
        raise OutOfRange(index, len(zones), what="zone")
    return zones.pop(index)
