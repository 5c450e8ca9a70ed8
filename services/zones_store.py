"""Wire codec for the zone list stored in a view's cell.

The stored record is a flat object of optional properties. Which action a
zone carries is read back from property presence, in a fixed precedence
that predates the ``actionType`` discriminator:

1. ``actionType == "banner"`` with banner text  -> banner
2. ``actionType == "quiz"`` with a question     -> quiz
3. ``targetView`` present and not null          -> targeted navigation
4. anything else                                -> sequential navigation

Records are decoded into :class:`models.zone.Zone` once, here; nothing
downstream looks at the flat properties again.
"""
from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from core.errors import MalformedZoneRecord
from models.zone import (
    RESERVED_KEYS,
    Answer,
    BannerAction,
    NoAction,
    PolyShape,
    QuizAction,
    RectShape,
    TargetedAction,
    Zone,
)

logger = logging.getLogger(__name__)


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _read_answers(raw: Any) -> List[Answer]:
    if not isinstance(raw, list):
        raise ValueError("quizAnswers must be a list")
    answers = []
    for item in raw:
        # oldest quiz records stored bare answer strings
        if isinstance(item, str):
            answers.append(Answer(text=item))
        elif isinstance(item, dict):
            answers.append(Answer(text=item.get("text", ""), rationale=item.get("rationale")))
        else:
            raise ValueError("quiz answer must be a string or object")
    return answers


def _read_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return value is True or value == 1


def _read_action(record: Dict[str, Any]):
    action_type = record.get("actionType")

    if action_type == "banner" and _non_blank(record.get("bannerText")):
        position = record.get("bannerPosition")
        return BannerAction(
            text=record["bannerText"],
            position=position if position in ("top", "bottom") else "top",
        )

    if action_type == "quiz" and _non_blank(record.get("quizQuestion")):
        try:
            return QuizAction(
                question=record["quizQuestion"],
                answers=_read_answers(record.get("quizAnswers")),
                correct_index=record.get("quizCorrectIndex"),
                show_rationale=_read_flag(record.get("quizShowRationale", False)),
            )
        except (PydanticValidationError, ValueError) as exc:
            logger.warning("Unusable quiz fields, falling back: %s", exc)

    if record.get("targetView") is not None:
        try:
            return TargetedAction(view_index=record["targetView"])
        except PydanticValidationError as exc:
            logger.warning("Unusable targetView %r, falling back: %s", record["targetView"], exc)

    return NoAction()


def _clamp(value: Any) -> Any:
    # drags slightly past the image edge store e.g. -0.4 or 100.2
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return min(max(value, 0), 100)
    return value


def _read_shape(record: Dict[str, Any]):
    if record.get("type") == "poly":
        points = record.get("points") or []
        if isinstance(points, list):
            points = [
                {**p, "x": _clamp(p.get("x")), "y": _clamp(p.get("y"))} if isinstance(p, dict) else p
                for p in points
            ]
        return PolyShape(points=points)
    # records without a type were drawn before polygons existed
    x, y = _clamp(record.get("x")), _clamp(record.get("y"))
    width, height = _clamp(record.get("width")), _clamp(record.get("height"))
    if isinstance(x, (int, float)) and isinstance(width, (int, float)):
        width = min(width, 100 - x)
    if isinstance(y, (int, float)) and isinstance(height, (int, float)):
        height = min(height, 100 - y)
    return RectShape(x=x, y=y, width=width, height=height)


def zone_from_record(record: Dict[str, Any]) -> Zone:
    """Decode one stored record. Raises ``MalformedZoneRecord`` if the shape is unusable."""
    if not isinstance(record, dict):
        raise MalformedZoneRecord(f"zone record must be an object, got {type(record).__name__}")
    try:
        shape = _read_shape(record)
    except PydanticValidationError as exc:
        raise MalformedZoneRecord(f"bad zone shape: {exc}") from exc

    label = record.get("label")
    extra = {k: v for k, v in record.items() if k not in RESERVED_KEYS}
    return Zone(
        shape=shape,
        label=label if isinstance(label, str) else None,
        action=_read_action(record),
        extra=extra,
    )


def zone_to_record(zone: Zone) -> Dict[str, Any]:
    # extra may have been mutated after validation; never let it carry action keys
    record: Dict[str, Any] = {k: v for k, v in zone.extra.items() if k not in RESERVED_KEYS}
    shape = zone.shape
    if isinstance(shape, RectShape):
        record.update(type="rect", x=shape.x, y=shape.y, width=shape.width, height=shape.height)
    else:
        record.update(type="poly", points=[{"x": p.x, "y": p.y} for p in shape.points])
    if zone.label is not None:
        record["label"] = zone.label

    action = zone.action
    if isinstance(action, BannerAction):
        record.update(actionType="banner", bannerText=action.text, bannerPosition=action.position)
    elif isinstance(action, QuizAction):
        record.update(
            actionType="quiz",
            quizQuestion=action.question,
            quizAnswers=[{"text": a.text, "rationale": a.rationale} for a in action.answers],
            quizCorrectIndex=action.correct_index,
            quizShowRationale=action.show_rationale,
        )
    elif isinstance(action, TargetedAction):
        record["targetView"] = action.view_index
    return record


def _load_cell(text: Any, strict: bool) -> List[Any]:
    if text is None or (isinstance(text, str) and not text.strip()):
        return []
    try:
        if not isinstance(text, str):
            raise MalformedZoneRecord(f"zone cell holds {type(text).__name__}, not JSON text")
        raw = json.loads(text)
        if not isinstance(raw, list):
            raise MalformedZoneRecord("zone cell is not a JSON array")
    except (json.JSONDecodeError, MalformedZoneRecord) as exc:
        if strict:
            if isinstance(exc, MalformedZoneRecord):
                raise
            raise MalformedZoneRecord(f"zone cell is not valid JSON: {exc}") from exc
        logger.warning("Ignoring malformed zone cell: %s", exc)
        return []
    return raw


def decode_zones(text: Optional[str], strict: bool = False) -> List[Zone]:
    """Decode a view's zone cell.

    A cell that is not a JSON array means "this view has no zones" unless
    ``strict`` is set, in which case ``MalformedZoneRecord`` is raised.
    Individual records with unusable shapes are skipped; see
    :func:`unreadable_records` for keeping them on write.
    """
    zones: List[Zone] = []
    for i, record in enumerate(_load_cell(text, strict)):
        try:
            zones.append(zone_from_record(record))
        except MalformedZoneRecord as exc:
            logger.warning("Skipping zone %d: %s", i, exc)
    return zones


def unreadable_records(text: Optional[str]) -> List[Any]:
    """Raw records of a cell that :func:`decode_zones` skipped."""
    kept = []
    for record in _load_cell(text, strict=False):
        try:
            zone_from_record(record)
        except MalformedZoneRecord:
            kept.append(record)
    return kept


def encode_zones(zones: List[Zone], unreadable: Optional[List[Any]] = None) -> str:
    """Encode zones, followed by any raw records this reader could not decode."""
    records = [zone_to_record(z) for z in zones] + list(unreadable or [])
    # unicode stays readable in the cell
    return json.dumps(records, ensure_ascii=False)
