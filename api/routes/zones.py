import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core import state
from core.errors import LessonNotFound, OutOfRange
from models.zone import ActionKind, Shape, Zone
from services.lesson_store import LessonStore
from services.zone_editor import EditOutcome, PrefilledFormCollector, add_zone, delete_zone, edit_action
from api.deps import get_store, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class NewZone(BaseModel):
    shape: Shape
    label: Optional[str] = None


class ActionEdit(BaseModel):
    kind: ActionKind
    # form id -> field values, e.g. {"quiz": {...}, "rationales": {...}}
    forms: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


def _load(store: LessonStore, name: str, view_index: int) -> tuple[List[Zone], int]:
    try:
        lesson = store.get_lesson(name)
        return store.read_zones(name, view_index), lesson.view_count
    except LessonNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except OutOfRange as exc:
        raise HTTPException(status_code=404, detail=str(exc))


def _save(store: LessonStore, name: str, view_index: int, zones: List[Zone]) -> None:
    try:
        store.write_zones(name, view_index, zones)
    except OSError as exc:
        # nothing is cached; the stored list is still the pre-edit one
        logger.error("Could not save zones for %r view %d: %s", name, view_index, exc)
        raise HTTPException(status_code=503, detail="could not save zones")


@router.post("/login", dependencies=[Depends(require_admin)])
def login():
    return {"ok": True}


@router.get(
    "/lessons/{name}/views/{view_index}/zones",
    response_model=list[Zone],
    dependencies=[Depends(require_admin)],
)
def get_zones(name: str, view_index: int, store: LessonStore = Depends(get_store)):
    with state.store_lock:
        zones, _ = _load(store, name, view_index)
    return zones


@router.put(
    "/lessons/{name}/views/{view_index}/zones",
    response_model=list[Zone],
    dependencies=[Depends(require_admin)],
)
def put_zones(name: str, view_index: int, new_zones: list[Zone], store: LessonStore = Depends(get_store)):
    with state.store_lock:
        _load(store, name, view_index)
        _save(store, name, view_index, new_zones)
        return new_zones


@router.post(
    "/lessons/{name}/views/{view_index}/zones",
    response_model=list[Zone],
    dependencies=[Depends(require_admin)],
)
def create_zone(name: str, view_index: int, body: NewZone, store: LessonStore = Depends(get_store)):
    with state.store_lock:
        zones, _ = _load(store, name, view_index)
        add_zone(zones, body.shape, body.label)
        _save(store, name, view_index, zones)
        return zones


@router.put(
    "/lessons/{name}/views/{view_index}/zones/{zone_index}/action",
    response_model=Zone,
    dependencies=[Depends(require_admin)],
)
def edit_zone_action(
    name: str,
    view_index: int,
    zone_index: int,
    body: ActionEdit,
    store: LessonStore = Depends(get_store),
):
    with state.store_lock:
        zones, view_count = _load(store, name, view_index)
        if not (0 <= zone_index < len(zones)):
            raise HTTPException(status_code=404, detail=str(OutOfRange(zone_index, len(zones), what="zone")))
        zone = zones[zone_index]
        forms = PrefilledFormCollector(body.forms)
        outcome = edit_action(zone, body.kind, forms, view_count=view_count)
        if outcome is EditOutcome.REJECTED:
            error = forms.errors[-1]
            raise HTTPException(status_code=422, detail={"kind": error.kind.value, "message": error.message})
        if outcome is EditOutcome.CANCELLED:
            raise HTTPException(status_code=400, detail="form incomplete; nothing was changed")
        _save(store, name, view_index, zones)
        return zone


@router.delete(
    "/lessons/{name}/views/{view_index}/zones/{zone_index}",
    response_model=list[Zone],
    dependencies=[Depends(require_admin)],
)
def remove_zone(name: str, view_index: int, zone_index: int, store: LessonStore = Depends(get_store)):
    with state.store_lock:
        zones, _ = _load(store, name, view_index)
        try:
            delete_zone(zones, zone_index)
        except OutOfRange as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        _save(store, name, view_index, zones)
        return zones
