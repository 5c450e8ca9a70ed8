from fastapi import Header, HTTPException

from core import state
from services.auth import check_credentials
from services.lesson_store import LessonStore


def get_store() -> LessonStore:
    if state.store is None:
        raise HTTPException(status_code=503, detail="lesson store not ready")
    return state.store


def require_admin(x_admin_password: str | None = Header(default=None)) -> None:
    if state.settings is None or not check_credentials(x_admin_password, state.settings):
        raise HTTPException(status_code=401, detail="invalid admin credentials")
