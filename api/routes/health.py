from fastapi import APIRouter, Depends

from core import state
from services.lesson_store import LessonStore
from api.deps import get_store

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    s = state.settings
    return {
        "ok": True,
        "lessons_path": str(s.LESSONS_PATH) if s else None,
        "admin_enabled": bool(s and s.admin_enabled),
        "quiz_sessions": len(state.quiz_sessions),
    }


@router.get("/health/store")
def diagnose_store(store: LessonStore = Depends(get_store)):
    message = store.diagnose()
    return {"ok": message.startswith("DIAGNOSTIC PASSED"), "message": message}
