from __future__ import annotations
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING

from core.config import Settings

if TYPE_CHECKING:
    from services.lesson_store import LessonStore
    from services.quiz_session import QuizSession

# Set up by the app lifespan
settings: Settings | None = None
store: LessonStore | None = None

# Zone edits are load -> mutate -> save; serialize them
store_lock = threading.RLock()

# Live quiz attempts in start order, one per quiz-zone click; removed on dismiss
sessions_lock = threading.Lock()
quiz_sessions: OrderedDict[str, QuizSession] = OrderedDict()
