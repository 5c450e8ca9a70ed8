import json
import sys
from pathlib import Path

import pytest

# Repo root holds the top-level packages (api, core, models, services)
ROOT = Path(__file__).resolve().parent.parent
if ROOT.as_posix() not in sys.path:
    sys.path.insert(0, ROOT.as_posix())

from models.zone import Answer, PolyShape, QuizAction, RectShape, Zone  # noqa: E402


@pytest.fixture
def rect_zone() -> Zone:
    return Zone(shape=RectShape(x=10, y=10, width=20, height=20), label="nucleus")


@pytest.fixture
def poly_zone() -> Zone:
    return Zone(
        shape=PolyShape(points=[{"x": 50, "y": 50}, {"x": 90, "y": 50}, {"x": 70, "y": 90}]),
        label="cytoplasm",
    )


@pytest.fixture
def quiz_action() -> QuizAction:
    return QuizAction(
        question="Q?",
        answers=[Answer(text="A"), Answer(text="B", rationale="wrong")],
        correct_index=0,
        show_rationale=True,
    )


@pytest.fixture
def lessons_path(tmp_path: Path) -> Path:
    """Row store with one three-view lesson and one lesson with a gap."""
    quiz_cell = json.dumps([
        {
            "type": "rect", "x": 0, "y": 0, "width": 50, "height": 50,
            "actionType": "quiz", "quizQuestion": "Q?",
            "quizAnswers": [{"text": "A", "rationale": None}, {"text": "B", "rationale": "wrong"}],
            "quizCorrectIndex": 0, "quizShowRationale": True,
        },
        {"type": "rect", "x": 50, "y": 50, "width": 50, "height": 50, "targetView": 5},
    ])
    banner_cell = json.dumps([
        {"type": "rect", "x": 0, "y": 0, "width": 100, "height": 100,
         "actionType": "banner", "bannerText": "Hi", "targetView": 2},
    ])
    rows = [
        ["Lesson Name", "Description 1", "Image 1 URL", "Zones 1"],
        [
            "Epithelium",
            "Low power", "https://drive.google.com/file/d/abc123/view?usp=sharing", quiz_cell,
            "High power", "https://example.org/high.jpg", banner_cell,
            "Detail", "https://example.org/detail.jpg", "{not json",
        ],
        [
            "Gaps",
            "", "", "",
            "Only view", "https://example.org/only.jpg", "",
        ],
        ["", "orphan", "https://example.org/x.jpg", ""],
    ]
    path = tmp_path / "lessons.json"
    path.write_text(json.dumps(rows), encoding="utf-8")
    return path
