"""Row store standing in for the "Lesson Database" sheet.

The file holds a JSON array of rows. Row 0 is the header; every other row is
one lesson::

    [name, description 1, image 1 URL, zones 1, description 2, image 2 URL, zones 2, ...]

A view only exists where both its description and image URL are filled in,
so view indices count filled views, not columns.
"""
from __future__ import annotations
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, List, Optional

from core.errors import LessonNotFound, OutOfRange
from models.lesson import Lesson, LessonSummary, View
from models.zone import Zone
from services.zones_store import decode_zones, encode_zones, unreadable_records

logger = logging.getLogger(__name__)

HEADER = ["Lesson Name", "Description 1", "Image 1 URL", "Zones 1"]
CELLS_PER_VIEW = 3

_DRIVE_FILE_ID = re.compile(r"drive\.google\.com/(?:file/d/|open\?id=)([a-zA-Z0-9_-]+)")


def convert_drive_url(url: Any, size: str = "w2000") -> Optional[str]:
    """Turn a Drive share link into an embeddable thumbnail URL; other URLs pass through."""
    if not url or not isinstance(url, str):
        return None
    match = _DRIVE_FILE_ID.search(url)
    if match:
        return f"https://drive.google.com/thumbnail?id={match.group(1)}&sz={size}"
    return url


def _filled(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def _cell(row: List[Any], col: int) -> Any:
    return row[col] if col < len(row) else None


def _view_columns(row: List[Any]) -> List[int]:
    """Column of each view's description, in view order."""
    columns = []
    for col in range(1, len(row), CELLS_PER_VIEW):
        if _filled(_cell(row, col)) and _filled(_cell(row, col + 1)):
            columns.append(col)
    return columns


class LessonStore:
    def __init__(self, path: Path, thumbnail_size: str = "w2000"):
        self.path = Path(path)
        self.thumbnail_size = thumbnail_size

    def _read_rows(self) -> List[List[Any]]:
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8").strip()
        if not text:
            return []
        try:
            rows = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("Lesson store %s is not valid JSON: %s", self.path, exc)
            return []
        if not isinstance(rows, list):
            logger.error("Lesson store %s does not hold a list of rows", self.path)
            return []
        return [row for row in rows if isinstance(row, list)]

    def _write_rows(self, rows: List[List[Any]]) -> None:
        # write beside the store, then swap in; a failed write leaves the old file intact
        text = json.dumps(rows, indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _find_row(self, rows: List[List[Any]], name: str) -> List[Any]:
        for row in rows[1:]:
            if row and row[0] == name:
                return row
        raise LessonNotFound(name)

    def list_lessons(self) -> List[LessonSummary]:
        lessons = []
        for row in self._read_rows()[1:]:
            name = _cell(row, 0)
            if not isinstance(name, str) or not name.strip():
                continue
            description = _cell(row, 1)
            lessons.append(
                LessonSummary(
                    name=name,
                    description=str(description) if _filled(description) else "",
                    preview_image=convert_drive_url(_cell(row, 2), self.thumbnail_size),
                )
            )
        return lessons

    def get_lesson(self, name: str) -> Lesson:
        row = self._find_row(self._read_rows(), name)
        views = []
        for col in _view_columns(row):
            zones = decode_zones(_cell(row, col + 2))
            views.append(
                View(
                    description=str(row[col]),
                    image_url=convert_drive_url(str(row[col + 1]), self.thumbnail_size),
                    zones=zones,
                )
            )
        return Lesson(
            title=name,
            description=views[0].description if views else "",
            views=views,
        )

    def read_zones(self, name: str, view_index: int) -> List[Zone]:
        row = self._find_row(self._read_rows(), name)
        columns = _view_columns(row)
        if not (0 <= view_index < len(columns)):
            raise OutOfRange(view_index, len(columns))
        return decode_zones(_cell(row, columns[view_index] + 2))

    def write_zones(self, name: str, view_index: int, zones: List[Zone]) -> None:
        rows = self._read_rows()
        row = self._find_row(rows, name)
        columns = _view_columns(row)
        if not (0 <= view_index < len(columns)):
            raise OutOfRange(view_index, len(columns))
        zones_col = columns[view_index] + 2
        while len(row) <= zones_col:
            row.append("")
        # records this reader cannot decode are kept, not dropped
        row[zones_col] = encode_zones(zones, unreadable_records(row[zones_col]))
        self._write_rows(rows)
        logger.info("Saved %d zone(s) for %r view %d", len(zones), name, view_index)

    def add_lesson(self, name: str, views: List[View]) -> None:
        rows = self._read_rows() or [list(HEADER)]
        if any(row and row[0] == name for row in rows[1:]):
            raise ValueError(f"lesson {name!r} already exists")
        row: List[Any] = [name]
        for view in views:
            row += [view.description, view.image_url, encode_zones(view.zones)]
        rows.append(row)
        self._write_rows(rows)

    def diagnose(self) -> str:
        if not self.path.exists():
            return f"DIAGNOSTIC FAILED: lesson store {self.path} does not exist."
        try:
            rows = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            return f"DIAGNOSTIC FAILED: could not read lesson store {self.path}: {exc}"
        if not isinstance(rows, list):
            return f"DIAGNOSTIC FAILED: lesson store {self.path} does not hold a list of rows."
        return f"DIAGNOSTIC PASSED: lesson store {self.path} readable ({max(len(rows) - 1, 0)} lesson row(s))."
