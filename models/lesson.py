from typing import List, Optional
from pydantic import BaseModel, Field

from models.zone import Zone


class View(BaseModel):
    description: str
    image_url: str
    zones: List[Zone] = Field(default_factory=list)


class Lesson(BaseModel):
    title: str
    description: str = ""
    views: List[View] = Field(default_factory=list)

    @property
    def view_count(self) -> int:
        return len(self.views)


class LessonSummary(BaseModel):
    """Card shown on the landing page."""

    name: str
    description: str = ""
    preview_image: Optional[str] = None
