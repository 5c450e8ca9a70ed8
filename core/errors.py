from __future__ import annotations
from enum import Enum


class LessonError(Exception):
    """Base class for errors raised by the lesson/zone core."""


class ValidationErrorKind(str, Enum):
    EMPTY_QUESTION = "EmptyQuestion"
    TOO_FEW_ANSWERS = "TooFewAnswers"
    TOO_MANY_ANSWERS = "TooManyAnswers"
    INVALID_CORRECT_INDEX = "InvalidCorrectIndex"
    EMPTY_BANNER_TEXT = "EmptyBannerText"
    INVALID_BANNER_POSITION = "InvalidBannerPosition"
    INVALID_TARGET_VIEW = "InvalidTargetView"
    UNKNOWN_ACTION_KIND = "UnknownActionKind"


class ValidationError(LessonError):
    def __init__(self, kind: ValidationErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)


class OutOfRange(LessonError, IndexError):
    def __init__(self, index: int, size: int, what: str = "view"):
        self.index = index
        self.size = size
        if size <= 0:
            message = f"{what} index {index} out of range (there are no {what}s)"
        else:
            message = f"{what} index {index} out of range (0..{size - 1})"
        super().__init__(message)


class NoSelectionAtSubmit(LessonError):
    def __init__(self):
        super().__init__("no answer selected")


class InvalidTransition(LessonError):
    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"cannot {event} while session is {state}")


class MalformedZoneRecord(LessonError):
    pass


class LessonNotFound(LessonError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"lesson {name!r} not found")

    def __str__(self) -> str:
        return self.args[0]
