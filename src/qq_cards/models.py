"""Data classes for the question-card domain model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

PLACEHOLDER_ID = 0
PLACEHOLDER_TEXT = "No questions available."


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    pack: str = ""
    version_added: str = ""
    tags: frozenset = field(default_factory=frozenset)

    @property
    def is_placeholder(self) -> bool:
        return self.id == PLACEHOLDER_ID


PLACEHOLDER_QUESTION = Question(id=PLACEHOLDER_ID, text=PLACEHOLDER_TEXT, pack="none")


@dataclass(frozen=True)
class UserPreference:
    question_id: int
    is_favorite: bool = False
    is_hidden: bool = False

    @property
    def is_normal(self) -> bool:
        return not (self.is_favorite or self.is_hidden)


@dataclass
class Session:
    id: int
    name: str
    creation_date: str


@dataclass
class ProgressRecord:
    session_id: int
    question_id: int
    completed_at: Optional[str] = None


@dataclass
class Note:
    id: int
    session_id: int
    question_id: int
    content: str
    created_at: str


class FilterState(Enum):
    NONE = "none"
    INCLUDE = "include"
    EXCLUDE = "exclude"

    def next(self) -> "FilterState":
        """none -> include -> exclude -> none."""
        order = (FilterState.NONE, FilterState.INCLUDE, FilterState.EXCLUDE)
        return order[(order.index(self) + 1) % len(order)]


@dataclass(frozen=True)
class QuestionState:
    """Immutable view of the controller handed to the presentation layer."""
    status: str
    question_id: int
    question_text: str
    is_favorite: bool
    is_hidden: bool
    completed_count: int
    filtered_total: int
    total_available: int
    favorites_filter: FilterState = FilterState.NONE
    tag_filters: tuple = ()

    @property
    def progress_text(self) -> str:
        return f"{self.completed_count}/{self.filtered_total}"

    @property
    def has_question(self) -> bool:
        return self.question_id != PLACEHOLDER_ID
