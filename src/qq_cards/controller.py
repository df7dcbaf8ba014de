"""The question-card state machine a front end binds to.

One controller drives one session. It keeps the current question, its
preference, the session's completed ids and the filter selections, and
republishes a QuestionState snapshot after every change.
"""
import functools
import logging
import threading
from typing import Callable

from qq_cards.filters import compute_candidate_set, compute_completed_for_filter
from qq_cards.models import (
    PLACEHOLDER_ID, PLACEHOLDER_QUESTION, FilterState, Question, QuestionState, UserPreference,
)
from qq_cards.preferences import PreferenceStore
from qq_cards.progress import ProgressStore
from qq_cards.questions import QuestionStore

logger = logging.getLogger(__name__)

QUESTION_DISPLAYED = "question"
NO_QUESTION = "no_question"


def _exclusive(method):
    """Run a public operation only when no other one is in flight.

    Subscribers are notified while the guard is held, so a callback that
    calls back into the controller is rejected too.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if not self._lock.acquire(blocking=False):
            logger.warning("%s rejected: another operation is in progress", method.__name__)
            return False
        try:
            ok = method(self, *args, **kwargs)
            if ok:
                self._publish()
            return ok
        finally:
            self._lock.release()
    return wrapper


class SessionQuestionController:
    def __init__(
        self,
        session_id: int,
        questions: QuestionStore,
        preferences: PreferenceStore,
        progress: ProgressStore,
    ):
        self.session_id = session_id
        self.questions = questions
        self.preferences = preferences
        self.progress = progress
        self._lock = threading.Lock()
        self._subscribers: list[Callable[[QuestionState], None]] = []

        self.current_question: Question = PLACEHOLDER_QUESTION
        self.current_preference = UserPreference(PLACEHOLDER_ID)
        self.favorites_filter = FilterState.NONE

        self.corpus_size = questions.get_corpus_size()
        self.all_ids = questions.get_all_ids()
        self.tag_index = questions.get_tag_index()
        self.tag_filters = {tag: FilterState.NONE for tag in sorted(self.tag_index)}
        self.hidden_ids = preferences.list_hidden()
        self.favorite_ids = preferences.list_favorites()
        self.completed_ids = progress.list_completed_ids(session_id)
        self.total_available = len(self.all_ids - self.hidden_ids)

        self.candidate_ids: set[int] = set()
        self.filtered_total = 0
        self.completed_for_filter = 0
        self._recompute()
        self._draw()

    # -- state -------------------------------------------------------------

    @property
    def status(self) -> str:
        return NO_QUESTION if self.current_question.is_placeholder else QUESTION_DISPLAYED

    def snapshot(self) -> QuestionState:
        return QuestionState(
            status=self.status,
            question_id=self.current_question.id,
            question_text=self.current_question.text,
            is_favorite=self.current_preference.is_favorite,
            is_hidden=self.current_preference.is_hidden,
            completed_count=self.completed_for_filter,
            filtered_total=self.filtered_total,
            total_available=self.total_available,
            favorites_filter=self.favorites_filter,
            tag_filters=tuple(self.tag_filters.items()),
        )

    def subscribe(self, callback: Callable[[QuestionState], None]) -> Callable[[], None]:
        """Register a callback for fresh snapshots; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _publish(self) -> None:
        state = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Subscriber %r failed", callback)

    def _recompute(self) -> None:
        # Candidate set, filtered total and completed count always move together.
        self.candidate_ids = compute_candidate_set(
            self.corpus_size,
            self.hidden_ids,
            self.favorite_ids,
            self.favorites_filter,
            self.tag_filters,
            self.tag_index,
            all_ids=self.all_ids,
        )
        self.filtered_total = len(self.candidate_ids)
        self.completed_for_filter = compute_completed_for_filter(self.completed_ids, self.candidate_ids)

    def _draw(self) -> None:
        question = self.questions.get_random(self.candidate_ids, self.hidden_ids | self.completed_ids)
        if question is None:
            logger.debug("No eligible question for session %s", self.session_id)
            self.current_question = PLACEHOLDER_QUESTION
            self.current_preference = UserPreference(PLACEHOLDER_ID)
            return
        self.current_question = question
        self.current_preference = self.preferences.get(question.id)

    def _after_preference_change(self) -> None:
        self._recompute()
        if self.current_question.id not in self.candidate_ids:
            self._draw()

    def _require_question(self, operation: str) -> bool:
        if self.current_question.is_placeholder:
            logger.warning("%s rejected: no question is displayed", operation)
            return False
        return True

    # -- intents -----------------------------------------------------------

    @_exclusive
    def skip(self) -> bool:
        self._draw()
        return True

    @_exclusive
    def mark_complete(self) -> bool:
        if not self._require_question("mark_complete"):
            return False
        question_id = self.current_question.id
        if not self.progress.mark_completed(self.session_id, question_id):
            return False
        self.completed_ids.add(question_id)
        self._recompute()
        self._draw()
        return True

    @_exclusive
    def toggle_favorite(self) -> bool:
        if not self._require_question("toggle_favorite"):
            return False
        question_id = self.current_question.id
        value = not self.current_preference.is_favorite
        if not self.preferences.set_favorite(question_id, value):
            return False
        if value:
            self.favorite_ids.add(question_id)
            if question_id in self.hidden_ids:
                self.hidden_ids.discard(question_id)
                self.total_available += 1
            self.current_preference = UserPreference(question_id, is_favorite=True)
        else:
            self.favorite_ids.discard(question_id)
            self.current_preference = UserPreference(
                question_id, is_hidden=self.current_preference.is_hidden
            )
        self._after_preference_change()
        return True

    @_exclusive
    def toggle_hidden(self) -> bool:
        if not self._require_question("toggle_hidden"):
            return False
        question_id = self.current_question.id
        value = not self.current_preference.is_hidden
        if not self.preferences.set_hidden(question_id, value):
            return False
        if value:
            if question_id not in self.hidden_ids:
                self.hidden_ids.add(question_id)
                self.total_available -= 1
            self.favorite_ids.discard(question_id)
            self.current_preference = UserPreference(question_id, is_hidden=True)
        else:
            if question_id in self.hidden_ids:
                self.hidden_ids.discard(question_id)
                self.total_available += 1
            self.current_preference = UserPreference(
                question_id, is_favorite=self.current_preference.is_favorite
            )
        self._after_preference_change()
        return True

    @_exclusive
    def cycle_favorites_filter(self) -> bool:
        self.favorites_filter = self.favorites_filter.next()
        self._recompute()
        self._draw()
        return True

    @_exclusive
    def cycle_tag_filter(self, tag: str) -> bool:
        if tag not in self.tag_filters:
            logger.warning("cycle_tag_filter rejected: unknown tag %r", tag)
            return False
        self.tag_filters[tag] = self.tag_filters[tag].next()
        self._recompute()
        self._draw()
        return True
