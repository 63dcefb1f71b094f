"""Session controller: owns the live session and executes machine effects.

The controller is the only place where the pure state machine meets the
outside world. It serialises events behind a lock, queues follow-up events
(verifier verdicts) until the current event's effects have all run, and ties
auto-advance timers to the session id so a timer that outlives the session
is dropped instead of acting on stale state.
"""

from __future__ import annotations

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Optional, Sequence

from vocab_quiz.core.logging import get_logger
from vocab_quiz.verifier import Verifier, verify

from . import machine
from .choices import ChoiceSource, Shuffler, make_choice_source
from .history import SessionSummary
from .models import Cue, QuizMode, Session, VerificationKind, VerificationResult
from .scheduler import Scheduler, ThreadingScheduler, TimerHandle
from .selection import (
    ExclusionPolicy,
    SelectionOptions,
    load_dispositions,
    parse_mode,
    select_word_set,
)

__all__ = ["SessionController", "DEFAULT_ADVANCE_DELAY"]

DEFAULT_ADVANCE_DELAY = 2.0

CueListener = Callable[[Cue, int], None]
FeedbackListener = Callable[[VerificationKind, VerificationResult], None]

logger = get_logger(__name__)


class SessionController:
    """Drive one quiz session against a word store and a verifier."""

    def __init__(
        self,
        store,
        verifier: Verifier,
        *,
        scheduler: Scheduler | None = None,
        shuffle: Shuffler | None = None,
        advance_delay: float = DEFAULT_ADVANCE_DELAY,
        milestones: Sequence[int] = (5, 10),
        exclusions: ExclusionPolicy | None = None,
        on_cue: CueListener | None = None,
        on_feedback: FeedbackListener | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._verifier = verifier
        self._scheduler = scheduler or ThreadingScheduler()
        self._shuffle = shuffle
        self._choices: ChoiceSource = make_choice_source(shuffle)
        self._advance_delay = advance_delay
        self._milestones = tuple(milestones)
        self._exclusions = exclusions or ExclusionPolicy()
        self._on_cue = on_cue
        self._on_feedback = on_feedback
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._lock = threading.RLock()
        self._queue: Deque[machine.Event] = deque()
        self._draining = False
        self._session: Optional[Session] = None
        self._timer: Optional[TimerHandle] = None
        self.failed_writes: list[str] = []

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None

    def start(
        self,
        mode: str | QuizMode | None = None,
        options: SelectionOptions | None = None,
    ) -> Session:
        """Select the word set and open a new session on the quiz screen.

        Selection errors (:class:`EmptySetError`, :class:`InvalidCountError`)
        and :class:`ConfigurationError` propagate before any state changes.
        """

        resolved = parse_mode(mode)
        dispositions = load_dispositions(self._store)
        words = select_word_set(
            resolved,
            options,
            self._store,
            shuffle=self._shuffle,
            exclusions=self._exclusions,
            dispositions=dispositions,
        )
        session = machine.start_session(
            resolved,
            words,
            dispositions,
            choices=self._choices,
            milestones=self._milestones,
        )
        with self._lock:
            self._cancel_timer()
            self._queue.clear()
            self._session = session
        logger.info(
            "Quiz session started",
            extra={
                "session_id": session.session_id,
                "mode": resolved.value,
                "words": session.total_words,
            },
        )
        return session

    # ---- user intents ----

    def select(self, choice: str) -> Session:
        return self.dispatch(machine.ChoiceSelected(choice))

    def press_key(self, key: str) -> Session:
        return self.dispatch(machine.KeyPressed(key))

    def dont_know(self) -> Session:
        return self.dispatch(machine.DontKnow())

    def already_know(self) -> Session:
        return self.dispatch(machine.AlreadyKnow())

    def submit(self, text: str) -> Session:
        return self.dispatch(machine.TextSubmitted(text))

    def retry(self) -> Session:
        return self.dispatch(machine.Retry())

    def toggle_star(self) -> Session:
        return self.dispatch(machine.ToggleStar())

    def retake(self) -> Session:
        return self.dispatch(machine.Retake())

    def review(self) -> Session:
        return self.dispatch(machine.StartReview())

    def exit(self) -> None:
        """Leave the session; pending timers are cancelled, not orphaned."""

        with self._lock:
            if self._session is None:
                return
            self.dispatch(machine.Exit())
            self._cancel_timer()
            logger.info(
                "Quiz session exited",
                extra={"session_id": self._session.session_id},
            )
            self._session = None

    # ---- event loop ----

    def dispatch(self, event: machine.Event) -> Session:
        """Apply ``event`` and every follow-up event it produces."""

        with self._lock:
            if self._session is None:
                raise RuntimeError("No active quiz session; call start().")
            self._queue.append(event)
            if self._draining:
                return self._session
            self._draining = True
            try:
                while self._queue and self._session is not None:
                    current = self._queue.popleft()
                    result = machine.transition(
                        self._session, current, choices=self._choices
                    )
                    self._session = result.session
                    for effect in result.effects:
                        self._execute(effect)
            finally:
                self._draining = False
                self._queue.clear()
            return self._session

    def _execute(self, effect: machine.Effect) -> None:
        if isinstance(effect, machine.RequestVerification):
            verdict = verify(
                self._verifier,
                effect.kind,
                effect.word,
                effect.reference,
                effect.text,
            )
            self._queue.append(machine.VerificationReceived(effect.kind, verdict))
        elif isinstance(effect, machine.StartAdvanceTimer):
            self._cancel_timer()
            self._timer = self._scheduler.schedule(
                self._advance_delay,
                self._timer_callback(effect.session_id, effect.token),
            )
        elif isinstance(effect, machine.CancelAdvanceTimer):
            self._cancel_timer()
        elif isinstance(effect, machine.SetStar):
            self._write(
                "set_starred", self._store.set_starred, effect.word, effect.starred
            )
        elif isinstance(effect, machine.MarkKnown):
            self._write("add_known", self._store.add_known, effect.word)
        elif isinstance(effect, machine.PersistLearned):
            self._write("add_learned", self._store.add_learned, list(effect.words))
        elif isinstance(effect, machine.RecordSummary):
            summary = SessionSummary.create(
                mode=effect.mode.value,
                total_words=effect.total_words,
                correct_answers=effect.correct_answers,
                starred_words=effect.starred_words,
                when=self._clock(),
            )
            self._write("record_session", self._store.record_session, summary)
        elif isinstance(effect, machine.PlayCue):
            if self._on_cue is not None:
                self._on_cue(effect.cue, effect.streak)
        elif isinstance(effect, machine.ShowFeedback):
            if self._on_feedback is not None:
                self._on_feedback(effect.kind, effect.result)

    def _timer_callback(self, session_id: str, token: int) -> Callable[[], None]:
        def _fire() -> None:
            with self._lock:
                session = self._session
                if session is None or session.session_id != session_id:
                    logger.debug(
                        "Dropping auto-advance for a closed session",
                        extra={"session_id": session_id},
                    )
                    return
                self._timer = None
                self.dispatch(machine.AdvanceTimerFired(token))

        return _fire

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _write(self, name: str, operation, *args) -> None:
        """Run a store write; failures are logged and never block the session."""

        try:
            ok = operation(*args)
        except Exception:
            logger.warning(
                "Word store write failed",
                exc_info=True,
                extra={"operation": name},
            )
            self.failed_writes.append(name)
            return
        if not ok:
            logger.warning(
                "Word store rejected write (no signed-in user?)",
                extra={"operation": name},
            )
            self.failed_writes.append(name)
