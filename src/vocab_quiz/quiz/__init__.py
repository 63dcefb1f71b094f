from .choices import CHOICE_COUNT, generate_choices, make_choice_source
from .controller import SessionController
from .errors import (
    ConfigurationError,
    EmptySetError,
    InvalidCountError,
    NoCustomWordsError,
    QuizError,
    SelectionError,
)
from .history import ProgressStats, SessionSummary, progress_stats
from .machine import Transition, start_session, transition
from .models import (
    Cue,
    DispositionSets,
    QuizMode,
    Screen,
    Session,
    VerificationKind,
    VerificationResult,
    VocabularyItem,
)
from .scheduler import ManualScheduler, ThreadingScheduler
from .selection import (
    ExclusionPolicy,
    SelectionOptions,
    parse_mode,
    select_word_set,
)

__all__ = [
    "CHOICE_COUNT",
    "generate_choices",
    "make_choice_source",
    "SessionController",
    "ConfigurationError",
    "EmptySetError",
    "InvalidCountError",
    "NoCustomWordsError",
    "QuizError",
    "SelectionError",
    "ProgressStats",
    "SessionSummary",
    "progress_stats",
    "Transition",
    "start_session",
    "transition",
    "Cue",
    "DispositionSets",
    "QuizMode",
    "Screen",
    "Session",
    "VerificationKind",
    "VerificationResult",
    "VocabularyItem",
    "ManualScheduler",
    "ThreadingScheduler",
    "ExclusionPolicy",
    "SelectionOptions",
    "parse_mode",
    "select_word_set",
]
