"""Rich console shell that drives a :class:`SessionController`."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from vocab_quiz.quiz.controller import SessionController
from vocab_quiz.quiz.history import ProgressStats
from vocab_quiz.quiz.models import (
    Cue,
    Screen,
    Session,
    VerificationKind,
    VerificationResult,
)
from vocab_quiz.quiz.scheduler import ManualScheduler

__all__ = [
    "ConsoleCommand",
    "ConsoleCuePlayer",
    "InputProvider",
    "parse_console_command",
    "render_feedback",
    "render_stats",
    "run_console",
]

InputProvider = Callable[[], str]

CommandType = Literal[
    "choice",
    "dont_know",
    "already_know",
    "star",
    "retake",
    "review",
    "retry",
    "text",
    "quit",
]

_CUE_MESSAGES = {
    Cue.CORRECT: ("Correct!", "bold green"),
    Cue.WRONG: ("Not quite.", "bold red"),
    Cue.COMPLETE: ("All done!", "bold magenta"),
}


@dataclass(frozen=True)
class ConsoleCommand:
    type: CommandType
    value: Optional[str] = None


def parse_console_command(
    raw: str | None, screen: Screen, *, has_words: bool = True
) -> ConsoleCommand | None:
    """Map one line of input to a command valid on ``screen``.

    Text screens treat anything that is not a ``:``-prefixed command as an
    answer, so a sentence starting with ``q`` is not mistaken for quit.
    With ``has_words`` off (every word was marked known) the terminal
    screens only accept quit.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()

    if screen.accepts_text:
        if lowered in {":q", ":quit"}:
            return ConsoleCommand("quit")
        if lowered in {":r", ":retry"}:
            return ConsoleCommand("retry")
        if lowered in {":s", ":star"}:
            return ConsoleCommand("star")
        return ConsoleCommand("text", text)

    if lowered in {"q", "quit", "exit"}:
        return ConsoleCommand("quit")
    if screen is Screen.QUIZ:
        if lowered in {"1", "2", "3", "4"}:
            return ConsoleCommand("choice", lowered)
        if lowered in {"?", "idk"}:
            return ConsoleCommand("dont_know")
        if lowered in {"k", "know"}:
            return ConsoleCommand("already_know")
        if lowered in {"s", "star"}:
            return ConsoleCommand("star")
        return None
    if not has_words:
        return None
    if lowered in {"r", "retake"}:
        return ConsoleCommand("retake")
    if screen is Screen.RESULTS and lowered in {"v", "review"}:
        return ConsoleCommand("review")
    return None


class ConsoleCuePlayer:
    """Sound cues rendered as a terminal bell plus a short styled line."""

    def __init__(self, console: Console, *, sound: bool = True) -> None:
        self._console = console
        self._sound = sound

    def __call__(self, cue: Cue, streak: int = 0) -> None:
        if self._sound:
            self._console.bell()
        if cue is Cue.MILESTONE:
            self._console.print(
                Text(f"{streak} in a row!", style="bold yellow")
            )
            return
        message, style = _CUE_MESSAGES[cue]
        self._console.print(Text(message, style=style))


def render_feedback(
    console: Console, kind: VerificationKind, result: VerificationResult
) -> None:
    border = "green" if result.correct else "red"
    title = "Definition check" if kind is VerificationKind.DEFINITION else (
        "Sentence check"
    )
    console.print(Panel(result.feedback, title=title, border_style=border))


def run_console(
    controller: SessionController,
    console: Console,
    input_provider: InputProvider,
    *,
    scheduler: ManualScheduler,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[Session]:
    """Run the interactive loop until the user quits or input ends.

    ``controller`` must already hold a started session and use
    ``scheduler``. While an answer is revealed the loop sleeps until the
    auto-advance is due and fires it itself. Returns the last session
    snapshot seen before exit.
    """

    last: Optional[Session] = controller.session
    while controller.session is not None:
        session = controller.session
        last = session

        if session.revealing:
            delay = scheduler.next_delay
            if delay is not None:
                _render_quiz(console, session)
                sleep(delay)
                scheduler.advance(delay)
                continue

        _render(console, session)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            break
        command = parse_console_command(
            raw, session.screen, has_words=bool(session.words)
        )
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            break
        _apply(controller, command)

    controller.exit()
    console.print("Goodbye!")
    return last


def render_stats(console: Console, stats: ProgressStats) -> None:
    console.rule(Text("Progress", style="bold magenta"))
    if stats.total_quizzes == 0:
        console.print("No quizzes completed yet.")
        return
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Quizzes taken", str(stats.total_quizzes))
    overview.add_row("Words practiced", str(stats.total_words))
    overview.add_row("Average accuracy", f"{stats.average_accuracy:.1f}%")
    overview.add_row("Best accuracy", f"{stats.best_accuracy:.1f}%")
    overview.add_row("Words starred", str(stats.total_starred_words))
    overview.add_row("Day streak", str(stats.day_streak))
    console.print(overview)

    recent = Table(title="Recent quizzes", box=box.SIMPLE)
    recent.add_column("Date")
    recent.add_column("Mode")
    recent.add_column("Score", justify="right")
    recent.add_column("Accuracy", justify="right")
    for item in stats.recent:
        day = item.day
        recent.add_row(
            day.isoformat() if day else item.date,
            item.mode,
            f"{item.correct_answers}/{item.total_words}",
            f"{item.accuracy:.1f}%",
        )
    console.print(recent)


def _apply(controller: SessionController, command: ConsoleCommand) -> None:
    if command.type == "choice" and command.value:
        controller.press_key(command.value)
    elif command.type == "dont_know":
        controller.dont_know()
    elif command.type == "already_know":
        controller.already_know()
    elif command.type == "star":
        controller.toggle_star()
    elif command.type == "retake":
        controller.retake()
    elif command.type == "review":
        controller.review()
    elif command.type == "retry":
        controller.retry()
    elif command.type == "text" and command.value:
        controller.submit(command.value)


def _render(console: Console, session: Session) -> None:
    if session.screen is Screen.QUIZ:
        _render_quiz(console, session)
    elif session.screen is Screen.SENTENCE:
        _render_sentence(console, session)
    elif session.screen is Screen.RESULTS:
        _render_results(console, session)
    elif session.screen is Screen.REVIEW:
        _render_review(console, session)
    elif session.screen is Screen.REVIEW_SENTENCE:
        _render_review_sentence(console, session)
    else:
        _render_review_results(console, session)


def _header(console: Console, session: Session, label: str) -> None:
    header = Text.assemble(
        (f"{label} {session.word_index + 1}", "bold cyan"),
        (f" / {session.total_words}", "dim"),
    )
    if session.streak:
        header.append(f"  streak {session.streak}", style="yellow")
    console.print()
    console.rule(header)


def _word_line(session: Session) -> Text:
    current = session.current
    word = Text(current.word if current else "", style="bold")
    if session.is_starred:
        word.append(" *", style="yellow")
    return word


def _render_quiz(console: Console, session: Session) -> None:
    current = session.current
    _header(console, session, "Word")
    console.print(_word_line(session))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Definition")
    for position, choice in enumerate(session.choices, start=1):
        text = Text(choice)
        if session.revealing and current and choice == current.definition:
            text.stylize("bold green")
        elif session.revealing and choice == session.selected_answer:
            text.stylize("bold red")
        table.add_row(str(position), text)
    console.print(table)
    if not session.revealing:
        console.print(
            Text(
                "Commands: 1-4 choose, ? don't know, k already know, "
                "s star, q quit",
                style="dim",
            )
        )


def _render_sentence(console: Console, session: Session) -> None:
    current = session.current
    if current is None:
        return
    _header(console, session, "Word")
    console.print(
        Panel(
            Text.assemble(
                (current.word, "bold"),
                ": ",
                current.definition,
            ),
            title="Learn this word",
            border_style="yellow",
        )
    )
    if session.sentence_text:
        console.print(Text(f"Last attempt: {session.sentence_text}", style="dim"))
    console.print(
        Text(
            f"Write a sentence using '{current.word}'. "
            "(:retry clears feedback, :star, :quit)",
            style="dim",
        )
    )


def _render_results(console: Console, session: Session) -> None:
    console.print()
    console.rule(Text("Quiz complete", style="bold magenta"))
    total = session.total_words
    correct = session.first_try_correct
    accuracy = round(correct / total * 100, 1) if total else 0.0
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Words", str(total))
    overview.add_row("Correct on first try", str(correct))
    overview.add_row("Accuracy", f"{accuracy:.1f}%")
    console.print(overview)
    if session.missed:
        console.print(
            "Starred for practice: " + ", ".join(sorted(session.missed))
        )
    if not session.words:
        console.print(
            "[yellow]Every word in this set is marked as known. "
            "Start a new quiz to keep practicing.[/]"
        )
        console.print(Text("Commands: q quit", style="dim"))
        return
    console.print(
        Text("Commands: r retake, v review, q quit", style="dim")
    )


def _render_review(console: Console, session: Session) -> None:
    current = session.current
    if current is None:
        return
    _header(console, session, "Review")
    console.print(_word_line(session))
    if session.definition_text:
        console.print(
            Text(f"Last attempt: {session.definition_text}", style="dim")
        )
    console.print(
        Text(
            "Describe what this word means in your own words. "
            "(:retry, :star, :quit)",
            style="dim",
        )
    )


def _render_review_sentence(console: Console, session: Session) -> None:
    current = session.current
    if current is None:
        return
    _header(console, session, "Review")
    console.print(_word_line(session))
    if session.sentence_text:
        console.print(Text(f"Last attempt: {session.sentence_text}", style="dim"))
    console.print(
        Text(
            f"Now use '{current.word}' in a sentence. (:retry, :star, :quit)",
            style="dim",
        )
    )


def _render_review_results(console: Console, session: Session) -> None:
    console.print()
    console.rule(Text("Review complete", style="bold magenta"))
    learned = sorted(session.learned_this_session)
    if learned:
        console.print("Learned this session: " + ", ".join(learned))
    else:
        console.print("No new words learned this time.")
    console.print(Text("Commands: r retake, q quit", style="dim"))
