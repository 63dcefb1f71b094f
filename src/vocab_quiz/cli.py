"""Command-line entry point for vocab-quiz."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Mapping, Sequence

from rich.console import Console

from vocab_quiz import console as console_mod
from vocab_quiz.config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    VocabQuizConfig,
    VocabQuizConfigError,
    load_config,
    write_template,
)
from vocab_quiz.core import workspace as workspace_mod
from vocab_quiz.core.logging import configure_logging, get_logger
from vocab_quiz.quiz.controller import SessionController
from vocab_quiz.quiz.errors import (
    ConfigurationError,
    EmptySetError,
    NoCustomWordsError,
    SelectionError,
)
from vocab_quiz.quiz.history import progress_stats
from vocab_quiz.quiz.models import QuizMode
from vocab_quiz.quiz.scheduler import ManualScheduler
from vocab_quiz.quiz.selection import SelectionOptions, parse_mode
from vocab_quiz.store import (
    JsonWordStore,
    StoreError,
    fetch_definitions,
    load_vocabulary,
    lookup_definition,
    parse_custom_entries,
    split_word_list,
)
from vocab_quiz.verifier import OpenAIVerifier, Verifier

EXIT_OK = 0
EXIT_EMPTY = 1
EXIT_USAGE = 2

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Context:
    config: VocabQuizConfig
    layout: workspace_mod.WorkspaceLayout
    store: JsonWordStore


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a TOML config file (defaults to the workspace config "
            "directory or VOCAB_QUIZ_CONFIG)."
        ),
    )
    common.add_argument(
        "--workspace",
        type=Path,
        help=(
            "Override the workspace root (defaults to VOCAB_QUIZ_DATA_HOME "
            "or ~/.vocab-quiz-data)."
        ),
    )
    common.add_argument("--user", help="Store progress under this user id.")
    common.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    common.add_argument(
        "--verbose",
        action="store_true",
        help="Echo log records to stderr.",
    )

    parser = argparse.ArgumentParser(
        prog="vocab-quiz",
        description=(
            "Multiple-choice vocabulary quiz with sentence practice and "
            "definition review."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Bootstrap the workspace directories.",
    )
    init_parser.add_argument("--path", type=Path, help="Workspace root.")
    init_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Manage the vocab-quiz configuration file.",
    )
    config_sub = config_parser.add_subparsers(
        dest="config_command", required=True
    )
    config_init = config_sub.add_parser(
        "init",
        parents=[common],
        help="Write the default configuration template.",
    )
    config_init.add_argument(
        "--path",
        type=Path,
        help="Destination for the config TOML (defaults to the workspace).",
    )
    config_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file if present.",
    )

    start_parser = subparsers.add_parser(
        "start",
        parents=[common],
        help="Start an interactive quiz session.",
    )
    start_parser.add_argument(
        "--mode",
        choices=[mode.value for mode in QuizMode],
        help="Word source for the session (defaults to all).",
    )
    start_parser.add_argument(
        "--count",
        type=int,
        help="Sample this many vocabulary words (implies --mode custom).",
    )
    start_parser.add_argument(
        "--no-sound",
        action="store_true",
        help="Disable the terminal bell for answer cues.",
    )
    start_parser.add_argument(
        "--delay",
        type=float,
        help="Seconds to show a correct answer before moving on.",
    )

    words_parser = subparsers.add_parser(
        "words",
        help="Manage custom words and inspect word lists.",
    )
    words_sub = words_parser.add_subparsers(
        dest="words_command", required=True
    )
    add_parser = words_sub.add_parser(
        "add",
        parents=[common],
        help="Save custom words from 'word;definition' lines.",
    )
    add_parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="File with one 'word;definition' per line (defaults to stdin).",
    )
    fetch_parser = words_sub.add_parser(
        "fetch",
        parents=[common],
        help="Look up definitions online and save them as custom words.",
    )
    fetch_parser.add_argument(
        "words",
        help="Comma separated words, e.g. 'serendipity, ephemeral'.",
    )
    list_parser = words_sub.add_parser(
        "list",
        parents=[common],
        help="List vocabulary words or one of your word lists.",
    )
    which = list_parser.add_mutually_exclusive_group()
    which.add_argument("--starred", action="store_true")
    which.add_argument("--known", action="store_true")
    which.add_argument("--learned", action="store_true")
    which.add_argument("--custom", action="store_true")

    star_parser = subparsers.add_parser(
        "star",
        parents=[common],
        help="Toggle the star on a word.",
    )
    star_parser.add_argument("word")

    subparsers.add_parser(
        "stats",
        parents=[common],
        help="Show quiz history and progress.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:
        return int(exc.code or 0)

    handlers: Mapping[str, Callable[[argparse.Namespace], int]] = {
        "init": _handle_init,
        "config": _handle_config,
        "start": _handle_start,
        "words": _handle_words,
        "star": _handle_star,
        "stats": _handle_stats,
    }
    handler = handlers[args.command]
    try:
        return handler(args)
    except workspace_mod.WorkspaceError as exc:
        _print_error(str(exc))
        return EXIT_USAGE


def _handle_init(args: argparse.Namespace) -> int:
    layout = workspace_mod.ensure_workspace(path=args.path)
    if args.quiet:
        return EXIT_OK
    status = "created" if layout.created.get("home") else "exists"
    lines = [f"Workspace ready at {layout.home} ({status})", "Subdirectories:"]
    width = max(len(name) for name in layout.directories)
    for name, directory in layout.items():
        state = "created" if layout.created.get(name) else "exists"
        lines.append(f"  {name.ljust(width)}  {directory} ({state})")
    sys.stdout.write("\n".join(lines) + "\n")
    return EXIT_OK


def _handle_config(args: argparse.Namespace) -> int:
    if args.config_command != "init":
        raise RuntimeError(f"Unhandled config command: {args.config_command}")
    if args.path is not None:
        target = args.path.expanduser()
    else:
        layout = workspace_mod.ensure_workspace(path=args.workspace)
        target = layout.path_for("config") / CONFIG_FILENAME
    try:
        write_template(target, overwrite=args.force)
    except VocabQuizConfigError as exc:
        _print_error(str(exc))
        return EXIT_USAGE
    print(f"Wrote config template to {target}")
    return EXIT_OK


def _handle_start(args: argparse.Namespace) -> int:
    overrides = ConfigOverrides(
        advance_delay=args.delay,
        sound=False if args.no_sound else None,
    )
    context = _load_context(args, overrides)
    if isinstance(context, int):
        return context

    mode = args.mode
    if args.count is not None:
        if mode not in (None, QuizMode.CUSTOM.value):
            _print_error("--count only applies to --mode custom.")
            return EXIT_USAGE
        mode = QuizMode.CUSTOM.value

    quiz_settings = context.config.quiz
    console = _make_console()
    scheduler = ManualScheduler()
    controller = SessionController(
        context.store,
        _build_verifier(context.config),
        scheduler=scheduler,
        advance_delay=quiz_settings.advance_delay,
        milestones=quiz_settings.milestones,
        exclusions=quiz_settings.exclusions,
        on_cue=console_mod.ConsoleCuePlayer(console, sound=quiz_settings.sound),
        on_feedback=partial(console_mod.render_feedback, console),
    )
    try:
        controller.start(parse_mode(mode), SelectionOptions(count=args.count))
    except NoCustomWordsError as exc:
        _print_error(f"{exc} Try `vocab-quiz words add` or `words fetch`.")
        return EXIT_EMPTY
    except EmptySetError as exc:
        _print_error(str(exc))
        return EXIT_EMPTY
    except (SelectionError, ConfigurationError) as exc:
        _print_error(str(exc))
        return EXIT_USAGE
    except StoreError as exc:
        _print_error(str(exc))
        return EXIT_USAGE

    console_mod.run_console(
        controller,
        console,
        _input_provider(console),
        scheduler=scheduler,
    )
    if controller.failed_writes:
        _print_error(
            "Some progress could not be saved; see the log for details."
        )
    return EXIT_OK


def _handle_words(args: argparse.Namespace) -> int:
    context = _load_context(args, ConfigOverrides())
    if isinstance(context, int):
        return context
    handlers = {
        "add": _handle_words_add,
        "fetch": _handle_words_fetch,
        "list": _handle_words_list,
    }
    try:
        return handlers[args.words_command](args, context)
    except StoreError as exc:
        _print_error(str(exc))
        return EXIT_USAGE


def _handle_words_add(args: argparse.Namespace, context: _Context) -> int:
    if args.file is not None:
        try:
            raw = args.file.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            _print_error(f"Cannot read {args.file}: {exc}")
            return EXIT_USAGE
    else:
        raw = sys.stdin.read()
    entries = parse_custom_entries(raw)
    if not entries:
        _print_error("No 'word;definition' lines found.")
        return EXIT_EMPTY
    return _save_custom(context, entries)


def _handle_words_fetch(args: argparse.Namespace, context: _Context) -> int:
    words = split_word_list(args.words)
    if not words:
        _print_error("No words given.")
        return EXIT_EMPTY
    settings = context.config.dictionary
    report = fetch_definitions(
        words,
        lookup=partial(
            lookup_definition,
            base_url=settings.url,
            timeout=settings.timeout,
        ),
        progress=lambda index, total, word: print(
            f"[{index}/{total}] {word}"
        ),
    )
    if report.missing:
        print("No definition found for: " + ", ".join(report.missing))
    if not report.found:
        return EXIT_EMPTY
    return _save_custom(context, report.found)


def _save_custom(context: _Context, entries) -> int:
    if not context.store.add_custom(entries):
        _print_error("No user configured; set [user] id or --user.")
        return EXIT_EMPTY
    print(f"Saved {len(entries)} custom word(s).")
    return EXIT_OK


def _handle_words_list(args: argparse.Namespace, context: _Context) -> int:
    store = context.store
    if args.custom:
        for item in store.list_custom():
            print(f"{item.word}: {item.definition}")
        return EXIT_OK
    if args.starred or args.known or args.learned:
        if args.starred:
            words = store.list_starred()
        elif args.known:
            words = store.list_known()
        else:
            words = store.list_learned()
        for word in sorted(words):
            print(word)
        return EXIT_OK

    starred = set(store.list_starred())
    known = set(store.list_known())
    learned = set(store.list_learned())
    for item in store.list_vocabulary():
        flags = "".join(
            (
                "*" if item.word in starred else " ",
                "K" if item.word in known else " ",
                "L" if item.word in learned else " ",
            )
        )
        print(f"{flags} {item.word}: {item.definition}")
    return EXIT_OK


def _handle_star(args: argparse.Namespace) -> int:
    context = _load_context(args, ConfigOverrides())
    if isinstance(context, int):
        return context
    word = args.word.strip()
    try:
        if not context.store.toggle_starred(word):
            _print_error("No user configured; set [user] id or --user.")
            return EXIT_EMPTY
        starred = word in context.store.list_starred()
    except StoreError as exc:
        _print_error(str(exc))
        return EXIT_USAGE
    print(f"{'Starred' if starred else 'Unstarred'} '{word}'.")
    return EXIT_OK


def _handle_stats(args: argparse.Namespace) -> int:
    context = _load_context(args, ConfigOverrides())
    if isinstance(context, int):
        return context
    try:
        sessions = context.store.list_sessions()
    except StoreError as exc:
        _print_error(str(exc))
        return EXIT_USAGE
    console_mod.render_stats(_make_console(), progress_stats(sessions))
    return EXIT_OK


def _load_context(
    args: argparse.Namespace, overrides: ConfigOverrides
) -> _Context | int:
    overrides = ConfigOverrides(
        user_id=args.user,
        advance_delay=overrides.advance_delay,
        sound=overrides.sound,
        log_level=args.log_level,
        verbose=True if args.verbose else None,
    )
    try:
        result: LoadResult = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except VocabQuizConfigError as exc:
        _print_error(str(exc))
        return EXIT_USAGE

    config = result.config
    configure_logging(
        log_dir=result.layout.path_for("logs"),
        level=config.logging.level,
        verbose=config.logging.verbose,
    )
    logger.debug(
        "Configuration loaded",
        extra={
            "config_path": result.config_path,
            "user": config.user_id,
            "command": args.command,
        },
    )
    try:
        vocabulary = load_vocabulary(config.vocabulary_path)
    except StoreError as exc:
        _print_error(str(exc))
        return EXIT_USAGE
    store = JsonWordStore(
        result.layout.path_for("store"),
        user_id=config.user_id,
        vocabulary=vocabulary,
    )
    return _Context(config=config, layout=result.layout, store=store)


def _build_verifier(config: VocabQuizConfig) -> Verifier:
    settings = config.verifier
    return OpenAIVerifier(
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        request_timeout=settings.request_timeout,
        api_base=settings.api_base,
    )


def _make_console() -> Console:
    return Console()


def _input_provider(console: Console) -> Callable[[], str]:
    return lambda: console.input("[bold green]>[/] ")


def _print_error(message: str) -> None:
    sys.stderr.write(f"Error: {message}\n")


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
