"""
Main entry point for ALF Coach.

Runs a design session in the terminal.

Usage:
    # Command line
    python main.py --subject "Science" --grade "7th grade"
    python main.py --load sessions/water.json --save sessions/water.json

    # Programmatic
    from main import run_turns
    session = run_turns(["I teach 7th grade science", "Water as a shared resource"])
"""

import argparse
import logging
import os
import random
import sys
from dataclasses import replace
from typing import Iterable, TextIO

from config import AppConfig, load_config
from errors import UnknownStageError
from logging_utils import LoggerAdapter, configure_logging, get_logger, set_verbose
from narrative import NarrativeGenerator
from session import DesignSession, SessionTurn, build_coach
from state import ProjectContext
from workflow import ConversationEngine

logger = get_logger(__name__)

HELP_TEXT = """\
Commands:
  /pick N      choose option N from the last reply
  /confirm     accept the input waiting for confirmation
  /refine      ask for alternative phrasings
  /goto STAGE  jump to a stage (debug; skips validation)
  /summary     show the project summary
  /status      show draft / in-progress / ready
  /help        show this help
  /quit        leave the session
Anything else is sent as your answer to the current stage."""


def build_session(
    config: AppConfig,
    context: ProjectContext | None = None,
    seed: int | None = None,
    load_path: str | None = None,
) -> DesignSession:
    """
    Create or resume a session.

    Args:
        config: Application configuration.
        context: Initial context for a new session.
        seed: Seed for template choice, for reproducible transcripts.
        load_path: Saved session to resume instead of starting fresh.
    """
    narrative = NarrativeGenerator(rng=random.Random(seed))
    if load_path:
        engine = ConversationEngine.from_config(config, narrative=narrative)
        return DesignSession.load(load_path, engine, coach=build_coach(config))
    return DesignSession.create(config, context=context, narrative=narrative)


def resolve_session_path(config: AppConfig, path: str | None) -> str | None:
    """Bare file names live in the configured sessions directory."""
    if path and not os.path.dirname(path):
        return os.path.join(config.sessions_dir, path)
    return path


def format_turn(turn: SessionTurn) -> str:
    lines = [turn.text]
    for number, option in enumerate(turn.response.suggestions, start=1):
        lines.append(f"  [{number}] {option}")
    return "\n".join(lines)


def handle_command(session: DesignSession, line: str) -> str | None:
    """
    Execute one REPL line.

    Returns:
        Text to show, or None when the session should end.
    """
    if not line.startswith("/"):
        return format_turn(session.submit(line))

    command, _, argument = line.partition(" ")
    argument = argument.strip()

    if command == "/quit":
        return None
    if command == "/help":
        return HELP_TEXT
    if command == "/confirm":
        return format_turn(session.confirm())
    if command == "/refine":
        return format_turn(session.refine())
    if command == "/summary":
        return session.summary()
    if command == "/status":
        return session.status()
    if command == "/pick":
        try:
            return format_turn(session.choose_suggestion(int(argument) - 1))
        except (ValueError, IndexError):
            return "Usage: /pick N, where N is one of the numbered options."
    if command == "/goto":
        try:
            state = session.goto(argument.upper())
        except UnknownStageError as e:
            return str(e)
        return session.engine.get_stage_prompt(state.current_stage_id, state.context)

    return f"Unknown command {command}. Type /help for the list."


def run_repl(
    session: DesignSession,
    stdin: TextIO = sys.stdin,
    stdout: TextIO = sys.stdout,
    save_path: str | None = None,
) -> DesignSession:
    """Read lines until /quit or EOF; save on exit when save_path is set."""
    print(session.opening_prompt(), file=stdout)
    try:
        for raw_line in stdin:
            line = raw_line.strip()
            if not line:
                continue
            output = handle_command(session, line)
            if output is None:
                break
            print(output, file=stdout)
    finally:
        if save_path:
            session.save(save_path)
    return session


def run_turns(
    lines: Iterable[str],
    context: ProjectContext | None = None,
    config: AppConfig | None = None,
    seed: int | None = 0,
) -> DesignSession:
    """
    Programmatic interface: feed a scripted list of REPL lines.

    Returns:
        The session after every line has been handled.
    """
    if config is None:
        config = load_config()
    session = build_session(config, context=context, seed=seed)
    for line in lines:
        if handle_command(session, line) is None:
            break
    return session


def main():
    """Command-line interface."""
    parser = argparse.ArgumentParser(
        description="ALF Coach: design a project-based learning unit stage by stage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_TEXT,
    )
    parser.add_argument("--subject", type=str, default=None, help="Subject area")
    parser.add_argument("--grade", type=str, default=None, help="Grade level")
    parser.add_argument("--duration", type=str, default=None, help="Project duration")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reply wording")
    parser.add_argument("--coach", action="store_true", help="Rewrite replies with the coaching model")
    parser.add_argument("--load", type=str, default=None, help="Resume a saved session JSON file")
    parser.add_argument("--save", type=str, default=None, help="Save the session to this file on exit")
    parser.add_argument("--config", type=str, default=None, help="Path to config JSON file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")

    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        log_file=args.log_file,
    )
    if args.verbose:
        set_verbose(True)

    if args.coach and not config.llm.enabled:
        config = replace(config, llm=replace(config.llm, enabled=True))

    context = ProjectContext(subject=args.subject, grade_level=args.grade, duration=args.duration)

    try:
        session = build_session(
            config,
            context=context,
            seed=args.seed,
            load_path=resolve_session_path(config, args.load),
        )
        log = LoggerAdapter(logger, verbose=args.verbose, session_id=session.session_id)
        log(f"Session open at stage {session.state.current_stage_id.value}")
        run_repl(session, save_path=resolve_session_path(config, args.save))
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
