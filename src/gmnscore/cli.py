"""CLI entry point for gmnscore: parse score files and report on them."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from gmnscore.ast_nodes import Note, Score
from gmnscore.errors import GmnError
from gmnscore.grammar.parser import parse_file
from gmnscore.grammar.transformer import validate_score, walk_events
from gmnscore.note_converter import detect_convention
from gmnscore.settings_parser import ParserSettings, parse_settings_file
from gmnscore.visitor import EventPrinter

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="gmnscore",
        description="Parse music notation score files (.gmn) and summarize them",
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        help="Score files, or directories to search for *.gmn files",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="JSON settings file (default octave/duration, folding, schema)",
    )
    parser.add_argument(
        "--schema",
        default=None,
        help="Tag schema JSON file (default: the packaged schema)",
    )
    parser.add_argument(
        "--fold-ranges",
        action="store_true",
        help="Fold xBegin/xEnd tag pairs into range tags",
    )
    parser.add_argument(
        "--strict-params",
        action="store_true",
        help="Check tag parameter types against the schema",
    )
    parser.add_argument(
        "--list-events",
        action="store_true",
        help="Print every parsed event after the summary",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages to stderr",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _load_settings(args)
        definitions = settings.load_definitions()
    except (GmnError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    failed = 0
    for path in _expand_inputs(args.inputs):
        try:
            score = parse_file(path, definitions, settings)
        except (GmnError, OSError, UnicodeDecodeError) as e:
            print(f"Error parsing {path}: {e}", file=sys.stderr)
            failed += 1
            continue

        names = [e.name.value for v in score.voices()
                 for e in walk_events(v.events) if isinstance(e, Note)]
        logger.debug("%s: note naming %s", path, detect_convention(names))

        for warning in validate_score(score):
            logger.warning("%s: %s", path, warning)

        print(_summary(path, score))
        if args.list_events:
            print(EventPrinter().render(score))

    if failed:
        sys.exit(1)


def _load_settings(args: argparse.Namespace) -> ParserSettings:
    settings = parse_settings_file(args.settings) if args.settings else ParserSettings()
    if args.schema:
        settings.schema_path = Path(args.schema)
    if args.fold_ranges:
        settings.fold_ranges = True
    if args.strict_params:
        settings.strict_params = True
    return settings


def _expand_inputs(inputs: list[str]) -> list[Path]:
    """Replace each directory by the *.gmn files it holds, sorted."""
    paths: list[Path] = []
    for name in inputs:
        path = Path(name)
        if path.is_dir():
            found = sorted(path.glob("*.gmn"))
            if not found:
                logger.warning("No .gmn files in %s", path)
            paths.extend(found)
        else:
            paths.append(path)
    return paths


def _summary(path: Path, score: Score) -> str:
    voices = list(score.voices())
    events = sum(len(list(walk_events(v.events))) for v in voices)
    return (f"{path}: {len(score.staffs)} staff(s), "
            f"{len(voices)} voice(s), {events} event(s)")


if __name__ == "__main__":
    main()
