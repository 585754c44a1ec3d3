#!/usr/bin/env python
"""CLI tool to score texts and derive LIX generation targets."""
import sys
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from json_utils import dumps
from lix_calculator import calculate_lix, derive_targets, find_long_words


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    file_path = Path(source)
    if not file_path.exists():
        print(f"Error: File not found: {source}", file=sys.stderr)
        sys.exit(1)
    return file_path.read_text(encoding="utf-8")


def cmd_score(args) -> int:
    text = _read_text(args.file)
    stats = calculate_lix(text)

    if args.json:
        print(dumps(stats.to_wire(), indent=2))
        return 0

    print(f"Words:      {stats.word_count}")
    print(f"Sentences:  {stats.sentence_count}")
    print(f"Long words: {stats.long_word_count}")
    print(f"LIX:        {stats.score:.1f}")
    if args.verbose:
        long_words = find_long_words(text)
        print(f"Long words counted: {', '.join(long_words) or '-'}", file=sys.stderr)
    return 0


def cmd_targets(args) -> int:
    try:
        targets = derive_targets(args.lix, args.sentences)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(dumps(targets.to_wire(), indent=2))
        return 0

    print(f"Sentences:      {targets.target_sentences}")
    print(f"Words:          {targets.target_words}")
    print(f"Long words:     {targets.target_long_words}")
    print(f"Expected LIX:   {targets.expected_score:.1f} (requested {targets.target_score:g})")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Score texts with LIX or derive targets for a LIX score."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    score_parser = subparsers.add_parser("score", help="Score a text file ('-' for stdin)")
    score_parser.add_argument("file", help="Path to text file to analyze, or '-'")
    score_parser.add_argument("--json", action="store_true", help="Print statistics as JSON")
    score_parser.add_argument(
        "-v", "--verbose", action="store_true", help="List the long words that were counted"
    )
    score_parser.set_defaults(func=cmd_score)

    targets_parser = subparsers.add_parser("targets", help="Derive word and long-word targets")
    targets_parser.add_argument("--lix", type=float, required=True, help="Target LIX score")
    targets_parser.add_argument("--sentences", type=int, required=True, help="Number of sentences")
    targets_parser.add_argument("--json", action="store_true", help="Print targets as JSON")
    targets_parser.set_defaults(func=cmd_targets)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
