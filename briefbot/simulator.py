#!/usr/bin/env python3
"""
CLI that replays a scripted conversation through ConversationEngine.

Usage:
    python -m briefbot.simulator                      # built-in demo
    python -m briefbot.simulator script.yaml          # your own script
    python -m briefbot.simulator script.yaml --seed 3 --verbose
    python -m briefbot.simulator --json > turns.json

A script is a YAML list of user messages, or a mapping with a
"messages" list.
"""

import argparse
import json
import random
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from briefbot.engine import ConversationEngine, TurnResult
from briefbot.errors import BriefbotError
from briefbot.feature_flags import FeatureFlags
from briefbot.question_catalog import QuestionCatalog
from briefbot.stage_machine import StageMachine

DEMO_SCRIPT: List[str] = [
    "I want a shopping app where users can browse products, add to cart, and checkout",
    "yes",
    "It's for small clothing boutiques that can't afford their own online store",
    "idk maybe something",
    "what's the weather like today?",
    "Users should get push notifications when an order ships, and I want a clean minimal design in blue",
    "Like Shopify but simpler. It should run on iOS and Android with Stripe payments",
    "I already told you, it's the shopping app!",
]


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="briefbot-sim",
        description="Replay a scripted conversation through the briefbot engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m briefbot.simulator                     # built-in demo
  python -m briefbot.simulator chat.yaml --seed 7  # reproducible picks
  python -m briefbot.simulator --json              # machine-readable output
  python -m briefbot.simulator --disable-group cascade_extras
        """,
    )
    parser.add_argument("script", nargs="?", help="YAML file with user messages (default: demo)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for question picks")
    parser.add_argument("--catalog", help="Question catalog YAML (default: bundled)")
    parser.add_argument("--json", action="store_true", help="Print turns as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show score breakdown per turn")
    parser.add_argument(
        "--disable-group",
        action="append",
        default=[],
        choices=sorted(FeatureFlags.GROUPS),
        help="Switch off a feature flag group for this run (repeatable)",
    )
    return parser


def load_script(path: Optional[str]) -> List[str]:
    """
    User messages to replay.

    Raises:
        ValueError: the file is not a list of strings
    """
    if not path:
        return list(DEMO_SCRIPT)

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list) or not all(isinstance(m, str) for m in data):
        raise ValueError(f"{path}: expected a list of messages")
    return data


def run_script(engine: ConversationEngine, messages: List[str]) -> List[TurnResult]:
    start = engine.start_conversation()
    context, state = start.context, start.state
    history: List[Dict[str, Any]] = [{"content": m, "sender_role": "bot"} for m in start.messages]

    results = []
    for text in messages:
        result = engine.process_message(text, context, state, history=history)
        history.append({"content": text, "sender_role": "user"})
        history.append({"content": result.message, "sender_role": "bot"})
        context, state = result.context, result.state
        results.append(result)
    return results


def print_turns(engine: ConversationEngine, results: List[TurnResult], verbose: bool = False) -> None:
    for message in engine.start_conversation().messages:
        print(f"BOT : {message}")
    print()

    for number, result in enumerate(results, 1):
        state = result.state
        print(f"[{number}] USER: {result.parsed.original_text}")
        print(f"    BOT : {result.message}")
        print(
            f"    rule={result.rule} stage={state.stage} "
            f"progress={state.completion_percentage}% (+{result.progress_delta}) "
            f"quality={result.score.quality.value}"
        )
        if not result.valid:
            print(f"    invalid: {result.validation_reason}")
        if verbose:
            print(f"    intent={result.parsed.intent.value} score={result.score.breakdown.to_dict()}")
            if state.blockers:
                print(f"    blockers: {', '.join(state.blockers)}")
            print(f"    feedback: {result.score.feedback}")
            suggestions = engine.accumulator.suggest_next_information(result.context)
            if suggestions:
                print(f"    next: {'; '.join(suggestions)}")
        print()

    if results:
        final = results[-1]
        print("=" * 60)
        print(engine.accumulator.summary(final.context))
        print(StageMachine.progress_feedback(final.state.completion_percentage))


def main(argv: Optional[List[str]] = None) -> int:
    args = create_parser().parse_args(argv)

    try:
        catalog = QuestionCatalog.load(Path(args.catalog)) if args.catalog else None
        messages = load_script(args.script)
    except (OSError, ValueError, yaml.YAMLError, BriefbotError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    flags = FeatureFlags()
    for group in args.disable_group:
        flags.disable_group(group)

    engine = ConversationEngine(catalog=catalog, rng=rng, flags=flags)
    results = run_script(engine, messages)

    if args.json:
        print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    else:
        print_turns(engine, results, verbose=args.verbose)
    return 0


if __name__ == "__main__":
    sys.exit(main())
