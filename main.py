"""
Service intake entry point.

Runs the conversation pipeline from the command line, either with the
OpenAI-backed agents or fully offline.

Usage:
    Live console:   python main.py console
    Offline demo:   python main.py demo --scenario passport
    Single turn:    python main.py turn "What services are available?"
"""

import argparse
import asyncio
import json
import logging

from service_intake.config import settings

logger = logging.getLogger(__name__)


def _run_console_mode(live: bool) -> None:
    """Start an interactive console session."""
    from console_demo import ConsoleSession

    ConsoleSession(live=live).run()


def _run_demo_mode(scenario: str) -> None:
    """Play a scripted scenario with the offline agents (no API keys required)."""
    from console_demo import ConsoleSession

    ConsoleSession(live=False).run_scenario(scenario)


def _run_single_turn(text: str, live: bool) -> None:
    """Process one first-turn message and print the JSON response."""
    from service_intake.conversation.orchestrator import create_orchestrator

    orchestrator = create_orchestrator(live=live)
    response = asyncio.run(orchestrator.process_turn(text))
    print(json.dumps(response.to_dict(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=settings.portal.name)
    sub = parser.add_subparsers(dest="mode", required=True)

    console = sub.add_parser("console", help="Interactive console (OpenAI agents)")
    console.add_argument("--offline", action="store_true", help="Use offline agents")

    demo = sub.add_parser("demo", help="Scripted offline scenario")
    demo.add_argument("--scenario", default="passport")

    turn = sub.add_parser("turn", help="Process a single opening message")
    turn.add_argument("text")
    turn.add_argument("--live", action="store_true", help="Use OpenAI agents")

    args = parser.parse_args()
    logger.info("Starting %s in %s mode", settings.agent_name, args.mode)

    if args.mode == "console":
        _run_console_mode(live=not args.offline)
    elif args.mode == "demo":
        _run_demo_mode(args.scenario)
    else:
        _run_single_turn(args.text, live=args.live)


if __name__ == "__main__":
    main()
