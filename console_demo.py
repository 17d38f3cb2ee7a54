"""
Offline console demo: runs full intake conversations without any API keys.

Uses the real orchestrator, extractor, completion policy, state machine
and validation engine with the keyword intent router and the template
dialogue generator. No LLM and no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario passport
    python console_demo.py --scenario correction
    python console_demo.py --live        # OpenAI-backed agents, needs OPENAI_API_KEY
"""

import argparse
import asyncio
from typing import Optional

from service_intake.config import settings
from service_intake.conversation.orchestrator import create_orchestrator
from service_intake.schemas.conversation_schema import ConversationState, ResponseStatus

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


class ConsoleSession:
    """Drives the orchestrator turn by turn from the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "passport": [
            "I need to renew my passport",
            "Jane Doe",
            "1990-05-15",
            "Trinidadian",
            "AB123456",
            "no",
        ],
        "services": [
            "What services are available?",
        ],
        "correction": [
            "I need a new driver's license",
            "John Smith",
            "2015-01-01",
            "CD654321",
            "Class B",
            "no",
            "2000-01-01",
        ],
        "business": [
            "I want to apply for a business permit",
            "Island Crafts",
            "Private Company",
            "Maria Lopez",
            "BIR-448812",
            "12 Frederick Street, Port of Spain",
            "skip",
        ],
    }

    def __init__(self, live: bool = False) -> None:
        self.orchestrator = create_orchestrator(live=live)
        self.state: Optional[ConversationState] = None
        self.finished = False

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[Portal]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  SERVICE INTAKE - {title}{RESET}")
        print(f"{BOLD}  Portal: {settings.portal.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            if self.finished:
                break
            print(f"\n{BLUE}[User] {RESET}{step}")
            self._process_input(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        if self.state is not None:
            print(f"{DIM}  Collected: {self.state.collected_data}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        self._banner("Console Demo")
        print(f"{BOLD}  Type 'quit' to exit{RESET}")
        self.agent_say("Welcome! Which government service can I help you with today?")

        while not self.finished:
            user_input = input(f"\n{BLUE}[User] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            self._process_input(user_input)

    def _process_input(self, text: str) -> None:
        response = asyncio.run(self.orchestrator.process_turn(text, self.state))
        self.agent_say(response.agent_response)

        if response.status == ResponseStatus.ERROR:
            self.system_log(f"{RED}Error: {response.error}{RESET}")
            return
        if response.status == ResponseStatus.SERVICES_LISTED:
            for service in response.services or []:
                self.system_log(
                    f"{service['service_name']} ({service['ministry']}) - "
                    f"{service.get('fee') or 'TBD'}"
                )
            return

        self.state = response.conversation_state
        self.system_log(f"Phase: {self.state.current_phase.value}")
        if response.status == ResponseStatus.VALIDATION_FAILED:
            self.system_log(f"{YELLOW}Flagged: {self.state.flagged_fields}{RESET}")
        if response.ticket_created:
            self.system_log(f"Ticket {response.ticket_ref}: {response.ticket_data}")
            self.finished = True


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    parser.add_argument(
        "--live", action="store_true", help="Use the OpenAI-backed agents"
    )
    args = parser.parse_args()

    session = ConsoleSession(live=args.live)
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
