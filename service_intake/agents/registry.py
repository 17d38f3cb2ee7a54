"""
Collaborator registry: build agents by name.

Entry points pick the live OpenAI-backed agents or the offline ones by
name instead of importing concrete classes, so swapping an implementation
only touches this registry.
"""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

_AGENT_REGISTRY: dict[str, Callable[..., Any]] = {}


def register_agent(name: str, factory: Callable[..., Any]) -> None:
    """Register an agent factory by name."""
    _AGENT_REGISTRY[name] = factory
    logger.debug("Agent registered: %s", name)


def create_agent(name: str, **kwargs: Any) -> Any:
    """Create an agent instance by registered name.

    Raises:
        KeyError: If the agent name is not registered.
    """
    if name not in _AGENT_REGISTRY:
        registered = list(_AGENT_REGISTRY.keys())
        raise KeyError(f"Agent '{name}' not registered. Available: {registered}")
    return _AGENT_REGISTRY[name](**kwargs)


def get_registered_agents() -> list[str]:
    """Return names of all registered agents."""
    return list(_AGENT_REGISTRY.keys())


def _auto_register() -> None:
    """Auto-register all built-in agents. Called once at import time."""
    from service_intake.agents.intake_agent import KeywordIntentRouter, OpenAIIntentRouter
    from service_intake.agents.service_agent import (
        OpenAIDialogueGenerator,
        TemplateDialogueGenerator,
    )
    from service_intake.agents.validation_agent import (
        LocalValidationAgent,
        RemoteValidationClient,
    )

    register_agent("openai_router", OpenAIIntentRouter)
    register_agent("keyword_router", KeywordIntentRouter)
    register_agent("openai_dialogue", OpenAIDialogueGenerator)
    register_agent("template_dialogue", TemplateDialogueGenerator)
    register_agent("local_validator", LocalValidationAgent)
    register_agent("remote_validator", RemoteValidationClient)


_auto_register()
