from service_intake.agents.intake_agent import KeywordIntentRouter, OpenAIIntentRouter
from service_intake.agents.service_agent import OpenAIDialogueGenerator, TemplateDialogueGenerator
from service_intake.agents.validation_agent import LocalValidationAgent, RemoteValidationClient
from service_intake.agents.registry import create_agent, register_agent, get_registered_agents

__all__ = [
    "OpenAIIntentRouter", "KeywordIntentRouter",
    "OpenAIDialogueGenerator", "TemplateDialogueGenerator",
    "LocalValidationAgent", "RemoteValidationClient",
    "create_agent", "register_agent", "get_registered_agents",
]
