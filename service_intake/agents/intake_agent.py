"""
Intake agents: first point of contact for every conversation.

Resolve the user's opening request into either a service listing or a
routing decision for one catalog service. The OpenAI router uses tool
calls; the keyword router works offline from the catalog aliases.
"""

import json
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from service_intake.config import settings
from service_intake.errors import CollaboratorError, IntentNotResolvedError
from service_intake.prompts.system_prompts import (
    ROUTING_SUGGESTION,
    build_intent_router_prompt,
    build_router_tools,
)
from service_intake.schemas.service_schema import IntentResolution
from service_intake.tools.services import CatalogCache, ServiceCatalog, match_service

logger = logging.getLogger(__name__)

LIST_SERVICES_TRIGGERS = (
    "what services", "which services", "available services", "services available",
    "list services", "list of services", "list all", "show me the services",
    "what can you help", "what can you do",
)


def _available_names(catalog: ServiceCatalog) -> list[str]:
    names = catalog.service_names()
    if not names:
        raise CollaboratorError(
            "No services available. Check service repository configuration."
        )
    return names


def _not_resolved(detail: str, prompt: Optional[str] = None) -> IntentNotResolvedError:
    lead = prompt or "Please try rephrasing your request."
    return IntentNotResolvedError(detail, user_message=f"{lead} {ROUTING_SUGGESTION}")


class OpenAIIntentRouter:
    """Routes opening requests with an OpenAI tool-calling model."""

    def __init__(
        self,
        catalog_cache: CatalogCache,
        client: Optional[AsyncOpenAI] = None,
        model: str = settings.model.llm_model,
        max_tokens: int = settings.model.router_max_tokens,
    ) -> None:
        self._cache = catalog_cache
        self._client = client
        self.model = model
        self.max_tokens = max_tokens

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def resolve(self, user_text: str) -> IntentResolution:
        catalog = self._cache.get_or_refresh()
        names = _available_names(catalog)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                tools=build_router_tools(names),
                tool_choice="auto",
                messages=[
                    {"role": "system", "content": build_intent_router_prompt(names)},
                    {"role": "user", "content": user_text},
                ],
            )
        except OpenAIError as exc:
            raise CollaboratorError(f"Intent routing failed: {exc}") from exc

        try:
            message = response.choices[0].message
        except (AttributeError, IndexError) as exc:
            raise CollaboratorError("Intent router returned no choices") from exc

        tool_calls = getattr(message, "tool_calls", None) or []
        if not tool_calls:
            raise _not_resolved(
                "Could not determine service from user input", message.content or None
            )

        call = tool_calls[0].function
        logger.info("Intent router called: %s", call.name)

        if call.name == "list_services":
            return IntentResolution(action="list_services", services=catalog.listing())

        if call.name == "route_to_service":
            try:
                arguments = json.loads(call.arguments or "{}")
            except json.JSONDecodeError as exc:
                raise CollaboratorError(
                    f"Intent router returned malformed arguments: {call.arguments!r}"
                ) from exc
            requested = arguments.get("service_name", "")
            service = catalog.get(requested)
            if service is None:
                raise _not_resolved(f"Service '{requested}' not found in repository")
            logger.info("Routing to service: %s", service.service_id)
            return IntentResolution(
                action="route_to_service",
                service_name=service.service_key,
                service_details=service,
                user_context=arguments.get("user_context") or user_text,
            )

        raise CollaboratorError(f"Intent router called unknown tool '{call.name}'")


class KeywordIntentRouter:
    """Offline router matching listing phrases and service aliases."""

    def __init__(self, catalog_cache: CatalogCache) -> None:
        self._cache = catalog_cache

    async def resolve(self, user_text: str) -> IntentResolution:
        catalog = self._cache.get_or_refresh()
        _available_names(catalog)
        lower = user_text.lower()

        if any(trigger in lower for trigger in LIST_SERVICES_TRIGGERS):
            logger.info("Listing services")
            return IntentResolution(action="list_services", services=catalog.listing())

        service = match_service(user_text, catalog)
        if service is None:
            raise _not_resolved("Could not determine service from user input")

        logger.info("Routing to service: %s", service.service_id)
        return IntentResolution(
            action="route_to_service",
            service_name=service.service_key,
            service_details=service,
            user_context=user_text,
        )
