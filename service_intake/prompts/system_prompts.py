"""
Centralized system prompts for the intake collaborators.

Portal identity is injected from configuration. The deterministic field
questions below are phrased so the field extractor's triggers recognise
them when they come back round in the transcript.
"""

from service_intake.config import settings

_portal = settings.portal

PORTAL_CONTEXT = f"""
You work for the {_portal.name}, which helps residents of {_portal.region}
apply for government services online.
"""

STYLE_RULES = """
STYLE RULES:
- Ask for ONE piece of information at a time.
- Be conversational but professional. Keep replies to two or three sentences.
- Never invent fees, processing times or requirements.
- Never ask again for information the user has already given.
"""


def build_intent_router_prompt(service_names: list[str]) -> str:
    """System prompt for the first-turn intent router."""
    return f"""You are an intent router for a Caribbean government service portal.
Available services: {', '.join(service_names)}

Your job is to:
1. If user asks about available services, use 'list_services' function
2. If user requests a specific service, use 'route_to_service' function
3. Extract details from user requests

Be helpful and guide users to available services."""


def build_router_tools(service_names: list[str]) -> list[dict]:
    """OpenAI tool definitions for the intent router."""
    return [
        {
            "type": "function",
            "function": {
                "name": "route_to_service",
                "description": "Route user to the appropriate service agent",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "service_name": {
                            "type": "string",
                            "enum": service_names,
                            "description": "The service the user needs (from repository)",
                        },
                        "user_context": {
                            "type": "string",
                            "description": "User's original query/context",
                        },
                    },
                    "required": ["service_name", "user_context"],
                },
            },
        },
        {
            "type": "function",
            "function": {
                "name": "list_services",
                "description": "List all available government services",
                "parameters": {"type": "object", "properties": {}, "required": []},
            },
        },
    ]


SERVICE_AGENT_HEADER = """You are a Service Agent for {ministry} - {service_name}.
{portal_context}
CRITICAL INSTRUCTIONS:
- NEVER ask for information that is already collected
- Only ask for ONE missing field at a time
- For optional fields, always explain they are optional and can be skipped
{style_rules}"""

OPTIONAL_FIELD_GUIDANCE = """IMPORTANT FOR OPTIONAL FIELDS:
- Clearly state this field is OPTIONAL
- Mention they can skip it by saying "no", "skip", "not provided", or "not available"
- Be friendly and not pushy"""

OPTIONAL_FIELD_HINTS: dict[str, str] = {
    "phone": "For PHONE: mention it's helpful for appointment reminders or urgent updates, but completely optional.",
    "email": "For EMAIL: mention it's useful for status updates and digital copies, but completely optional.",
    "address": "For ADDRESS: mention it's helpful for document delivery, but completely optional.",
    "emergency_contact": "For EMERGENCY_CONTACT: mention it's for emergency situations only, but completely optional.",
}

SUBMIT_INSTRUCTION = (
    "All fields collected! Ask the user if they want to submit the application for processing."
)

# Deterministic questions used by the offline dialogue generator.
FIELD_QUESTIONS: dict[str, str] = {
    "service_type": "Is this a new application, a renewal or a replacement?",
    "full_name": "Could you please provide your full name?",
    "date_of_birth": "What is your date of birth? For example 1990-05-15.",
    "nationality": "What is your nationality?",
    "id_number": "What is your national ID number?",
    "license_class": "Which license class are you applying for (A to H)?",
    "phone": "Would you like to provide a phone number?",
    "email": "Would you like to provide an email address?",
    "address": "What is your home address?",
    "emergency_contact": "Would you like to provide an emergency contact?",
    "business_name": "What is the business name?",
    "business_type": (
        "What is the business type? For example Sole Proprietorship, Partnership "
        "or Private Company."
    ),
    "owner_name": "What is the owner name?",
    "tax_id": "What is the business tax ID?",
    "business_address": "What is the business address?",
    "parent_name": "What is the parent name shown on the birth record?",
    "registration_number": "What is the birth registration number?",
    "property_address": "What is the property address?",
    "property_type": "What is the property type? For example residential or commercial.",
    "deed_number": "What is the deed number?",
    "land_area": "What is the land area of the property?",
}

# Asked right after a validation failure for the first rejected field.
CORRECTION_QUESTIONS: dict[str, str] = {
    "phone": "What is the correct phone number?",
    "date_of_birth": "What is your correct date of birth?",
    "nationality": "What is your nationality?",
    "id_number": "What is your correct ID number?",
    "license_class": "Which license class do you need (A to H)?",
    "business_type": "What is the correct business type?",
}

# Used when the rejected details cannot be tied to a field we collect.
REVIEW_QUESTION = (
    'If everything above is correct, say "submit" and ministry staff will review '
    "your request."
)

OPTIONAL_SUFFIX = ' This is optional, you can say "skip" if you prefer not to share it.'

SUBMIT_QUESTION = (
    "I have everything I need. Shall I submit your request for processing?"
)

LIST_SERVICES_RESPONSE = (
    "I found {count} government services available. Which service do you need help with?"
)

GENERIC_ERROR_RESPONSE = (
    "I'm sorry, there was an error processing your request. Please try again."
)

ROUTING_SUGGESTION = (
    "Try asking about 'passport', 'driver license', 'business permit', or 'available services'"
)
