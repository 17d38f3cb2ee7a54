"""
Question/answer field extraction over a conversation transcript.

Every adjacent (assistant, user) pair is treated as a question and its
answer. The lower-cased question is classified against an ordered rule
table; the first rule whose trigger matches and whose field is still
unset claims the answer. Rules are scoped to the active service's field
vocabulary, so a question about "business address" can never fill a
plain ``address`` field for a service that does not collect one.

Usage:
    extractor = FieldExtractor()
    data = extractor.extract(transcript, service.required_fields, service.optional_fields)
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from service_intake.schemas.conversation_schema import ConversationTurn, Role

logger = logging.getLogger(__name__)

MIN_ANSWER_LENGTH = 2

# Groups in priority order; within one turn the first matching group wins.
SERVICE_TYPE_KEYWORDS: list[tuple[str, re.Pattern]] = [
    ("renewal", re.compile(r"\brenew(?:al|ed|ing|s)?\b")),
    ("new_application", re.compile(r"\b(?:new|application)\b")),
    ("replacement", re.compile(r"\breplace(?:ment|d|s)?\b")),
]


@dataclass(frozen=True)
class Trigger:
    """A phrase that marks a question, optionally vetoed by another phrase."""

    phrase: str
    unless: Optional[str] = None

    def matches(self, question: str) -> bool:
        if self.phrase not in question:
            return False
        return self.unless is None or self.unless not in question


@dataclass(frozen=True)
class FieldRule:
    """Maps question triggers to a field, with an optional answer label to strip."""

    field: str
    triggers: tuple[Trigger, ...]
    strip_label: Optional[str] = None

    def matches(self, question: str) -> bool:
        return any(trigger.matches(question) for trigger in self.triggers)

    def clean(self, answer: str) -> str:
        if self.strip_label is None:
            return answer
        return re.sub(self.strip_label, "", answer, flags=re.IGNORECASE).strip()


def rule(field: str, *phrases: str, strip_label: Optional[str] = None) -> FieldRule:
    """Shorthand for a rule whose triggers are plain phrases."""
    return FieldRule(field, tuple(Trigger(p) for p in phrases), strip_label)


DEFAULT_FIELD_RULES: tuple[FieldRule, ...] = (
    rule("full_name", "full name", "your name", "provide your name"),
    rule("date_of_birth", "date of birth", "birth date", "born"),
    rule("nationality", "nationality", "citizen", "from which country"),
    rule("id_number", "id number", "identification", "id card"),
    FieldRule(
        "phone",
        (Trigger("phone number"), Trigger("phone", unless="email")),
        strip_label=r"^(phone:|tel:)",
    ),
    FieldRule(
        "email",
        (Trigger("email address"), Trigger("email", unless="phone")),
        strip_label=r"^email:",
    ),
    rule("address", "address", "where do you live"),
    rule("emergency_contact", "emergency contact"),
    rule("license_class", "license class", "class of license"),
    rule("business_name", "business name"),
    rule("business_type", "business type"),
    rule("owner_name", "owner name"),
    rule("tax_id", "tax id"),
    rule("business_address", "business address"),
    rule("parent_name", "parent name"),
    rule("registration_number", "registration number"),
    rule("property_address", "property address"),
    rule("property_type", "property type"),
    rule("deed_number", "deed number"),
    rule("land_area", "land area"),
)


def infer_service_type(transcript: Sequence[ConversationTurn]) -> Optional[str]:
    """Classify the service variant from the first user turn that mentions one.

    Assistant turns are ignored: a question such as "is this a new
    application or a renewal?" must not answer itself.
    """
    for turn in transcript:
        if turn.role != Role.USER:
            continue
        content = turn.content.lower()
        for variant, pattern in SERVICE_TYPE_KEYWORDS:
            if pattern.search(content):
                return variant
    return None


def question_answer_pairs(
    transcript: Sequence[ConversationTurn],
) -> Iterable[tuple[str, str]]:
    """Yield (lower-cased question, trimmed answer) for usable adjacent pairs."""
    for question, answer in zip(transcript, transcript[1:]):
        if question.role != Role.ASSISTANT or answer.role != Role.USER:
            continue
        text = answer.content.strip()
        if len(text) < MIN_ANSWER_LENGTH or text.endswith("?"):
            continue
        yield question.content.lower(), text


class FieldExtractor:
    """
    Stateless transcript extractor.

    ``service_rules`` maps a service_id to its own ordered rules, which
    are tried before the global table for that service.
    """

    def __init__(
        self,
        service_rules: Optional[dict[str, Sequence[FieldRule]]] = None,
        default_rules: Sequence[FieldRule] = DEFAULT_FIELD_RULES,
    ) -> None:
        self._service_rules = {sid: tuple(rules) for sid, rules in (service_rules or {}).items()}
        self._default_rules = tuple(default_rules)

    def rules_for(self, service_id: Optional[str]) -> tuple[FieldRule, ...]:
        return self._service_rules.get(service_id, ()) + self._default_rules

    def extract(
        self,
        transcript: Sequence[ConversationTurn],
        required_fields: Sequence[str],
        optional_fields: Sequence[str],
        service_id: Optional[str] = None,
    ) -> dict[str, str]:
        """Extract field values from the whole transcript.

        The result never contains a key outside ``required_fields`` and
        ``optional_fields``, and a field once set is never overwritten.
        Extending the transcript never changes values already extracted
        from its prefix.
        """
        vocabulary = set(required_fields) | set(optional_fields)
        rules = [r for r in self.rules_for(service_id) if r.field in vocabulary]
        collected: dict[str, str] = {}

        if "service_type" in vocabulary:
            variant = infer_service_type(transcript)
            if variant is not None:
                collected["service_type"] = variant
                logger.debug("Detected service_type: %s", variant)

        for question, answer in question_answer_pairs(transcript):
            for field_rule in rules:
                if field_rule.field in collected or not field_rule.matches(question):
                    continue
                value = field_rule.clean(answer)
                if value:
                    collected[field_rule.field] = value
                    logger.debug("Extracted %s from %r", field_rule.field, question[:50])
                break

        return collected

    def extract_corrections(
        self,
        transcript: Sequence[ConversationTurn],
        flagged_fields: Sequence[str],
        service_id: Optional[str] = None,
    ) -> dict[str, str]:
        """Re-collect fields that failed validation from the correction window.

        Only ``flagged_fields`` can be filled. When one question mentions
        several flagged fields, the answer goes to the earliest unresolved
        one in flagged order.
        """
        rules = self.rules_for(service_id)
        corrections: dict[str, str] = {}
        for question, answer in question_answer_pairs(transcript):
            for name in flagged_fields:
                if name in corrections:
                    continue
                matched = next(
                    (r for r in rules if r.field == name and r.matches(question)), None
                )
                if matched is None:
                    continue
                value = matched.clean(answer)
                if value:
                    corrections[name] = value
                    logger.debug("Correction received for %s", name)
                break
        return corrections
