"""Tests for ticket assembly and user-facing messages."""

import re

from service_intake.tools.ticket import (
    clean_declined,
    create_ticket,
    ticket_message,
    validation_failure_message,
)
from tests.conftest import make_service


class TestCleanDeclined:
    def test_drops_declines_and_blanks(self):
        data = {"full_name": " Jane Doe ", "phone": "No ", "email": " ", "address": "skip"}
        assert clean_declined(data, ["no", "skip"]) == {"full_name": "Jane Doe"}

    def test_default_phrases(self):
        assert clean_declined({"phone": "not available"}) == {}

    def test_inner_whitespace_variants_dropped(self):
        data = {"phone": "Not  available", "email": "NOT \t PROVIDED"}
        assert clean_declined(data) == {}

    def test_keeps_values_containing_decline_words(self):
        data = {"address": "No. 5 Skip Street"}
        assert clean_declined(data, ["no", "skip"]) == data


class TestCreateTicket:
    def test_reference_format(self, passport):
        ticket = create_ticket(passport, {"full_name": "Jane Doe"})
        assert re.fullmatch(r"TKT-[0-9A-F]{8}", ticket.ticket_ref)

    def test_references_are_unique(self, passport):
        refs = {create_ticket(passport, {}).ticket_ref for _ in range(20)}
        assert len(refs) == 20

    def test_ticket_fields(self, passport):
        ticket = create_ticket(passport, {"full_name": "Jane", "phone": "no"}, validated=False)
        assert ticket.service_id == "SVC_001"
        assert ticket.ministry == "Ministry of Home Affairs"
        assert ticket.ticket_data == {"full_name": "Jane"}
        assert ticket.validated is False


class TestMessages:
    def test_ticket_message(self, passport):
        ticket = create_ticket(passport, {"full_name": "Jane"})
        message = ticket_message(passport, ticket)
        assert message.startswith("Ticket Created Successfully!")
        assert f"Reference: {ticket.ticket_ref}" in message
        assert "Service ID: SVC_001" in message
        assert "Fee: TTD 250" in message
        assert "Processing Time: 10-15 business days" in message
        assert "could not be verified" not in message

    def test_missing_fee_shows_tbd(self):
        service = make_service()
        message = ticket_message(service, create_ticket(service, {}))
        assert "Fee: TBD" in message
        assert "Processing Time: TBD" in message

    def test_unvalidated_note(self, passport):
        ticket = create_ticket(passport, {}, validated=False)
        assert "could not be verified" in ticket_message(passport, ticket)

    def test_validation_failure_message(self):
        message = validation_failure_message(["Phone: bad", "ID Number: bad"])
        assert message == (
            "I found some issues with the information provided:\n\n"
            "• Phone: bad\n• ID Number: bad\n\n"
            "Please provide the correct information."
        )

    def test_validation_failure_follow_up(self):
        message = validation_failure_message(["Phone: bad"], "What is the correct phone number?")
        assert message.endswith("Please provide the correct information. What is the correct phone number?")
