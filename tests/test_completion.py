"""Tests for the completion policy."""

import pytest

from service_intake.conversation.completion import CompletionPolicy, CompletionStatus


class TestCompletionPolicy:
    def setup_method(self):
        self.policy = CompletionPolicy(decline_phrases=["no", "skip", "n/a"])

    def test_everything_missing(self, passport):
        status = self.policy.evaluate(passport, {})
        assert status.missing_required == list(passport.required_fields)
        assert status.remaining_optional == list(passport.optional_fields)
        assert not status.is_complete

    def test_missing_keeps_schema_order(self, passport):
        status = self.policy.evaluate(passport, {"nationality": "Trinidadian"})
        assert status.missing_required == [
            "service_type", "full_name", "date_of_birth", "id_number",
        ]

    def test_blank_values_count_as_missing(self, passport):
        status = self.policy.evaluate(passport, {"full_name": "   "})
        assert "full_name" in status.missing_required

    def test_complete_when_required_present(self, passport):
        data = {
            "service_type": "renewal",
            "full_name": "Jane Doe",
            "date_of_birth": "1990-05-15",
            "nationality": "Trinidadian",
            "id_number": "AB123456",
        }
        assert self.policy.evaluate(passport, data).is_complete

    def test_provided_optional(self, passport):
        status = self.policy.evaluate(passport, {"phone": "868-555-1234"})
        assert status.provided_optional == ["phone"]
        assert "phone" not in status.remaining_optional

    def test_declined_optional_stays_remaining(self, passport):
        status = self.policy.evaluate(passport, {"phone": "No", "email": " skip "})
        assert status.declined_optional == ["phone", "email"]
        assert "phone" in status.remaining_optional
        assert status.provided_optional == []

    def test_pending_excludes_declined(self, passport):
        status = self.policy.evaluate(passport, {"phone": "n/a"})
        assert status.pending_optional == ["email", "address", "emergency_contact"]

    def test_decline_phrase_is_not_a_required_value_check(self, passport):
        status = self.policy.evaluate(passport, {"full_name": "no"})
        assert "full_name" not in status.missing_required

    def test_completion_is_monotonic(self, passport):
        data = {
            "service_type": "renewal",
            "full_name": "Jane Doe",
            "date_of_birth": "1990-05-15",
            "nationality": "Trinidadian",
            "id_number": "AB123456",
        }
        assert self.policy.evaluate(passport, data).is_complete
        data.update({"phone": "868-555-1234", "email": "skip", "favourite_colour": "blue"})
        assert self.policy.evaluate(passport, data).is_complete

    @pytest.mark.parametrize("value", [
        "NO", "  No  ",
        "SKIP", " Skip ",
        "NOT   PROVIDED", "Not \t Provided",
        "NOT AVAILABLE", "not    available ",
        "N/A", " n/a ",
        "NONE", "None ",
    ])
    def test_every_default_phrase_declines(self, passport, value):
        status = CompletionPolicy().evaluate(passport, {"phone": value})
        assert status.declined_optional == ["phone"]
        assert status.provided_optional == []

    def test_default_phrases_from_settings(self):
        policy = CompletionPolicy()
        assert policy.is_declined("not provided")
        assert not policy.is_declined("Jane")
        assert not policy.is_declined(None)


class TestCompletionStatus:
    def test_empty_status_is_complete(self):
        assert CompletionStatus().is_complete

    def test_pending_optional(self):
        status = CompletionStatus(
            remaining_optional=["phone", "email"], declined_optional=["phone"]
        )
        assert status.pending_optional == ["email"]
