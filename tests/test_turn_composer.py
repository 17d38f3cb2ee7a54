"""Tests for next-field selection, prompt composition and termination detection."""

from service_intake.conversation.completion import CompletionPolicy
from service_intake.conversation.turn_composer import TurnComposer
from service_intake.prompts.prompt_templates import (
    build_service_agent_prompt,
    format_collected,
)
from tests.conftest import make_transcript


class TestTerminationSignal:
    def setup_method(self):
        self.composer = TurnComposer(history_window=6, scan_turns=3)

    def test_plain_no(self):
        transcript = make_transcript([("assistant", "Phone?"), ("user", "No")])
        assert self.composer.has_termination_signal(transcript)

    def test_submit_request(self):
        transcript = make_transcript([("user", "Please just submit it")])
        assert self.composer.has_termination_signal(transcript)

    def test_multi_word_phrase(self):
        transcript = make_transcript([("user", "I'd rather  not say")])
        assert self.composer.has_termination_signal(transcript)

    def test_whole_words_only(self):
        transcript = make_transcript([("user", "I know my number is 868-555-1234")])
        assert not self.composer.has_termination_signal(transcript)

    def test_assistant_turns_ignored(self):
        transcript = make_transcript([
            ("assistant", "You can say skip."),
            ("user", "jane@example.com"),
        ])
        assert not self.composer.has_termination_signal(transcript)

    def test_only_recent_user_turns_scanned(self):
        transcript = make_transcript([
            ("user", "no"),
            ("user", "Jane Doe"),
            ("user", "1990-05-15"),
            ("user", "AB123456"),
        ])
        assert not self.composer.has_termination_signal(transcript)


class TestNextField:
    def setup_method(self):
        self.composer = TurnComposer()
        self.policy = CompletionPolicy(decline_phrases=["no", "skip"])

    def test_first_missing_required(self, passport):
        status = self.policy.evaluate(passport, {"service_type": "renewal"})
        assert self.composer.next_field(passport, status) == ("full_name", False)

    def test_first_pending_optional(self, driver_license):
        data = {f: "x" for f in driver_license.required_fields}
        data["phone"] = "skip"
        status = self.policy.evaluate(driver_license, data)
        assert self.composer.next_field(driver_license, status) == ("email", True)

    def test_flagged_field_first(self, passport):
        status = self.policy.evaluate(passport, {})
        assert self.composer.next_field(passport, status, ["phone"]) == ("phone", True)

    def test_none_when_everything_resolved(self, driver_license):
        data = {f: "x" for f in driver_license.required_fields}
        data.update({"phone": "no", "email": "no", "address": "no"})
        status = self.policy.evaluate(driver_license, data)
        assert self.composer.next_field(driver_license, status) == (None, False)


class TestCompose:
    def setup_method(self):
        self.composer = TurnComposer(history_window=2)
        self.policy = CompletionPolicy()

    def test_required_instruction(self, passport):
        collected = {"service_type": "renewal"}
        status = self.policy.evaluate(passport, collected)
        instruction = self.composer.compose(passport, collected, status, [])
        assert instruction.next_field == "full_name"
        assert not instruction.next_is_optional
        assert "ASK FOR: full_name (this is REQUIRED)" in instruction.system_instruction
        assert 'service_type="renewal"' in instruction.system_instruction
        assert "Ministry of Home Affairs" in instruction.system_instruction

    def test_optional_instruction_includes_hint(self, passport):
        collected = {f: "x" for f in passport.required_fields}
        status = self.policy.evaluate(passport, collected)
        instruction = self.composer.compose(passport, collected, status, [])
        assert instruction.next_field == "phone"
        assert instruction.next_is_optional
        assert "OPTIONAL field: phone" in instruction.system_instruction
        assert "appointment reminders" in instruction.system_instruction

    def test_submit_instruction(self, driver_license):
        collected = {f: "x" for f in driver_license.required_fields}
        collected.update({"phone": "no", "email": "no", "address": "no"})
        status = self.policy.evaluate(driver_license, collected)
        instruction = self.composer.compose(driver_license, collected, status, [])
        assert instruction.offers_submit
        assert "submit" in instruction.system_instruction.lower()

    def test_correction_instruction(self, driver_license):
        collected = {"full_name": "John Smith"}
        status = self.policy.evaluate(driver_license, collected)
        error = "Age: Minimum age for driver license is 17 years. Current age: 11"
        instruction = self.composer.compose(
            driver_license, collected, status, [],
            flagged_fields=["date_of_birth"],
            validation_errors=["ID Number: Invalid ID number format", error],
        )
        assert instruction.is_correction
        assert instruction.next_field == "date_of_birth"
        assert f"Validation said: {error}" in instruction.system_instruction

    def test_recent_transcript_window(self, passport):
        transcript = make_transcript([
            ("user", "one"), ("assistant", "two"), ("user", "three"),
        ])
        status = self.policy.evaluate(passport, {})
        instruction = self.composer.compose(passport, {}, status, transcript)
        assert [t.content for t in instruction.recent_transcript] == ["two", "three"]


class TestPromptTemplates:
    def test_format_collected_empty(self):
        assert format_collected({}) == "None"

    def test_format_collected_pairs(self):
        assert format_collected({"a": "1", "b": "2"}) == 'a="1", b="2"'

    def test_do_not_ask_lists_collected(self, passport):
        prompt = build_service_agent_prompt(
            passport, {"full_name": "Jane"}, ["date_of_birth"], "date_of_birth"
        )
        assert "DO NOT ASK FOR: full_name" in prompt
        assert "STILL NEEDED: date_of_birth" in prompt
