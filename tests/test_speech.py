"""Tests for voice-turn transcription."""

from types import SimpleNamespace

import pytest
from openai import OpenAIError

from service_intake.errors import CollaboratorError, InputValidationError
from service_intake.tools.speech import SpeechTranscriber, extension_for


class FakeTranscriptions:
    def __init__(self, text="I need a passport", error=None):
        self.text = text
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _transcriber(transcriptions, max_bytes=1024):
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))
    return SpeechTranscriber(client=client, model="whisper-1", language="en", max_bytes=max_bytes)


class TestExtensionFor:
    def test_known_mimetypes(self):
        assert extension_for("audio/wav") == "wav"
        assert extension_for("audio/mpeg") == "mp3"

    def test_parameters_ignored(self):
        assert extension_for("audio/ogg; codecs=opus") == "ogg"

    def test_default_extension(self):
        assert extension_for(None) == "webm"
        assert extension_for("video/quicktime") == "webm"


class TestSpeechTranscriber:
    @pytest.mark.asyncio
    async def test_transcribes_audio(self):
        transcriptions = FakeTranscriptions(text="  I need a passport  ")
        text = await _transcriber(transcriptions).transcribe(b"\x00\x01", "audio/wav")
        assert text == "I need a passport"
        assert transcriptions.kwargs["file"] == ("recording.wav", b"\x00\x01", "audio/wav")
        assert transcriptions.kwargs["language"] == "en"

    @pytest.mark.asyncio
    async def test_empty_audio_rejected(self):
        with pytest.raises(InputValidationError) as info:
            await _transcriber(FakeTranscriptions()).transcribe(b"")
        assert info.value.user_message

    @pytest.mark.asyncio
    async def test_oversized_audio_rejected(self):
        with pytest.raises(InputValidationError, match="limit"):
            await _transcriber(FakeTranscriptions(), max_bytes=4).transcribe(b"12345")

    @pytest.mark.asyncio
    async def test_api_error(self):
        transcriptions = FakeTranscriptions(error=OpenAIError("bad audio"))
        with pytest.raises(CollaboratorError, match="bad audio"):
            await _transcriber(transcriptions).transcribe(b"\x00")

    @pytest.mark.asyncio
    async def test_empty_transcript(self):
        with pytest.raises(CollaboratorError, match="no text"):
            await _transcriber(FakeTranscriptions(text="  ")).transcribe(b"\x00")
