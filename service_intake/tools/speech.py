"""
Speech-to-text for voice turns.

Audio arrives already encoded by the client; this module only checks
its size, picks a filename extension the transcription endpoint accepts
and forwards the bytes.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from service_intake.config import settings
from service_intake.errors import CollaboratorError, InputValidationError

logger = logging.getLogger(__name__)

MIMETYPE_EXTENSIONS: dict[str, str] = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mp4": "mp4",
    "audio/mp3": "mp3",
    "audio/mpeg": "mp3",
    "audio/ogg": "ogg",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
}
DEFAULT_EXTENSION = "webm"


def extension_for(mimetype: Optional[str]) -> str:
    """Map a mimetype (parameters ignored) to a file extension."""
    if not mimetype:
        return DEFAULT_EXTENSION
    base = mimetype.split(";", 1)[0].strip().lower()
    return MIMETYPE_EXTENSIONS.get(base, DEFAULT_EXTENSION)


class SpeechTranscriber:
    """Transcribes recorded audio through the OpenAI transcription endpoint."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: str = settings.model.stt_model,
        language: str = settings.model.stt_language,
        max_bytes: int = settings.conversation.max_audio_bytes,
    ) -> None:
        self._client = client
        self.model = model
        self.language = language
        self.max_bytes = max_bytes

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def transcribe(self, audio: bytes, mimetype: Optional[str] = None) -> str:
        """Return the transcript text.

        Raises:
            InputValidationError: If the audio is empty or too large.
            CollaboratorError: If transcription fails or returns no text.
        """
        if not audio:
            raise InputValidationError(
                "No audio data provided",
                user_message="I didn't receive any audio. Please try recording again.",
            )
        if len(audio) > self.max_bytes:
            raise InputValidationError(
                f"Audio is {len(audio)} bytes, limit is {self.max_bytes}",
                user_message="That recording is too long. Please keep it shorter.",
            )

        filename = f"recording.{extension_for(mimetype)}"
        try:
            response = await self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio, mimetype or f"audio/{DEFAULT_EXTENSION}"),
                language=self.language,
            )
        except OpenAIError as exc:
            raise CollaboratorError(f"Transcription failed: {exc}") from exc

        text = (getattr(response, "text", "") or "").strip()
        if not text:
            raise CollaboratorError(
                "Transcription returned no text",
                user_message="I couldn't make out what you said. Please try again.",
            )
        logger.info("Transcribed %d bytes of %s audio", len(audio), filename)
        return text
