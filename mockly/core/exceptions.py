from typing import Optional


class ConfigurationError(Exception):
    """A required credential or setting is missing."""


class ProviderError(Exception):
    """An upstream vendor (LLM, TTS, STT) call failed.

    ``status`` is the vendor HTTP status, or ``None`` for transport failures
    (timeouts, connection resets) where no response was received.
    """

    def __init__(self, provider: str, status: Optional[int], details: str = ""):
        self.provider = provider
        self.status = status
        self.details = details
        super().__init__(f"{provider} API error: {status if status is not None else 'no response'} {details}".strip())

    @property
    def http_status(self) -> int:
        """Client-caused errors pass through, everything else becomes a 500."""
        if self.status is not None and 400 <= self.status < 500:
            return self.status
        return 500


class FeedbackParseError(Exception):
    def __init__(self, reason: str, raw_text: str):
        self.reason = reason
        self.raw_text = raw_text
        super().__init__(f"Failed to parse model feedback: {reason}. Raw response: {raw_text}")


class SpeechCapabilityError(Exception):
    """The client has no speech recognition support."""


class SpeechRecognitionError(Exception):
    pass


class InvalidPhaseTransition(Exception):
    pass
