"""Session configuration models."""

from pydantic import BaseModel, Field

from painika.clients.groq import DEFAULT_BASE_URL, DEFAULT_MODEL, GroqConfig


class GroqSettings(BaseModel):
    """Credential and endpoint of the completion service.

    A missing token falls back to GROQ_API_KEY when the client is built.
    """

    token: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL


class SessionConfig(BaseModel):
    """Configuration accepted when a session is initialized."""

    groq: GroqSettings = Field(default_factory=GroqSettings)

    def to_groq_config(self) -> GroqConfig:
        return GroqConfig(token=self.groq.token, model=self.groq.model, base_url=self.groq.base_url)
