import logging
import httpx
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List
from enum import Enum

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class AIProvider(str, Enum):
    NONE = "none"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OPENAI_COMPATIBLE = "openai_compatible"


class AIServiceError(Exception):
    """Raised when no LLM backend is configured or the backend call fails."""


ONBOARDING_SYSTEM_PROMPT = """You are Vandra's friendly flight agent assistant. You're helping a new user set up their flight deal preferences.

Your personality:
- Warm, casual, and conversational, like texting a helpful friend
- Keep responses SHORT: 1-3 sentences max, like real text messages
- Be enthusiastic about travel without being cheesy

Your goal is to gather these details through natural conversation:
1. Their home airport (where they fly out of)
2. Where they want to go (specific places, regions, or "anywhere")
3. When they're flexible to travel (dates, seasons, or totally flexible)
4. What price makes them excited (budget, percentage off, or just "good deals")

Guidelines:
- Ask ONE question at a time
- Acknowledge what they said before asking the next question
- If they give vague answers, that's fine, work with it
- Don't be robotic or use bullet points
- After you have all 4 pieces of info, confirm and let them know you're all set"""

CHAT_MAX_TOKENS = 150


def _clean_messages(messages: List[Message]) -> List[Message]:
    return [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m.get("role") in ("user", "assistant") and m.get("content")
    ]


class AIBackend(ABC):
    @abstractmethod
    async def complete(
        self,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        max_tokens: int = 500,
    ) -> str:
        pass


class OpenAICompatibleBackend(AIBackend):
    """Generic backend for any OpenAI-compatible API (Groq, Together, OpenRouter, Azure, etc.)"""
    def __init__(self, base_url: str, api_key: str, model: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self._transport = transport

    async def complete(
        self,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        max_tokens: int = 500,
    ) -> str:
        payload = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend(_clean_messages(messages))

        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": payload,
                    "temperature": 0,
                    "max_tokens": max_tokens,
                },
            )
            response.raise_for_status()
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""


class OpenAIBackend(OpenAICompatibleBackend):
    def __init__(self, api_key: str, model: str = "gpt-4o-mini", transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__("https://api.openai.com/v1", api_key, model, transport=transport)


class AnthropicBackend(AIBackend):
    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self._transport = transport

    async def complete(
        self,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        max_tokens: int = 500,
    ) -> str:
        request_json: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": _clean_messages(messages),
        }
        if system_prompt:
            request_json["system"] = system_prompt

        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            response = await client.post(
                "https://api.anthropic.com/v1/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": "2023-06-01",
                    "Content-Type": "application/json",
                },
                json=request_json,
            )
            response.raise_for_status()
            data = response.json()

        # Non-text first blocks yield an empty reply
        content = data.get("content") or []
        if content and content[0].get("type") == "text":
            return content[0]["text"]
        return ""


class AIService:
    _backend: Optional[AIBackend] = None
    _provider: AIProvider = AIProvider.NONE
    _model: Optional[str] = None

    @classmethod
    def configure(
        cls,
        provider: AIProvider,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ):
        cls._provider = provider

        if provider == AIProvider.OPENAI and api_key:
            cls._model = model or "gpt-4o-mini"
            cls._backend = OpenAIBackend(api_key, cls._model)
        elif provider == AIProvider.ANTHROPIC and api_key:
            cls._model = model or "claude-3-5-haiku-latest"
            cls._backend = AnthropicBackend(api_key, cls._model)
        elif provider == AIProvider.OPENAI_COMPATIBLE and api_key and base_url and model:
            cls._model = model
            cls._backend = OpenAICompatibleBackend(base_url, api_key, model)
        else:
            cls._backend = None
            cls._model = None

    @classmethod
    def set_backend(cls, backend: Optional[AIBackend], provider: AIProvider = AIProvider.NONE) -> None:
        cls._backend = backend
        cls._provider = provider
        cls._model = getattr(backend, "model", None)

    @classmethod
    def is_configured(cls) -> bool:
        return cls._backend is not None

    @classmethod
    def get_provider(cls) -> AIProvider:
        return cls._provider

    @classmethod
    def get_model(cls) -> Optional[str]:
        return cls._model

    @classmethod
    async def complete(
        cls,
        messages: List[Message],
        system_prompt: Optional[str] = None,
        max_tokens: int = 500,
    ) -> str:
        """Run a completion on the configured backend.

        Raises:
            AIServiceError: If no backend is configured or the provider call fails.
        """
        if not cls._backend:
            raise AIServiceError("AI service is not configured. Set up a provider first.")

        try:
            return await cls._backend.complete(messages, system_prompt, max_tokens)
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.error(f"AI completion failed ({cls._provider.value}): {e}")
            raise AIServiceError(f"AI completion failed: {e}") from e


async def chat_reply(messages: List[Message]) -> str:
    """Next assistant turn of the onboarding conversation."""
    return await AIService.complete(
        messages,
        system_prompt=ONBOARDING_SYSTEM_PROMPT,
        max_tokens=CHAT_MAX_TOKENS,
    )


def configure_ai_from_settings(settings) -> bool:
    try:
        provider = AIProvider(settings.ai_provider or "none")
    except ValueError:
        logger.warning(f"Unknown AI provider '{settings.ai_provider}', AI disabled")
        provider = AIProvider.NONE

    if provider == AIProvider.NONE:
        AIService.configure(AIProvider.NONE)
        return False

    AIService.configure(
        provider=provider,
        api_key=settings.ai_api_key,
        base_url=settings.ai_base_url or None,
        model=settings.ai_model or None,
    )

    return AIService.is_configured()
