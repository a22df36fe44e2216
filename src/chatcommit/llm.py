"""Concrete implementations for LLM providers and the dispatching provider client."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

from . import prompts
from .config import CREDENTIAL_NAMES, Settings
from .errors import MissingCredential, UpstreamError
from .models import ECHO, GOOGLE, GROQ, OPENAI, ConversationTurn, ModelConfig

logger = logging.getLogger(__name__)


class LLM(ABC):
    """Abstract Base Class for all LLM providers."""

    provider_kind: str = ""

    @abstractmethod
    def generate_response(
        self,
        system_instruction: str,
        history: Sequence[ConversationTurn],
        new_message: str,
        model: str,
        json_mode: bool = True,
    ) -> Any:
        """Sends one request to the provider and returns its native response.

        Parameters
        ----------
        system_instruction : str
            Fixed instructions placed ahead of the conversation.
        history : Sequence[ConversationTurn]
            Prior turns of the session transcript.
        new_message : str
            The user's new message.
        model : str
            The specific model to use for the generation.
        json_mode : bool
            Ask the provider to answer with a JSON document.

        Returns
        -------
        Any
            The provider's native response object.

        Raises
        ------
        UpstreamError
            If the provider answers with a non-success status.
        """
        pass

    @abstractmethod
    def extract_content(self, response: Any) -> str:
        """Extracts the text content from the provider's native response object.

        Raises
        ------
        UpstreamError
            If the response does not have the shape this provider returns.
        """
        pass


class Gemini(LLM):
    provider_kind = GOOGLE

    def __init__(self, api_key: str, timeout: Optional[float] = None):
        from google import genai

        http_options = {"timeout": int(timeout * 1000)} if timeout else None
        self.client = genai.Client(api_key=api_key, http_options=http_options)

    def generate_response(
        self, system_instruction, history, new_message, model, json_mode=True
    ):
        import httpx
        from google.genai import errors

        prompt = prompts.build_flat_prompt(system_instruction, history, new_message)
        config = {"response_mime_type": "application/json"} if json_mode else None
        try:
            return self.client.models.generate_content(
                model=model, contents=prompt, config=config
            )
        except errors.APIError as e:
            raise UpstreamError(
                self.provider_kind, e.message or str(e), e.code
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(self.provider_kind, str(e) or type(e).__name__) from e

    def extract_content(self, response: Any) -> str:
        text = getattr(response, "text", None)
        if text is None:
            return ""
        if not isinstance(text, str):
            raise UpstreamError(self.provider_kind, "Unexpected response payload")
        return text


class OpenAI(LLM):
    provider_kind = OPENAI
    base_url: Optional[str] = None

    def __init__(self, api_key: str, timeout: Optional[float] = None):
        from openai import OpenAI

        self.client = OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,
        )

    def generate_response(
        self, system_instruction, history, new_message, model, json_mode=True
    ):
        import openai

        messages = prompts.build_chat_messages(system_instruction, history, new_message)
        kwargs = {"response_format": {"type": "json_object"}} if json_mode else {}
        try:
            return self.client.chat.completions.create(
                model=model, messages=messages, **kwargs
            )
        except openai.APIStatusError as e:
            raise UpstreamError(
                self.provider_kind, _status_message(e), e.status_code
            ) from e
        except openai.APIError as e:
            raise UpstreamError(self.provider_kind, e.message) from e

    def extract_content(self, response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise UpstreamError(self.provider_kind, "Response contained no choices")
        content = choices[0].message.content
        return content or ""


class Groq(OpenAI):
    """Groq serves an OpenAI-compatible chat completions API."""

    provider_kind = GROQ
    base_url = "https://api.groq.com/openai/v1"


class Echo(LLM):
    """Offline provider that echoes the user's message as a chat reply."""

    provider_kind = ECHO

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        pass

    def generate_response(
        self, system_instruction, history, new_message, model, json_mode=True
    ):
        text = (
            "**Echo LLM - static response for testing**\n\n"
            f"_Your prompt:_\n\n{new_message}"
        )
        if not json_mode:
            return {"content": text}
        return {"content": json.dumps({"text": text, "structuredData": None})}

    def extract_content(self, response: Any) -> str:
        if isinstance(response, dict) and "content" in response:
            return response["content"]
        return str(response)


BACKENDS = {GOOGLE: Gemini, GROQ: Groq, OPENAI: OpenAI, ECHO: Echo}


def _status_message(error: Any) -> str:
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        detail = body.get("error", body)
        if isinstance(detail, dict) and detail.get("message"):
            return detail["message"]
    return getattr(error, "message", None) or str(error)


class ProviderClient:
    """Dispatches a conversation to the backend selected by a model config.

    Backends are built lazily, once per provider kind, after their credential
    has been checked. Each call is a single attempt.
    """

    def __init__(
        self, settings: Settings, backends: Optional[Dict[str, LLM]] = None
    ):
        self.settings = settings
        self._backends: Dict[str, LLM] = dict(backends or {})

    def get_backend(self, provider_kind: str) -> LLM:
        if provider_kind not in BACKENDS and provider_kind not in self._backends:
            raise ValueError(f"Unsupported provider: {provider_kind}")

        credential = self.settings.credential_for(provider_kind)
        credential_name = CREDENTIAL_NAMES.get(provider_kind)
        if credential_name and not credential:
            raise MissingCredential(credential_name)

        if provider_kind not in self._backends:
            backend_class = BACKENDS[provider_kind]
            self._backends[provider_kind] = backend_class(
                api_key=credential, timeout=self.settings.REQUEST_TIMEOUT
            )
        return self._backends[provider_kind]

    def send(
        self,
        system_instruction: str,
        history: Sequence[ConversationTurn],
        new_message: str,
        model_config: ModelConfig,
        json_mode: bool = True,
    ) -> str:
        """Sends one conversation turn and returns the provider's raw text."""
        backend = self.get_backend(model_config.provider_kind)
        logger.debug(
            "Sending %d history turns to %s/%s",
            len(history),
            model_config.provider_kind,
            model_config.id,
        )
        response = backend.generate_response(
            system_instruction,
            history,
            new_message,
            model_config.id,
            json_mode=json_mode,
        )
        return backend.extract_content(response)
