import logging
import os

from typing import Optional

import openai
from openai import OpenAI as _OpenAI

from quizseed.errors import GenerationError
from quizseed.prompts import GENERATOR_SYSTEM_INSTRUCTIONS
from quizseed.settings import SeedSettings

logger = logging.getLogger("quizseed.clients")


# --- Helpers ---
def _raise_if_missing(var: str) -> str:
    val = os.getenv(var)
    if not val:
        raise RuntimeError(f"Missing environment variable: {var}")
    return val


def get_openai_client(timeout: float = 60.0) -> _OpenAI:
    """
    Returns an OpenAI client for chat completions.

    SDK-level retries are disabled; rate-limit retries are decided by the
    caller from the classified GenerationError.
    """
    api_key = _raise_if_missing("OPENAI_API_KEY")
    base_url = os.environ.get("OPENAI_API_BASE_URL", "").strip()
    if base_url:
        return _OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
    return _OpenAI(api_key=api_key, timeout=timeout, max_retries=0)


def get_gemini_client(timeout: float = 60.0):
    """
    Returns a google-genai Client. Relies on GEMINI_API_KEY.
    """
    from google import genai
    from google.genai import types

    api_key = _raise_if_missing("GEMINI_API_KEY")
    # HttpOptions.timeout is in milliseconds
    return genai.Client(api_key=api_key, http_options=types.HttpOptions(timeout=int(timeout * 1000)))


def _classify_openai_error(exc: Exception) -> GenerationError:
    if isinstance(exc, openai.RateLimitError):
        return GenerationError(str(exc), status_code=429, reason="rate_limit")
    if isinstance(exc, openai.APIStatusError):
        status = getattr(exc, "status_code", None)
        reason = "rate_limit" if status == 429 else "http"
        return GenerationError(str(exc), status_code=status, reason=reason)
    if isinstance(exc, openai.APIConnectionError):
        # APITimeoutError is a subclass
        return GenerationError(str(exc), reason="transport")
    return GenerationError(f"{type(exc).__name__}: {exc}", reason="transport")


def _classify_gemini_error(exc: Exception) -> GenerationError:
    code = getattr(exc, "code", None)
    if not isinstance(code, int):
        code = getattr(exc, "status_code", None)
    if code == 429:
        return GenerationError(str(exc), status_code=429, reason="rate_limit")
    if isinstance(code, int):
        return GenerationError(str(exc), status_code=code, reason="http")
    return GenerationError(f"{type(exc).__name__}: {exc}", reason="transport")


class ChatClient:
    """
    Text-in/text-out chat completion call with a fixed system instruction.

    Every failure leaves as a GenerationError whose `reason` and
    `status_code` come from the SDK's exception type.
    """

    def __init__(
        self,
        settings: SeedSettings,
        client: Optional[_OpenAI] = None,
        system_instructions: str = GENERATOR_SYSTEM_INSTRUCTIONS,
    ):
        self.settings = settings
        self.client = client or get_openai_client(timeout=settings.request_timeout)
        self.system_instructions = system_instructions

    def complete(self, prompt: str) -> str:
        mn = self.settings.model
        logger.info(
            "Calling OpenAI model '%s' (max_tokens=%d, temperature=%.3f).",
            mn,
            self.settings.max_tokens,
            self.settings.temperature,
        )
        try:
            resp = self.client.chat.completions.create(
                model=mn,
                messages=[
                    {"role": "system", "content": self.system_instructions},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                timeout=self.settings.request_timeout,
            )
        except openai.OpenAIError as exc:
            raise _classify_openai_error(exc) from exc

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise GenerationError(
                f"Chat completion returned no choices: {resp!r}", reason="malformed"
            ) from exc
        if not content:
            raise GenerationError("Chat completion returned empty content.", reason="malformed")
        return content


def call_gemini(client, model_name: str, prompt: str) -> str:
    """
    Single Gemini generate_content call; returns the response text.
    """
    logger.info("Calling Gemini model '%s'.", model_name)
    try:
        response = client.models.generate_content(model=model_name, contents=prompt)
    except Exception as exc:  # noqa: BLE001
        raise _classify_gemini_error(exc) from exc
    text = getattr(response, "text", None)
    if not text:
        raise GenerationError(f"Gemini model '{model_name}' returned no text.", reason="malformed")
    return text
