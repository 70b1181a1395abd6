from types import SimpleNamespace
from unittest import TestCase, mock

import httpx
import openai

from quizseed.clients import ChatClient, call_gemini
from quizseed.errors import GenerationError
from quizseed.prompts import GENERATOR_SYSTEM_INSTRUCTIONS
from quizseed.settings import SeedSettings

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, status):
    return cls("provider said no", response=httpx.Response(status, request=_REQUEST), body=None)


def _fake_openai(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class ChatClientTest(TestCase):
    def test_sends_system_instruction_and_settings(self):
        create = mock.Mock(return_value=_completion("[]"))
        settings = SeedSettings(model="gpt-4o-mini", temperature=0.5, max_tokens=1000, request_timeout=12.0)

        text = ChatClient(settings, client=_fake_openai(create)).complete("hello")

        self.assertEqual(text, "[]")
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": GENERATOR_SYSTEM_INSTRUCTIONS})
        self.assertEqual(kwargs["messages"][1], {"role": "user", "content": "hello"})
        self.assertEqual(kwargs["temperature"], 0.5)
        self.assertEqual(kwargs["max_tokens"], 1000)
        self.assertEqual(kwargs["timeout"], 12.0)

    def test_rate_limit_is_classified_from_sdk_type(self):
        create = mock.Mock(side_effect=_status_error(openai.RateLimitError, 429))
        with self.assertRaises(GenerationError) as ctx:
            ChatClient(SeedSettings(), client=_fake_openai(create)).complete("x")
        self.assertTrue(ctx.exception.is_rate_limited)
        self.assertEqual(ctx.exception.status_code, 429)

    def test_other_status_is_http_error(self):
        create = mock.Mock(side_effect=_status_error(openai.AuthenticationError, 401))
        with self.assertRaises(GenerationError) as ctx:
            ChatClient(SeedSettings(), client=_fake_openai(create)).complete("x")
        self.assertFalse(ctx.exception.is_rate_limited)
        self.assertEqual(ctx.exception.reason, "http")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_rate_limit_text_in_non_429_error_is_not_a_rate_limit(self):
        err = openai.BadRequestError(
            "rate_limit 429 mentioned in prose",
            response=httpx.Response(400, request=_REQUEST),
            body=None,
        )
        with self.assertRaises(GenerationError) as ctx:
            ChatClient(SeedSettings(), client=_fake_openai(mock.Mock(side_effect=err))).complete("x")
        self.assertFalse(ctx.exception.is_rate_limited)

    def test_timeout_is_transport_error(self):
        create = mock.Mock(side_effect=openai.APITimeoutError(request=_REQUEST))
        with self.assertRaises(GenerationError) as ctx:
            ChatClient(SeedSettings(), client=_fake_openai(create)).complete("x")
        self.assertEqual(ctx.exception.reason, "transport")
        self.assertIsNone(ctx.exception.status_code)

    def test_empty_content_is_malformed(self):
        create = mock.Mock(return_value=_completion(None))
        with self.assertRaises(GenerationError) as ctx:
            ChatClient(SeedSettings(), client=_fake_openai(create)).complete("x")
        self.assertEqual(ctx.exception.reason, "malformed")

    def test_missing_key_is_fatal_when_building_client(self):
        with mock.patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(RuntimeError):
                ChatClient(SeedSettings())


class _GeminiError(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code = code


class CallGeminiTest(TestCase):
    def _client(self, **kw):
        return SimpleNamespace(models=SimpleNamespace(generate_content=mock.Mock(**kw)))

    def test_returns_text(self):
        client = self._client(return_value=SimpleNamespace(text="Hello"))
        self.assertEqual(call_gemini(client, "gemini-1.5-flash", "Say hi"), "Hello")
        client.models.generate_content.assert_called_once_with(model="gemini-1.5-flash", contents="Say hi")

    def test_classifies_status_codes(self):
        with self.assertRaises(GenerationError) as ctx:
            call_gemini(self._client(side_effect=_GeminiError(429, "quota")), "m", "p")
        self.assertTrue(ctx.exception.is_rate_limited)

        with self.assertRaises(GenerationError) as ctx:
            call_gemini(self._client(side_effect=_GeminiError(404, "not found")), "m", "p")
        self.assertEqual((ctx.exception.reason, ctx.exception.status_code), ("http", 404))

        with self.assertRaises(GenerationError) as ctx:
            call_gemini(self._client(side_effect=ConnectionError("reset")), "m", "p")
        self.assertEqual(ctx.exception.reason, "transport")


if __name__ == "__main__":  # pragma: no cover - convenience for local runs
    import unittest

    unittest.main()
