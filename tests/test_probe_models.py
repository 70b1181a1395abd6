import os
from types import SimpleNamespace
from unittest import TestCase, mock

from quizseed import probe_models


class _NotFound(Exception):
    code = 404


def _client(working):
    def generate_content(model, contents):
        if model in working:
            return SimpleNamespace(text=f"Hello from {model}")
        raise _NotFound(f"models/{model} is not found")

    gen = mock.Mock(side_effect=generate_content)
    return SimpleNamespace(models=SimpleNamespace(generate_content=gen))


class ProbeModelsTest(TestCase):
    def test_stops_at_first_working_model(self):
        client = _client({"gemini-pro", "models/gemini-pro"})
        found = probe_models.probe_models(client, probe_models.CANDIDATE_MODELS)

        self.assertEqual(found, "gemini-pro")
        tried = [c.kwargs["model"] for c in client.models.generate_content.call_args_list]
        self.assertEqual(tried, ["gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro"])
        self.assertEqual(client.models.generate_content.call_args.kwargs["contents"], 'Say "Hello"')

    def test_none_when_all_fail(self):
        client = _client(set())
        self.assertIsNone(probe_models.probe_models(client, ["a", "b"]))
        self.assertEqual(client.models.generate_content.call_count, 2)

    def test_main_exit_codes(self):
        with mock.patch.dict(os.environ, {"GEMINI_API_KEY": "g"}, clear=True):
            with mock.patch.object(probe_models, "get_gemini_client", return_value=_client({"x"})):
                probe_models.main(["--models", "y, x", "--env_file", os.devnull])
                with self.assertRaises(SystemExit):
                    probe_models.main(["--models", "y", "--env_file", os.devnull])

    def test_missing_key_is_fatal(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(SystemExit) as ctx:
                probe_models.main(["--env_file", os.devnull])
        self.assertIn("GEMINI_API_KEY", str(ctx.exception.code))


if __name__ == "__main__":  # pragma: no cover - convenience for local runs
    import unittest

    unittest.main()
