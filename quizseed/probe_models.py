#!/usr/bin/env python3
"""
Find a Gemini model name that the configured API key can call.

Tries each candidate with a one-line prompt and stops at the first that
answers. Nothing is retried or saved; this is a manual troubleshooting aid.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

# Ensure package imports succeed whether run from repo root or quizseed/ dir
SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from quizseed.clients import call_gemini, get_gemini_client  # noqa: E402
from quizseed.errors import GenerationError  # noqa: E402
from quizseed.settings import load_environment, require_env  # noqa: E402

CANDIDATE_MODELS = (
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gemini-pro",
    "gemini-1.0-pro",
    "models/gemini-1.5-flash",
    "models/gemini-1.5-pro",
    "models/gemini-pro",
)

PROBE_PROMPT = 'Say "Hello"'


def probe_models(client, candidates: Sequence[str], prompt: str = PROBE_PROMPT) -> Optional[str]:
    """Return the first candidate that answers, or None."""
    for model_name in candidates:
        print(f"Testing: {model_name}...")
        try:
            text = call_gemini(client, model_name, prompt)
        except GenerationError as exc:
            print(f"[ERR] {model_name} failed: {exc}\n")
            continue
        print(f"[OK] {model_name} works! Response: {text.strip()}\n")
        return model_name
    return None


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Check which Gemini model names are available.")
    ap.add_argument("--models", type=str, default=None, help="CSV of model names to try instead of the defaults.")
    ap.add_argument("--env_file", type=str, default=None, help="Path to a .env file.")
    ap.add_argument("--timeout", type=float, default=60.0, help="Per-request timeout in seconds.")
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    load_environment(dotenv_path=args.env_file)
    require_env("GEMINI_API_KEY")

    candidates = [m.strip() for m in args.models.split(",") if m.strip()] if args.models else list(CANDIDATE_MODELS)
    print("[INFO] Checking available Gemini models...\n")

    working = probe_models(get_gemini_client(timeout=args.timeout), candidates)
    if working is None:
        raise SystemExit(f"[FATAL] None of {len(candidates)} candidate model(s) responded.")
    print(working)  # machine-readable model name for caller


if __name__ == "__main__":
    main()
