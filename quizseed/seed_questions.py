#!/usr/bin/env python3
"""
Generate math MCQs with an OpenAI chat model and seed them into Supabase.

For each configured tier (easy/medium/hard): generate all questions in
chunks, then insert them in batches, then move on. Any unrecovered failure
stops the whole run with exit code 1.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

# Ensure package imports succeed whether run from repo root or quizseed/ dir
SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from quizseed.clients import ChatClient  # noqa: E402
from quizseed.db import get_supabase_client  # noqa: E402
from quizseed.errors import QuizSeedError  # noqa: E402
from quizseed.generator import ContentGenerator  # noqa: E402
from quizseed.inserter import BatchInserter  # noqa: E402
from quizseed.prompts import CONNECTION_TEST_PROMPT  # noqa: E402
from quizseed.settings import (  # noqa: E402
    SeedSettings,
    TierConfig,
    load_config,
    load_environment,
    require_env,
    select_tiers,
    settings_from_config,
    tiers_from_config,
)
from quizseed.utils import now_utc_iso, write_jsonl  # noqa: E402

CONNECTION_HINTS = """
[ERR] Could not connect to OpenAI API.
This usually means:
   1. Your API key is invalid or expired
   2. You have insufficient credits in your OpenAI account
   3. Your API key doesn't have the right permissions

Solution:
   1. Go to: https://platform.openai.com/api-keys
   2. Create a new API key or verify your existing one
   3. Check your billing: https://platform.openai.com/account/billing
   4. Make sure you have credits available"""

FAILURE_HINTS = """
Common issues:
   - Rate limits: Wait a few minutes and try again
   - Insufficient credits: Add credits to your OpenAI account
   - Invalid key: Get new key from https://platform.openai.com/api-keys"""


def check_connection(client: ChatClient) -> bool:
    print("[INFO] Testing OpenAI API connection...")
    print(f"   Testing with model: {client.settings.model}...")
    try:
        client.complete(CONNECTION_TEST_PROMPT)
    except QuizSeedError as exc:
        print(f"   [ERR] Failed: {exc}")
        print(CONNECTION_HINTS)
        return False
    print("   [OK] Connected to OpenAI API\n")
    return True


def print_plan(tiers: Sequence[TierConfig], settings: SeedSettings) -> None:
    print("Configuration:")
    for t in tiers:
        print(f"   - {t.difficulty.capitalize()}: {t.count} questions (Grade {t.grade})")
    print(f"   - Total: {sum(t.count for t in tiers)} questions")
    print(
        f"   - Model: {settings.model}, chunk_size={settings.chunk_size}, "
        f"batch_size={settings.batch_size}\n"
    )


def seed_tiers(
    tiers: Sequence[TierConfig],
    generator: ContentGenerator,
    inserter: BatchInserter,
    *,
    dump_dir: Optional[str] = None,
) -> Dict[str, int]:
    """
    Run generate-then-insert for each tier in order.
    Returns difficulty -> inserted row count. Errors propagate unchanged.
    """
    inserted: Dict[str, int] = {}
    for tier in tiers:
        print("\n" + "=" * 60)
        print(f"Processing {tier.difficulty.upper()} difficulty questions")
        print("=" * 60)

        questions = generator.generate(tier.difficulty, tier.grade, tier.count)
        if dump_dir:
            dump_path = os.path.join(dump_dir, f"{tier.difficulty}.jsonl")
            n = write_jsonl(dump_path, (q.model_dump() for q in questions))
            print(f"[INFO] Wrote {n} generated {tier.difficulty} questions to {dump_path}")

        inserted[tier.difficulty] = inserter.insert(questions, tier.difficulty, tier.quiz_id)
    return inserted


def _load_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Generate multiple-choice math questions per difficulty tier and insert them into Supabase."
    )
    ap.add_argument("--config", type=str, default=None, help="Optional YAML config (settings/tiers/env).")
    ap.add_argument("--tiers", type=str, default=None, help="CSV subset of tiers to run, e.g. 'easy,hard'.")
    ap.add_argument("--dump_dir", type=str, default=None, help="Also write each tier's questions to <dump_dir>/<tier>.jsonl.")
    ap.add_argument("--env_file", type=str, default=None, help="Path to a .env file (default: search upwards for .env).")
    ap.add_argument(
        "--skip_connection_test",
        action="store_true",
        help="Do not send the one-line connectivity check before seeding.",
    )
    ap.add_argument(
        "--progress",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Show a tqdm progress bar over insert batches.",
    )
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = _load_cli_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = load_config(Path(args.config).expanduser().resolve()) if args.config else {}
    load_environment(cfg, dotenv_path=args.env_file)
    require_env("OPENAI_API_KEY")

    settings = settings_from_config(cfg)
    tiers = select_tiers(tiers_from_config(cfg), args.tiers)
    if not tiers:
        raise SystemExit("[FATAL] No tiers selected.")

    print("[INFO] Starting question generation and seeding process...")
    print(f"[INFO] Using OpenAI API ({settings.model}) at {now_utc_iso()}\n")

    chat = ChatClient(settings)
    if not args.skip_connection_test and not check_connection(chat):
        raise SystemExit(1)

    print_plan(tiers, settings)

    db = get_supabase_client(timeout=settings.request_timeout)
    generator = ContentGenerator(chat, settings)
    inserter = BatchInserter(db, settings, show_progress=args.progress)

    try:
        inserted = seed_tiers(tiers, generator, inserter, dump_dir=args.dump_dir)
    except QuizSeedError as exc:
        print(f"\n[ERR] Error during seeding process: {exc}")
        print(FAILURE_HINTS)
        raise SystemExit(1)

    print("\n" + "=" * 60)
    print(f"[OK] All questions have been generated and seeded! {inserted}")
    print("=" * 60)


if __name__ == "__main__":
    main()
