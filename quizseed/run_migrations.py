#!/usr/bin/env python3
"""
Apply the schema changes the question seeder depends on.

  1. add_difficulty_to_questions: add `questions.difficulty`, backfill it
     from the parent quiz, then make it NOT NULL. Runs through the
     `exec_sql` RPC; when that RPC is unavailable the SQL has to be pasted
     into the Supabase dashboard SQL editor by hand.
  2. update_total_questions: set `quizzes.total_questions` for the three
     seeded quizzes.

Exit code is 1 if any migration failed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

# Ensure package imports succeed whether run from repo root or quizseed/ dir
SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from quizseed.db import get_supabase_client  # noqa: E402
from quizseed.errors import PersistenceError  # noqa: E402
from quizseed.settings import QUIZ_IDS, load_environment  # noqa: E402

ADD_DIFFICULTY_FILE = "supabase/migrations/20251105000000_add_difficulty_to_questions.sql"

ADD_DIFFICULTY_SQL = """
-- Add difficulty column to questions table
ALTER TABLE public.questions
ADD COLUMN IF NOT EXISTS difficulty TEXT CHECK (difficulty IN ('easy', 'medium', 'hard'));

-- Update existing questions with difficulty based on their quiz
UPDATE public.questions
SET difficulty = (
  SELECT q.difficulty
  FROM public.quizzes q
  WHERE q.id = questions.quiz_id
)
WHERE difficulty IS NULL;

-- Make difficulty NOT NULL after populating existing data
ALTER TABLE public.questions
ALTER COLUMN difficulty SET NOT NULL;
"""

DEFAULT_TOTAL_QUESTIONS = 2


@dataclass
class Migration:
    name: str
    description: str
    apply: Callable[[object], None]
    manual_hint: Optional[str] = None


@dataclass
class MigrationResult:
    name: str
    status: str
    error: Optional[str] = None


def exec_sql(db, sql: str) -> None:
    try:
        db.rpc("exec_sql", {"sql": sql}).execute()
    except Exception as exc:  # noqa: BLE001
        raise PersistenceError(f"exec_sql failed: {exc}", code=getattr(exc, "code", None)) from exc


def update_total_questions(db, quiz_ids: Sequence[str], total: int) -> None:
    try:
        db.table("quizzes").update({"total_questions": total}).in_("id", list(quiz_ids)).execute()
    except Exception as exc:  # noqa: BLE001
        raise PersistenceError(f"Updating quizzes.total_questions failed: {exc}", code=getattr(exc, "code", None)) from exc


def default_migrations(total_questions: int = DEFAULT_TOTAL_QUESTIONS) -> List[Migration]:
    return [
        Migration(
            name="add_difficulty_to_questions",
            description="Adding difficulty column to questions",
            apply=lambda db: exec_sql(db, ADD_DIFFICULTY_SQL),
            manual_hint=(
                "You may need to run this migration manually via Supabase Dashboard\n"
                "   SQL Editor -> Copy the migration SQL from:\n"
                f"   {ADD_DIFFICULTY_FILE}"
            ),
        ),
        Migration(
            name="update_total_questions",
            description=f"Updating total_questions to {total_questions}",
            apply=lambda db: update_total_questions(db, list(QUIZ_IDS.values()), total_questions),
        ),
    ]


def run_migrations(db, migrations: Sequence[Migration], *, dry_run: bool = False) -> List[MigrationResult]:
    """
    Apply migrations in order. A failed migration is reported and the
    remaining ones still run.
    """
    results: List[MigrationResult] = []
    for idx, mig in enumerate(migrations, start=1):
        print(f"[INFO] Migration {idx}: {mig.description} ({mig.name})...")
        if dry_run:
            results.append(MigrationResult(name=mig.name, status="skipped"))
            print("   [INFO] Dry run; not applied.")
            continue
        try:
            mig.apply(db)
        except PersistenceError as exc:
            print(f"   [ERR] Migration {idx} failed: {exc}")
            if mig.manual_hint:
                print(f"   [WARN] {mig.manual_hint}")
            results.append(MigrationResult(name=mig.name, status="error", error=str(exc)))
            continue
        print(f"   [OK] Migration {idx} completed")
        results.append(MigrationResult(name=mig.name, status="ok"))
    return results


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Run quiz database migrations against Supabase.")
    ap.add_argument("--env_file", type=str, default=None, help="Path to a .env file.")
    ap.add_argument("--total_questions", type=int, default=DEFAULT_TOTAL_QUESTIONS)
    ap.add_argument("--dry_run", action="store_true", help="List migrations without applying them.")
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    load_environment(dotenv_path=args.env_file)
    print("[INFO] Running database migrations...\n")

    db = None if args.dry_run else get_supabase_client()
    results = run_migrations(db, default_migrations(args.total_questions), dry_run=args.dry_run)

    failed = [r for r in results if r.status == "error"]
    if failed:
        print(f"\n[ERR] {len(failed)} migration(s) failed: {', '.join(r.name for r in failed)}")
        print("Please run the failed migrations manually via Supabase Dashboard SQL Editor")
        raise SystemExit(1)
    print("\n[OK] Migrations completed! You can now run: python -m quizseed.seed_questions")


if __name__ == "__main__":
    main()
