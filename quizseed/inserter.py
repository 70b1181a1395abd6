"""
Batched inserts of generated questions into the `questions` table.

Rows for a tier carry order_num 1..N across all batches. Each batch is one
bulk insert; the first failing batch raises and later batches are skipped.
Rows from earlier batches stay in the table, and re-running a tier inserts
duplicates.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Sequence

from tqdm import tqdm

from quizseed.errors import PersistenceError
from quizseed.models import InsertRow, QuestionRecord
from quizseed.settings import SeedSettings


def build_insert_rows(
    batch: Sequence[QuestionRecord],
    *,
    start: int,
    difficulty: str,
    quiz_id: str,
) -> List[InsertRow]:
    """Project one batch to rows; `start` is the batch's offset within the tier."""
    return [
        InsertRow.from_record(q, quiz_id=quiz_id, difficulty=difficulty, order_num=start + idx + 1)
        for idx, q in enumerate(batch)
    ]


class BatchInserter:
    def __init__(
        self,
        db_client,
        settings: SeedSettings,
        *,
        sleep: Callable[[float], None] = time.sleep,
        show_progress: bool = False,
    ):
        self.db = db_client
        self.settings = settings
        self._sleep = sleep
        self.show_progress = show_progress

    def _insert_batch(self, payload: List[Dict[str, Any]], batch_number: int) -> None:
        try:
            self.db.table(self.settings.table).insert(payload).execute()
        except Exception as exc:  # noqa: BLE001
            raise PersistenceError(
                f"Error inserting batch {batch_number} into '{self.settings.table}': {exc}",
                code=getattr(exc, "code", None),
            ) from exc

    def insert(self, questions: Sequence[QuestionRecord], difficulty: str, quiz_id: str) -> int:
        """
        Insert all questions for one tier. Returns the number of rows written.
        Raises PersistenceError on the first failed batch.
        """
        size = self.settings.batch_size
        total = len(questions)
        total_batches = (total + size - 1) // size
        inserted_count = 0

        print(f"\n[INFO] Inserting {total} {difficulty} questions into database...")

        starts = range(0, total, size)
        for start in tqdm(starts, total=total_batches, desc=f"{difficulty} batches", disable=not self.show_progress):
            batch = questions[start:start + size]
            batch_number = start // size + 1
            print(f"  Batch {batch_number}/{total_batches}: Inserting {len(batch)} questions...")

            rows = build_insert_rows(batch, start=start, difficulty=difficulty, quiz_id=quiz_id)
            try:
                self._insert_batch([r.to_payload() for r in rows], batch_number)
            except PersistenceError as exc:
                print(f"  [ERR] {exc}")
                raise

            inserted_count += len(batch)
            print(f"  [OK] Batch {batch_number} inserted successfully (Total: {inserted_count}/{total})")

            if start + size < total:
                delay = self.settings.inter_batch_delay
                print(f"  Waiting {delay:g}s before next batch...")
                self._sleep(delay)

        print(f"[OK] Successfully inserted all {inserted_count} {difficulty} questions")
        return inserted_count
