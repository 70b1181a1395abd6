"""
Chunked question generation for one difficulty tier.

The target count is split into chunks of at most `chunk_size`. Each chunk is
one chat request whose reply must be a JSON array of question objects
(optionally wrapped in ``` fences). Chunks run strictly in order with a fixed
pause between them. A rate-limited chunk is retried after a cooldown, up to
`retry_limit` times; any other failure aborts the tier.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable, List, Protocol

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from quizseed.errors import GenerationError, is_rate_limited
from quizseed.models import QuestionRecord
from quizseed.prompts import build_question_prompt
from quizseed.settings import SeedSettings
from quizseed.utils import chunk_sizes, strip_code_fences

logger = logging.getLogger("quizseed.generator")


class TextClient(Protocol):
    def complete(self, prompt: str) -> str: ...


def parse_questions(raw_text: str) -> List[QuestionRecord]:
    """
    Parse a model reply into QuestionRecords.

    Only the structure is checked: the reply must be a JSON array of objects.
    Field contents are taken as returned.
    """
    text = strip_code_fences(raw_text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GenerationError(
            f"Could not parse JSON from generator: {exc}. Raw: {raw_text[:300]!r}",
            reason="malformed",
        ) from exc
    if not isinstance(data, list):
        raise GenerationError(
            f"Expected a JSON array of questions, got {type(data).__name__}.",
            reason="malformed",
        )

    records: List[QuestionRecord] = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise GenerationError(
                f"Item {idx} is {type(item).__name__}, expected an object.",
                reason="malformed",
            )
        records.append(QuestionRecord.model_validate(item))
    return records


class ContentGenerator:
    def __init__(
        self,
        client: TextClient,
        settings: SeedSettings,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.settings = settings
        self._sleep = sleep

    def _request_chunk(self, prompt: str) -> List[QuestionRecord]:
        return parse_questions(self.client.complete(prompt))

    def _request_with_retry(self, prompt: str, chunk_num: int) -> List[QuestionRecord]:
        cooldown = self.settings.rate_limit_cooldown

        log_sleep = before_sleep_log(logger, logging.WARNING)

        def _announce(retry_state) -> None:
            exc = retry_state.outcome.exception()
            log_sleep(retry_state)
            print(f"   [ERR] Chunk {chunk_num} failed: {exc}")
            print(f"   [WARN] Rate limited! Waiting {cooldown:g}s before retry...")

        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.settings.retry_limit + 1),
            wait=wait_fixed(cooldown),
            retry=retry_if_exception(is_rate_limited),
            before_sleep=_announce,
            sleep=self._sleep,
        )
        return retrying(self._request_chunk, prompt)

    def generate(self, difficulty: str, grade: int, count: int) -> List[QuestionRecord]:
        """
        Generate `count` questions (best effort) for one tier, chunk by chunk.
        Raises GenerationError on the first unrecovered failure.
        """
        sizes = chunk_sizes(count, self.settings.chunk_size)
        all_questions: List[QuestionRecord] = []

        print(f"\n[INFO] Generating {count} {difficulty} questions for grade {grade} in {len(sizes)} chunks...")

        for i, chunk_count in enumerate(sizes):
            chunk_num = i + 1
            print(f"   Chunk {chunk_num}/{len(sizes)}: Generating {chunk_count} questions...")

            prompt = build_question_prompt(chunk_count, grade)
            try:
                questions = self._request_with_retry(prompt, chunk_num)
            except GenerationError as exc:
                print(f"   [ERR] Chunk {chunk_num} failed: {exc}")
                raise

            if len(questions) != chunk_count:
                print(f"   [WARN] Chunk {chunk_num}: requested {chunk_count}, got {len(questions)}. Continuing.")
            print(f"   [OK] Chunk {chunk_num}: Generated {len(questions)} questions")
            all_questions.extend(questions)

            if i < len(sizes) - 1:
                delay = self.settings.inter_chunk_delay
                print(f"   Waiting {delay:g}s before next chunk...")
                self._sleep(delay)

        print(f"[OK] Total generated: {len(all_questions)} {difficulty} questions")
        return all_questions
