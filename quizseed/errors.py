"""
Error types shared by the seeding, migration and probe scripts.

Transport code classifies provider failures when it raises; callers branch on
`reason` / `status_code` instead of matching message text.
"""

from __future__ import annotations

from typing import Literal, Optional

GenerationReason = Literal["rate_limit", "http", "transport", "malformed"]


class QuizSeedError(RuntimeError):
    pass


class GenerationError(QuizSeedError):
    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: GenerationReason = "http",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @property
    def is_rate_limited(self) -> bool:
        return self.reason == "rate_limit"

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"[{self.reason} status={self.status_code}] {base}"
        return f"[{self.reason}] {base}"


class PersistenceError(QuizSeedError):
    def __init__(self, message: str, *, code: object = None) -> None:
        super().__init__(message)
        self.code = str(code) if code is not None else None


def is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, GenerationError) and exc.is_rate_limited
