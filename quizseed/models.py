"""
Record shapes for generated questions and the rows written to the database.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class QuestionRecord(BaseModel):
    """
    One generated multiple-choice question, keyed as the model returns it.

    Content is taken as-is: a missing key becomes None and any other non-string
    value (number, boolean, list, object) is kept as its JSON text. correctAnswer
    is expected to be one of A-D, but that is a prompt contract, not something
    checked here.
    """

    model_config = ConfigDict(extra="ignore")

    question: Optional[str] = None
    optionA: Optional[str] = None
    optionB: Optional[str] = None
    optionC: Optional[str] = None
    optionD: Optional[str] = None
    correctAnswer: Optional[str] = None
    explanation: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def content_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)


class InsertRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    quiz_id: str
    question_text: Optional[str]
    option_a: Optional[str]
    option_b: Optional[str]
    option_c: Optional[str]
    option_d: Optional[str]
    correct_answer: Optional[str]
    explanation: Optional[str]
    difficulty: Literal["easy", "medium", "hard"]
    order_num: int

    @classmethod
    def from_record(
        cls,
        record: QuestionRecord,
        *,
        quiz_id: str,
        difficulty: str,
        order_num: int,
    ) -> "InsertRow":
        return cls(
            quiz_id=quiz_id,
            question_text=record.question,
            option_a=record.optionA,
            option_b=record.optionB,
            option_c=record.optionC,
            option_d=record.optionD,
            correct_answer=record.correctAnswer,
            explanation=record.explanation,
            difficulty=difficulty,
            order_num=order_num,
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
