"""
Database Schemas for the Q&A store

A Question is one MongoDB document. Its answers are embedded in it and are
never stored or addressed on their own: any change to an answer becomes
durable only when the owning question is saved.
"""

from datetime import datetime, timezone
from functools import cmp_to_key
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

VOTE_DIRECTIONS = ("up", "down")


def utcnow() -> datetime:
    """Current UTC time at millisecond precision (what a BSON date keeps)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def new_id() -> str:
    return str(ObjectId())


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @field_validator("created_at", "updated_at", check_fields=False)
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # drivers hand back naive UTC datetimes
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Answer(_Document):
    """
    An answer embedded in a question
    Stored inside: "question".answers
    """
    id: str = Field(..., description="ObjectId hex string, unique within the store")
    text: str = Field(..., description="Answer body")
    votes: int = Field(0, description="Net votes, may go negative")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @classmethod
    def new(cls, text: str) -> "Answer":
        now = utcnow()
        return cls(id=new_id(), text=text, votes=0, created_at=now, updated_at=now)

    def edit(self, updates: dict) -> None:
        """Merge client-settable fields and refresh updated_at, even if nothing changed."""
        if "text" in updates and updates["text"] is not None:
            self.text = updates["text"]
        self.updated_at = utcnow()

    def vote(self, direction: str) -> None:
        # updated_at stays as is: votes dominate the ranking, recency only breaks ties
        if direction == "up":
            self.votes += 1
        elif direction == "down":
            self.votes -= 1
        else:
            raise ValueError(f"unknown vote direction: {direction!r}")


def compare_answers(a: Answer, b: Answer) -> int:
    """Negative when a ranks first: more votes first, then most recently updated."""
    if a.votes == b.votes:
        delta = (b.updated_at - a.updated_at).total_seconds()
        return (delta > 0) - (delta < 0)
    return b.votes - a.votes


def rank_answers(answers: List[Answer]) -> List[Answer]:
    """Return answers in display order. Stable: full ties keep their relative order."""
    return sorted(answers, key=cmp_to_key(compare_answers))


class Question(_Document):
    """
    A question owning its answers
    Collection: "question"
    """
    id: str = Field(..., description="ObjectId hex string")
    text: str = Field(..., description="Question body")
    created_at: datetime = Field(..., alias="createdAt")
    answers: List[Answer] = Field(default_factory=list)

    @classmethod
    def new(cls, text: str, answers: Optional[List[str]] = None) -> "Question":
        return cls(
            id=new_id(),
            text=text,
            created_at=utcnow(),
            answers=[Answer.new(t) for t in answers or []],
        )

    def sort_answers(self) -> None:
        """Pre-persist hook: restore display order right before every write."""
        self.answers = rank_answers(self.answers)

    def find_answer(self, answer_id: str) -> Optional[Answer]:
        for answer in self.answers:
            if answer.id == answer_id:
                return answer
        return None

    def append_answer(self, text: str) -> Answer:
        answer = Answer.new(text)
        self.answers.append(answer)
        return answer

    def remove_answer(self, answer: Answer) -> None:
        self.answers = [a for a in self.answers if a.id != answer.id]


# Request bodies

class AnswerCreate(BaseModel):
    text: str = Field(..., description="Answer body")


class AnswerUpdate(BaseModel):
    """Partial edit. Only text is client-settable; votes and timestamps are ignored."""
    text: Optional[str] = None


class QuestionCreate(BaseModel):
    text: str = Field(..., description="Question body, empty string allowed")
    answers: List[AnswerCreate] = Field(default_factory=list)
