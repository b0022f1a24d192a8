"""
Path parameter resolvers

FastAPI dependencies that turn path segments into live entities before a
route handler runs. FastAPI caches each dependency per request, so a question
is loaded once however many dependencies need it, and a failed lookup stops
the request with NotFoundError before any handler body executes.
"""

from fastapi import Depends, Path

from database import QuestionStore, get_store
from errors import NotFoundError
from schemas import VOTE_DIRECTIONS, Answer, Question


def resolve_question(
    question_id: str = Path(..., alias="qID"),
    store: QuestionStore = Depends(get_store),
) -> Question:
    return store.load(question_id)


def resolve_answer(
    answer_id: str = Path(..., alias="aID"),
    question: Question = Depends(resolve_question),
) -> Answer:
    """Answers are only addressable inside their already-loaded question."""
    answer = question.find_answer(answer_id)
    if answer is None:
        raise NotFoundError()
    return answer


def resolve_vote_direction(
    direction: str = Path(..., alias="dir"),
    answer: Answer = Depends(resolve_answer),
) -> str:
    # an unknown direction is an unknown resource, not a bad request
    if direction not in VOTE_DIRECTIONS:
        raise NotFoundError()
    return direction
