"""
Database Helper Functions

MongoDB access for questions with graceful fallback.
- Primary: real MongoDB via DATABASE_URL + DATABASE_NAME
- Fallback: Mongita (embedded MongoDB-compatible) so the app fully works without external DB

QuestionStore is the only code that writes a question, and every write goes
through the answer-ordering hook first.
"""

import logging
import os
from functools import lru_cache
from typing import List

from bson import ObjectId
from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from errors import NotFoundError, PersistenceError
from schemas import Answer, Question, QuestionCreate

# Load environment variables from .env file (noop if not present)
load_dotenv()

logger = logging.getLogger(__name__)

QUESTION_COLLECTION = "question"


def to_document(question: Question) -> dict:
    """Question model -> Mongo document (id becomes _id)"""
    return {
        "_id": question.id,
        "text": question.text,
        "created_at": question.created_at,
        "answers": [
            {
                "_id": a.id,
                "text": a.text,
                "votes": a.votes,
                "created_at": a.created_at,
                "updated_at": a.updated_at,
            }
            for a in question.answers
        ],
    }


def from_document(doc: dict) -> Question:
    """Mongo document -> Question model"""
    return Question(
        id=str(doc["_id"]),
        text=doc.get("text", ""),
        created_at=doc["created_at"],
        answers=[
            Answer(
                id=str(a["_id"]),
                text=a.get("text", ""),
                votes=a.get("votes", 0),
                created_at=a["created_at"],
                updated_at=a["updated_at"],
            )
            for a in doc.get("answers", [])
        ],
    )


class QuestionStore:
    """Load-by-id, create and save for question documents in one collection."""

    def __init__(self, collection):
        self.collection = collection

    def load(self, question_id: str) -> Question:
        if not ObjectId.is_valid(question_id):
            raise NotFoundError()
        try:
            doc = self.collection.find_one({"_id": question_id})
        except PyMongoError as e:
            raise PersistenceError("load", e)
        if not doc:
            raise NotFoundError()
        return from_document(doc)

    def list_recent(self) -> List[Question]:
        """All questions, newest first"""
        try:
            cursor = self.collection.find({}).sort([("created_at", -1)])
            return [from_document(d) for d in cursor]
        except PyMongoError as e:
            raise PersistenceError("list", e)

    def create(self, payload: QuestionCreate) -> Question:
        question = Question.new(payload.text, [a.text for a in payload.answers])
        question.sort_answers()
        try:
            self.collection.insert_one(to_document(question))
        except PyMongoError as e:
            raise PersistenceError("create", e)
        logger.info("Created question %s", question.id)
        return question

    def save(self, question: Question) -> Question:
        """Replace the whole document; answers are re-ranked first."""
        question.sort_answers()
        try:
            result = self.collection.replace_one({"_id": question.id}, to_document(question))
        except PyMongoError as e:
            raise PersistenceError("save", e)
        if result.matched_count == 0:
            raise NotFoundError()
        logger.debug("Saved question %s with %d answers", question.id, len(question.answers))
        return question


def connect():
    """Return a database handle: real MongoDB if configured and reachable, else Mongita on disk."""
    database_url = os.getenv("DATABASE_URL")
    database_name = os.getenv("DATABASE_NAME")

    if database_url and database_name:
        try:
            client = MongoClient(database_url, serverSelectionTimeoutMS=2000)
            client.admin.command("ping")  # ensure reachable now
            logger.info("Connected to MongoDB database %s", database_name)
            return client[database_name]
        except PyMongoError as e:
            logger.warning("MongoDB unreachable, falling back to Mongita: %s", e)

    from mongita import MongitaClientDisk

    client = MongitaClientDisk()
    logger.info("Using embedded Mongita database")
    return client[database_name or "qa"]


@lru_cache
def get_store() -> QuestionStore:
    """Process-wide store, connected on first use (FastAPI dependency)"""
    return QuestionStore(connect()[QUESTION_COLLECTION])
