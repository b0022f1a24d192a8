import logging
import os
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import QuestionStore, get_store
from errors import QAError, ValidationError
from observability import setup_logging
from resolvers import resolve_answer, resolve_question, resolve_vote_direction
from schemas import Answer, AnswerCreate, AnswerUpdate, Question, QuestionCreate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"), os.getenv("LOG_FORMAT", "json"))
    logger.info("Q&A API started")
    yield
    logger.info("Q&A API shutting down")


app = FastAPI(title="Q&A API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        "%s %s %s %sms",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


# Error handlers: every failure leaves as {"error": {"message": ...}}

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


@app.exception_handler(QAError)
async def qa_error_handler(request: Request, exc: QAError):
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.__class__.__name__, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    message = "; ".join(
        f"{'.'.join(str(loc) for loc in e['loc'])}: {e['msg']}" for e in exc.errors()
    )
    error = ValidationError(message or "Invalid request data")
    return error_response(error.status_code, error.message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return error_response(getattr(exc, "status_code", 500), str(exc) or "Internal Server Error")


# API Endpoints

router = APIRouter(prefix="/questions")


@router.get("", response_model=List[Question])
def list_questions(store: QuestionStore = Depends(get_store)):
    return store.list_recent()


@router.post("", response_model=Question, status_code=201)
def create_question(payload: QuestionCreate, store: QuestionStore = Depends(get_store)):
    return store.create(payload)


@router.get("/{qID}", response_model=Question)
def get_question(question: Question = Depends(resolve_question)):
    return question


@router.post("/{qID}/answers", response_model=Question, status_code=201)
def add_answer(
    payload: AnswerCreate,
    question: Question = Depends(resolve_question),
    store: QuestionStore = Depends(get_store),
):
    question.append_answer(payload.text)
    return store.save(question)


@router.put("/{qID}/answers/{aID}", response_model=Question)
def edit_answer(
    payload: Optional[AnswerUpdate] = None,
    question: Question = Depends(resolve_question),
    answer: Answer = Depends(resolve_answer),
    store: QuestionStore = Depends(get_store),
):
    # a bodyless PUT is an empty merge that still refreshes updatedAt
    answer.edit(payload.model_dump(exclude_unset=True) if payload else {})
    return store.save(question)


@router.delete("/{qID}/answers/{aID}", response_model=Question)
def delete_answer(
    question: Question = Depends(resolve_question),
    answer: Answer = Depends(resolve_answer),
    store: QuestionStore = Depends(get_store),
):
    question.remove_answer(answer)
    return store.save(question)


@router.post("/{qID}/answers/{aID}/vote-{dir}", response_model=Question)
def vote_answer(
    direction: str = Depends(resolve_vote_direction),
    question: Question = Depends(resolve_question),
    answer: Answer = Depends(resolve_answer),
    store: QuestionStore = Depends(get_store),
):
    answer.vote(direction)
    return store.save(question)


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
