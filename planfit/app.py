from __future__ import annotations

import logging
import os
import re
import uuid

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import get_current_user, require_admin, require_user, user_age
from .auth.models import LoginRequest, RegisterRequest, UpdateUserRequest, UserOut, UserProfile
from .auth.users import (
    DuplicateUserError,
    authenticate,
    create_user,
    delete_user,
    get_user_by_nickname,
    update_user,
)
from .bookmarks.models import BookmarkListResponse, BookmarkOut, BookmarkRequest
from .bookmarks.store import DuplicateBookmarkError, add_bookmark, get_bookmarks, remove_bookmark
from .catalog.data_store import get_catalog, total_pages
from .catalog.models import PlanDetailResponse, PlanListResponse, Question
from .chat.assistant import ChatAssistant
from .chat.conversations import get_conversation_store
from .chat.faq import FaqMatcher, load_faqs
from .chat.models import ChatRequest, ChatResponse, Conversation, Faq
from .chat.prompt import SystemPromptProvider
from .diagnosis.errors import DuplicateSessionError, InvalidQuestionReferenceError, PersistenceError
from .diagnosis.models import (
    SESSION_ID_PATTERN,
    DiagnosisRequest,
    DiagnosisResponse,
    DiagnosisResult,
    DiagnosisResultOut,
    HistoryItem,
    HistoryResponse,
    RecommendedPlan,
)
from .diagnosis.results import get_result_store
from .diagnosis.service import NO_MATCHES_MESSAGE, DiagnosisService

logger = logging.getLogger(__name__)

app = FastAPI(title="Mobile Plan Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "planfit-secret-change-in-production"),
    max_age=60 * 60,
)

_assistant: ChatAssistant | None = None


def get_diagnosis_service() -> DiagnosisService:
    return DiagnosisService(get_catalog(), get_result_store())


def get_assistant() -> ChatAssistant:
    global _assistant
    if _assistant is None:
        _assistant = ChatAssistant(
            FaqMatcher(load_faqs()),
            SystemPromptProvider(get_catalog()),
        )
    return _assistant


def _check_session_id(session_id: str) -> None:
    if not re.fullmatch(SESSION_ID_PATTERN, session_id):
        raise HTTPException(status_code=400, detail="Invalid session id")


def _expand_plans(result: DiagnosisResult) -> list[RecommendedPlan]:
    """Attach plan records to stored scores, dropping plans no longer active."""
    plans = get_catalog().get_plans_by_id(s.plan_id for s in result.recommended_plans)
    return [
        RecommendedPlan(plan=plans[s.plan_id], match_score=s.match_score, reasons=s.reasons)
        for s in result.recommended_plans
        if s.plan_id in plans
    ]


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/register", status_code=201, response_model=UserOut)
def register(body: RegisterRequest) -> dict:
    try:
        return create_user(body.nickname, body.email, body.password, body.birth_year)
    except DuplicateUserError:
        raise HTTPException(status_code=409, detail="Email or nickname is already in use")


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me", response_model=UserOut)
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


@app.delete("/auth/delete-account")
def delete_account(request: Request, user: dict = Depends(require_user)) -> dict:
    delete_user(user["id"])
    request.session.clear()
    logger.info("Deleted account %s", user["id"])
    return {"status": "deleted"}


# ── User profiles ────────────────────────────────────────────────────────


@app.put("/users/update", response_model=UserOut)
def update_profile(
    body: UpdateUserRequest,
    request: Request,
    user: dict = Depends(require_user),
) -> dict:
    try:
        updated = update_user(user["id"], nickname=body.nickname, password=body.password)
    except DuplicateUserError:
        raise HTTPException(status_code=409, detail="Nickname is already in use")
    if updated is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    request.session["user"] = updated
    return updated


@app.get("/users/{nickname}", response_model=UserProfile)
def user_profile(nickname: str) -> dict:
    user = get_user_by_nickname(nickname)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── Plan catalog ─────────────────────────────────────────────────────────


@app.get("/plans", response_model=PlanListResponse)
def list_plans(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: str | None = Query(default=None, max_length=100),
    category: str | None = Query(default=None, pattern=r"^(5G|LTE|other)$"),
    sort_by: str = Query(default="price_value", pattern=r"^(price_value|name|category)$"),
    sort_order: str = Query(default="asc", pattern=r"^(asc|desc)$"),
) -> PlanListResponse:
    plans, total = get_catalog().list_plans(page, limit, search, category, sort_by, sort_order)
    return PlanListResponse(
        plans=plans,
        total_count=total,
        total_pages=total_pages(total, limit),
        current_page=page,
    )


@app.get("/plans/{plan_id}", response_model=PlanDetailResponse)
def plan_detail(plan_id: str) -> PlanDetailResponse:
    catalog = get_catalog()
    plan = catalog.get_plan(plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return PlanDetailResponse(plan=plan, similar_plans=catalog.similar_plans(plan))


# ── Bookmarks ────────────────────────────────────────────────────────────


@app.get("/bookmarks", response_model=BookmarkListResponse)
def list_bookmarks(user: dict = Depends(require_user)) -> BookmarkListResponse:
    bookmarks = get_bookmarks(user["id"])
    plans = get_catalog().get_plans_by_id(b["plan_id"] for b in bookmarks)
    return BookmarkListResponse(bookmarks=[
        BookmarkOut(plan=plans[b["plan_id"]], created_at=b["created_at"])
        for b in bookmarks
        if b["plan_id"] in plans
    ])


@app.post("/bookmarks", status_code=201)
def create_bookmark(body: BookmarkRequest, user: dict = Depends(require_user)) -> dict:
    if get_catalog().get_plan(body.plan_id) is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    try:
        add_bookmark(user["id"], body.plan_id)
    except DuplicateBookmarkError:
        raise HTTPException(status_code=409, detail="Plan is already bookmarked")
    return {"status": "bookmarked", "plan_id": body.plan_id}


@app.delete("/bookmarks/{plan_id}")
def delete_bookmark(plan_id: str, user: dict = Depends(require_user)) -> dict:
    if not remove_bookmark(user["id"], plan_id):
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return {"status": "removed", "plan_id": plan_id}


# ── Diagnosis ────────────────────────────────────────────────────────────


@app.get("/diagnosis/questions", response_model=list[Question])
def diagnosis_questions() -> list[Question]:
    return get_catalog().active_questions()


@app.post("/diagnosis", response_model=DiagnosisResponse)
def submit_diagnosis(
    body: DiagnosisRequest,
    user: dict | None = Depends(get_current_user),
) -> DiagnosisResponse:
    service = get_diagnosis_service()
    try:
        outcome = service.process(
            body,
            user_id=user["id"] if user else None,
            authenticated_age=user_age(user),
        )
    except InvalidQuestionReferenceError as exc:
        raise HTTPException(status_code=400, detail={
            "code": "invalid-question-reference",
            "message": "Answers reference questions that do not exist",
            "invalid_question_ids": exc.invalid_ids,
        })
    except DuplicateSessionError as exc:
        raise HTTPException(status_code=409, detail={
            "code": "duplicate-session",
            "message": "This session has already been processed; fetch its result instead",
            "existing_session_id": exc.session_id,
        })
    except PersistenceError:
        raise HTTPException(status_code=500, detail={
            "code": "diagnosis-processing-failed",
            "message": "The diagnosis could not be processed",
        })

    recommended = [
        RecommendedPlan(plan=o.plan, match_score=o.scored.match_score, reasons=o.scored.reasons)
        for o in outcome.ranked
    ]
    return DiagnosisResponse(
        session_id=outcome.result.session_id,
        analysis=outcome.analysis,
        recommended_plans=recommended,
        total_score=outcome.result.total_score,
        outcome="no-matches" if outcome.no_matches else "recommended",
        message=NO_MATCHES_MESSAGE if outcome.no_matches else None,
        created_at=outcome.result.created_at,
    )


@app.get("/diagnosis/results/{session_id}", response_model=DiagnosisResultOut)
def diagnosis_result(session_id: str) -> DiagnosisResultOut:
    _check_session_id(session_id)
    result = get_result_store().get(session_id)
    if result is None:
        raise HTTPException(status_code=404, detail="No diagnosis result for this session")
    return DiagnosisResultOut(
        session_id=result.session_id,
        user_id=result.user_id,
        answers=result.answers,
        analysis=result.analysis,
        recommended_plans=_expand_plans(result),
        total_score=result.total_score,
        created_at=result.created_at,
    )


@app.get("/diagnosis/history", response_model=HistoryResponse)
def diagnosis_history(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: dict = Depends(require_user),
) -> HistoryResponse:
    store = get_result_store()
    results = store.list_by_user(user["id"], page, limit)
    total = store.count_by_user(user["id"])
    pages = total_pages(total, limit)
    return HistoryResponse(
        history=[
            HistoryItem(
                session_id=r.session_id,
                total_score=r.total_score,
                analysis=r.analysis,
                created_at=r.created_at,
            )
            for r in results
        ],
        total_count=total,
        total_pages=pages,
        current_page=page,
        has_next=page < pages,
        has_prev=page > 1,
    )


# ── FAQ & chat ───────────────────────────────────────────────────────────


@app.get("/faq", response_model=list[Faq])
def faq() -> list[Faq]:
    return get_assistant().faq_matcher.faqs


@app.post("/chat", response_model=ChatResponse)
def chat(body: ChatRequest, request: Request) -> ChatResponse:
    # The cookie only carries the chat session id; transcripts stay server-side.
    session_id = body.session_id or request.session.get("chat_session_id") or uuid.uuid4().hex
    request.session["chat_session_id"] = session_id
    return get_assistant().converse(body.message, session_id)


@app.get("/conversations/{session_id}", response_model=Conversation)
def conversation(session_id: str) -> Conversation:
    _check_session_id(session_id)
    found = get_conversation_store().get(session_id)
    if found is None:
        raise HTTPException(status_code=404, detail="No conversation for this session")
    return found


@app.delete("/conversations/{session_id}")
def delete_conversation(session_id: str) -> dict:
    _check_session_id(session_id)
    if not get_conversation_store().delete(session_id):
        raise HTTPException(status_code=404, detail="No conversation for this session")
    return {"status": "deleted", "session_id": session_id}


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats(user: dict = Depends(require_admin)) -> dict:
    return get_assistant().prompts.cache.stats()
