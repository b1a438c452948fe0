import logging
import os
import sys
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

import uvicorn
from fastapi import (
    APIRouter,
    Depends,
    FastAPI,
    File,
    Form,
    Header,
    Request,
    UploadFile,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .content import ContentCatalog
from .errors import EducareError, NotFoundError
from .identity import IdentityProvider
from .kv_store import KeyValueStore, get_store
from .models import (
    ActivityScoreRequest,
    ChangePasswordRequest,
    CompleteProfileRequest,
    LoginRequest,
    SignupRequest,
    SubmitQuizRequest,
)
from .profiles import ProfileService
from .quiz import (
    ALL_CATEGORIES,
    QuestionBank,
    QuizGenerator,
    RandomQuizGenerator,
    load_question_set,
)

# --- Logging Setup ---
logger = logging.getLogger("educare")
logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

if settings.LOG_TO_FILE:
    if not os.path.exists(settings.LOG_DIR):
        os.makedirs(settings.LOG_DIR)
    log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
    log_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
else:
    log_handler = logging.StreamHandler(sys.stderr)
log_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
logger.addHandler(log_handler)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    content_catalog.load_all()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Length"],
    max_age=600,
)

content_catalog = ContentCatalog(settings.CONTENT_DIR)


# --- Error Handling ---
@app.exception_handler(EducareError)
async def educare_error_handler(request: Request, exc: EducareError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are not distinguished from other server failures.
    errors = exc.errors()
    detail = errors[0]["msg"] if errors else "invalid request"
    if errors and errors[0].get("loc"):
        detail = f"{errors[0]['loc'][-1]}: {detail}"
    logger.error(f"{request.method} {request.url.path} -> 500: {detail}")
    return JSONResponse({"error": f"Server error: {detail}"}, status_code=500)


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed")
    return JSONResponse({"error": f"Server error: {exc}"}, status_code=500)


# --- Dependencies ---
def get_identity(store: KeyValueStore = Depends(get_store)) -> IdentityProvider:
    return IdentityProvider(
        store,
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def get_profile_service(
    store: KeyValueStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity),
) -> ProfileService:
    return ProfileService(store, identity)


def get_quiz_generator(store: KeyValueStore = Depends(get_store)) -> QuizGenerator:
    return RandomQuizGenerator(QuestionBank(store))


def get_bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ")
    return parts[1] if len(parts) > 1 else None


# --- Routes ---
router = APIRouter(prefix=settings.API_PREFIX)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/signup")
def signup(
    body: SignupRequest, service: ProfileService = Depends(get_profile_service)
):
    profile = service.signup(body)
    return {"success": True, "userId": profile.id, "user": profile.to_wire()}


@router.post("/login")
def login(body: LoginRequest, service: ProfileService = Depends(get_profile_service)):
    token, profile = service.login(body)
    return {"success": True, "accessToken": token, "user": profile.to_wire()}


@router.post("/complete-profile")
def complete_profile(
    body: CompleteProfileRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: ProfileService = Depends(get_profile_service),
):
    profile = service.complete_profile(token, body)
    return {"success": True, "user": profile.to_wire()}


@router.get("/profile/{user_id}")
def get_profile(user_id: str, service: ProfileService = Depends(get_profile_service)):
    return {"success": True, "user": service.get_profile(user_id).to_wire()}


@router.post("/submit-quiz")
def submit_quiz(
    body: SubmitQuizRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: ProfileService = Depends(get_profile_service),
):
    profile = service.submit_quiz(token, body)
    return {"success": True, "user": profile.to_wire()}


@router.get("/quiz-questions")
def get_quiz_questions(
    category: str = ALL_CATEGORIES,
    count: int = settings.QUIZ_SIZE,
    generator: QuizGenerator = Depends(get_quiz_generator),
):
    questions = generator.generate(category or ALL_CATEGORIES, count)
    return {"success": True, "questions": [q.to_wire() for q in questions]}


@router.post("/init-quiz-data")
def init_quiz_data(store: KeyValueStore = Depends(get_store)):
    seeded = QuestionBank(store).seed(load_question_set())
    return {"success": True, "message": f"{seeded} quiz questions initialized"}


@router.post("/update-profile")
def update_profile(
    name: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    token: Optional[str] = Depends(get_bearer_token),
    service: ProfileService = Depends(get_profile_service),
):
    photo_bytes = photo.file.read() if photo is not None else None
    profile = service.update_profile(
        token,
        name=name,
        photo=photo_bytes,
        photo_type=photo.content_type if photo is not None else None,
    )
    return {"success": True, "user": profile.to_wire()}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: ProfileService = Depends(get_profile_service),
):
    service.change_password(token, body)
    return {"success": True, "message": "Password updated successfully"}


@router.delete("/delete-account")
def delete_account(
    token: Optional[str] = Depends(get_bearer_token),
    service: ProfileService = Depends(get_profile_service),
):
    service.delete_account(token)
    return {"success": True, "message": "Account deleted successfully"}


@router.post("/save-activity-score")
def save_activity_score(
    body: ActivityScoreRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: ProfileService = Depends(get_profile_service),
):
    profile = service.save_activity_score(token, body)
    return {"success": True, "user": profile.to_wire()}


@router.get("/content")
def get_content_topics():
    return {"success": True, "topics": content_catalog.get_topics()}


@router.get("/content/{topic}")
def get_content_items(topic: str):
    items = content_catalog.get_items(topic)
    if not items:
        raise NotFoundError(f"Unknown content topic: {topic}")
    return {"success": True, "topic": topic, "items": items}


app.include_router(router)


if __name__ == "__main__":
    uvicorn.run("educare.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
