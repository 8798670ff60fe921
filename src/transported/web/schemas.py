"""Pydantic schemas for the Web API.

Serialization models for auth, modules, quizzes, progress, attempts,
comments and analytics.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


# =============================================================================
# ACCOUNT FUNCTION SCHEMAS
# =============================================================================


class CreateUserRequest(BaseModel):
    """Body of the create-user function."""

    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)
    name: str | None = Field(default=None, max_length=200)


class ConfirmUserRequest(BaseModel):
    """Body of the confirm-user function."""

    email: str = Field(..., min_length=1, max_length=320)


class UserResponse(BaseModel):
    id: str
    email: str
    email_confirmed_at: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


class FunctionResponse(BaseModel):
    """Successful response of an account function."""

    success: bool = True
    message: str
    user: UserResponse


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class SignUpRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)
    name: str | None = Field(default=None, max_length=200)


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    name: str
    email: str | None = None
    role: str
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class SessionResponse(BaseModel):
    """An issued access token."""

    access_token: str
    token_type: str = "bearer"
    expires_at: str
    user: UserResponse
    profile: ProfileResponse


# =============================================================================
# MODULE SCHEMAS
# =============================================================================


class QuestionInput(BaseModel):
    """A question as entered in the module editor."""

    question: str = ""
    type: Literal["mcq", "numeric", "short"] = "mcq"
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    explanation: str | None = None


class ModuleInput(BaseModel):
    """Request body for creating or updating a module."""

    title: str = Field(..., max_length=300)
    content: str
    category: str | None = None
    image_url: str | None = None
    pdf_url: str | None = None
    video_link: str | None = None
    questions: list[QuestionInput] = Field(default_factory=list)


class ModuleResponse(BaseModel):
    id: str
    title: str
    content: str
    category: str
    image_url: str | None = None
    pdf_url: str | None = None
    video_link: str | None = None
    resources: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class ModuleListItem(ModuleResponse):
    """A module in the list view, with the caller's completion flag."""

    completed: bool = False


class ModuleListResponse(BaseModel):
    modules: list[ModuleListItem]
    count: int


class ModuleDetailResponse(ModuleResponse):
    question_count: int = 0
    completed: bool = False


class QuestionResponse(BaseModel):
    """Full question including the correct answer (admin view)."""

    id: str
    module_id: str
    position: int
    question: str
    type: str
    options: list[str]
    correct_answer: str
    explanation: str | None = None

    model_config = {"from_attributes": True}


class ModuleSaveResponse(BaseModel):
    module: ModuleResponse
    questions: list[QuestionResponse]
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# QUIZ SCHEMAS
# =============================================================================


class QuizQuestion(BaseModel):
    """A question as shown to a student: no answer or explanation."""

    id: str
    position: int
    question: str
    type: str
    options: list[str]

    model_config = {"from_attributes": True}


class QuizResponse(BaseModel):
    module_id: str
    module_title: str
    questions: list[QuizQuestion]


class AttemptSubmission(BaseModel):
    """Answers keyed by question ID."""

    answers: dict[str, Any] = Field(default_factory=dict)


class QuestionResultResponse(BaseModel):
    question_id: str
    user_answer: str
    is_correct: bool
    correct_answer: str
    explanation: str | None = None

    model_config = {"from_attributes": True}


class AttemptResultResponse(BaseModel):
    attempt_id: str
    module_id: str
    score: float
    correct_count: int
    total_questions: int
    band: str
    feedback: str
    results: list[QuestionResultResponse]
    attempt_date: str


class AttemptResponse(BaseModel):
    id: str
    user_id: str
    module_id: str
    score: float
    answers: list[dict[str, Any]]
    attempt_date: str

    model_config = {"from_attributes": True}


class AttemptListResponse(BaseModel):
    attempts: list[AttemptResponse]
    count: int


# =============================================================================
# PROGRESS SCHEMAS
# =============================================================================


class ProgressUpdate(BaseModel):
    completed: bool = True


class ProgressResponse(BaseModel):
    id: str
    user_id: str
    module_id: str
    completed: bool
    updated_at: str

    model_config = {"from_attributes": True}


class ProgressListResponse(BaseModel):
    progress: list[ProgressResponse]
    count: int


# =============================================================================
# COMMENT SCHEMAS
# =============================================================================


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)


class CommentResponse(BaseModel):
    id: str
    user_id: str
    module_id: str
    content: str
    created_at: str
    user_name: str
    user_email: str | None = None
    module_title: str | None = None


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    count: int


# =============================================================================
# DASHBOARD & ANALYTICS SCHEMAS
# =============================================================================


class RecentAttemptResponse(BaseModel):
    attempt_id: str
    module_id: str
    module_title: str
    score: float
    band: str
    attempt_date: str


class DashboardResponse(BaseModel):
    completed_modules: int
    total_modules: int
    progress_percentage: float
    average_score: float
    recent_attempts: list[RecentAttemptResponse]
    next_module_id: str | None = None
    next_module_title: str | None = None


class ChartPointResponse(BaseModel):
    label: str
    score: float
    attempt_date: str


class QuizResultsResponse(BaseModel):
    total_attempts: int
    average_score: float
    best_score: float
    chart: list[ChartPointResponse]


class OverviewResponse(BaseModel):
    total_students: int
    active_students: int
    average_progress: float
    total_attempts: int


class StudentProgressResponse(BaseModel):
    student_id: str
    student_name: str
    student_email: str | None = None
    total_modules: int
    completed_modules: int
    progress_percentage: float
    average_score: float
    total_attempts: int
    last_activity: str


class ModuleStatsResponse(BaseModel):
    module_id: str
    module_title: str
    total_completions: int
    total_attempts: int
    average_score: float
    band: str


class AttemptFeedResponse(BaseModel):
    attempt_id: str
    user_id: str
    student_name: str
    student_email: str | None = None
    module_id: str
    module_title: str
    score: float
    band: str
    attempt_date: str


class AdminAnalyticsResponse(BaseModel):
    overview: OverviewResponse
    students: list[StudentProgressResponse]
    modules: list[ModuleStatsResponse]
    attempts: list[AttemptFeedResponse]
    generated_at: str
