"""API routes: JSON for catalog, profiles, habits, quizzes, dashboard and leaderboard."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.schemas.catalog import BadgeSchema, HabitSchema, QuizSchema
from app.schemas.profile import (
    PointsTransactionSchema,
    ProgressProfileSchema,
    QuizResultSchema,
)
from app.schemas.stats import (
    ActionOutcomeSchema,
    DashboardSchema,
    HabitToggleSchema,
    LeaderboardEntrySchema,
    PointsAddSchema,
    ProfileCreateSchema,
    QuizOutcomeSchema,
    QuizSubmitSchema,
    TodayHabitSchema,
)
from app.services.progression import ProgressionService
from app.services.rotation import tip_of_the_day

router = APIRouter(prefix="/api", tags=["api"])


def get_service(request: Request) -> ProgressionService:
    return request.app.state.progression


Service = Annotated[ProgressionService, Depends(get_service)]


# ---------- catalog ----------

@router.get("/catalog/quizzes", response_model=list[QuizSchema])
async def list_quizzes(service: Service, category: str | None = None):
    if category:
        return service.catalog.quizzes_by_category(category)
    return list(service.catalog.quizzes)


@router.get("/catalog/quizzes/{quiz_id}", response_model=QuizSchema)
async def get_quiz(quiz_id: str, service: Service):
    quiz = service.catalog.get_quiz(quiz_id)
    if quiz is None:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return quiz


@router.get("/catalog/badges", response_model=list[BadgeSchema])
async def list_badges(service: Service, category: str | None = None):
    if category:
        return service.catalog.badges_by_category(category)
    return list(service.catalog.badges)


@router.get("/catalog/habits", response_model=list[HabitSchema])
async def list_habits(service: Service, frequency: str | None = None):
    if frequency:
        return service.catalog.habits_by_frequency(frequency)
    return list(service.catalog.habits)


@router.get("/tips/today")
async def get_tip_of_the_day(service: Service, day: date | None = None):
    return {"tip": tip_of_the_day(service.catalog.tips, day or service.clock().date())}


# ---------- profiles ----------

@router.post("/profiles/{user_id}", response_model=ProgressProfileSchema)
async def initialize_profile(user_id: str, body: ProfileCreateSchema, service: Service):
    """Create the profile on first sign-in; return the existing one afterwards."""
    return await service.initialize_profile(user_id, email=body.email, display_name=body.display_name)


@router.get("/profiles/{user_id}", response_model=ProgressProfileSchema)
async def get_profile(user_id: str, service: Service):
    return await service.get_profile(user_id)


@router.get("/profiles/{user_id}/dashboard", response_model=DashboardSchema)
async def get_dashboard(user_id: str, service: Service):
    return await service.dashboard(user_id)


@router.post("/profiles/{user_id}/points", response_model=ActionOutcomeSchema)
async def add_points(user_id: str, body: PointsAddSchema, service: Service):
    return await service.add_points(user_id, body.amount, body.reason)


@router.get("/profiles/{user_id}/points/history", response_model=list[PointsTransactionSchema])
async def get_points_history(
    user_id: str, service: Service, limit: Annotated[int, Query(ge=1, le=200)] = 20
):
    return await service.points_history(user_id, limit)


@router.post("/profiles/{user_id}/badges/evaluate", response_model=ActionOutcomeSchema)
async def evaluate_badges(user_id: str, service: Service):
    return await service.evaluate_badges(user_id)


# ---------- habits ----------

@router.get("/profiles/{user_id}/habits/today", response_model=list[TodayHabitSchema])
async def get_todays_habits(user_id: str, service: Service, day: date | None = None):
    return await service.todays_habits(user_id, day)


@router.put("/profiles/{user_id}/habits/{habit_id}", response_model=ActionOutcomeSchema)
async def set_habit(user_id: str, habit_id: str, body: HabitToggleSchema, service: Service):
    return await service.toggle_habit(user_id, habit_id, body.enabled)


# ---------- quizzes ----------

@router.post("/profiles/{user_id}/quizzes/{quiz_id}/results", response_model=QuizOutcomeSchema)
async def submit_quiz(user_id: str, quiz_id: str, body: QuizSubmitSchema, service: Service):
    """Submit a finished attempt (one answer index per question); return updated profile."""
    return await service.complete_quiz(user_id, quiz_id, body.answers)


@router.get("/profiles/{user_id}/quizzes/history", response_model=list[QuizResultSchema])
async def get_quiz_history(
    user_id: str, service: Service, limit: Annotated[int | None, Query(ge=1, le=200)] = None
):
    return await service.quiz_history(user_id, limit)


# ---------- leaderboard ----------

@router.get("/leaderboard", response_model=list[LeaderboardEntrySchema])
async def get_leaderboard(service: Service, limit: Annotated[int | None, Query(ge=1, le=100)] = None):
    return await service.leaderboard(limit)
