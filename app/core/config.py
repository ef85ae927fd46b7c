"""Application configuration from environment."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Base path for bundled data (parent of app/)
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "Cyber Quest"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./cyberquest.db"

    # Content catalog (quizzes.json, badges.json, habits.json, tips.json)
    catalog_dir: Path = BASE_DIR / "app" / "data"

    # Points & levels
    points_per_level: int = 500
    habit_points: int = 10
    quiz_points_per_correct: int = 5
    perfect_quiz_bonus: int = 25
    default_badge_points: int = 100
    perfect_badge_id: str = "perfect_score"

    # Today's habits rotation
    daily_habit_count: int = 3
    monthly_habit_count: int = 2
    yearly_habit_count: int = 1

    # Store calls (lock wait + each query) give up after this many seconds
    store_timeout_seconds: float = 5.0

    history_default_limit: int = 10
    leaderboard_default_limit: int = 10

    model_config = {"env_file": ".env", "env_prefix": "CYBERQUEST_", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
