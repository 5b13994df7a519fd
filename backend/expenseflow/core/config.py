from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_ENV: str = "development"
    CORS_ORIGINS: str = "http://localhost:3000"
    SEED_DEMO_DATA: bool = True

    # Monitoring
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0

    # Auth
    PASSWORD_BCRYPT_ROUNDS: int = 12

    # Currency
    DEFAULT_BASE_CURRENCY: str = "USD"

    # Approval workflow
    APPROVAL_ENFORCE_SEQUENCE: bool = False
    APPROVAL_STEP_ESTIMATE_HOURS: int = 24

    # Expenses
    EXPENSE_CATEGORIES: list[str] = [
        "Travel",
        "Food & Dining",
        "Accommodation",
        "Transportation",
        "Office Supplies",
        "Entertainment",
        "Software & Subscriptions",
        "Training & Education",
        "Marketing",
        "Other",
    ]

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
