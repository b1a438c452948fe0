import os


class Settings:
    PROJECT_NAME: str = "educare"
    DEBUG: bool = os.getenv("EDUCARE_DEBUG", "false").lower() == "true"
    LOG_DIR: str = os.getenv("EDUCARE_LOG_DIR", "log")
    LOG_FILE: str = "educare.log"
    LOG_TO_FILE: bool = os.getenv("EDUCARE_LOG_TO_FILE", "false").lower() == "true"
    REDIS_URL: str = os.getenv("EDUCARE_REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX: str = os.getenv("EDUCARE_API_PREFIX", "/api")
    CORS_ORIGINS: list = ["*"]
    CONTENT_DIR: str = os.getenv(
        "EDUCARE_CONTENT_DIR", os.path.join(os.path.dirname(__file__), "data", "catalog")
    )
    JWT_SECRET: str = os.getenv("EDUCARE_JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("EDUCARE_ACCESS_TOKEN_EXPIRE_MINUTES", "60")
    )
    QUIZ_SIZE: int = 10
    PASS_RATIO: float = 0.7
    FEEDBACK_SECONDS: float = 2.0
    REVEAL_SECONDS: float = 1.0


settings = Settings()
