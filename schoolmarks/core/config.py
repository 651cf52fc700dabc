from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    APP_NAME: str = "SchoolMarks"
    AUTH_MODE: Literal["firebase", "mock"] = "mock"
    STORAGE_MODE: Literal["supabase", "memory"] = "memory"

    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    MARKS_TABLE: str = "sms_marks"
    PARENT_LINKS_TABLE: str = "sms_parent_links"
    USERS_TABLE: str = "users"

    FIREBASE_CREDENTIALS_PATH: str = "./firebase-credentials.json"

    CORS_ORIGINS: str = "http://localhost:3000"

    # Role spellings granting each capability
    TEACHER_ROLES: list[str] = ["teacher", "administrator", "um_teacher"]
    STUDENT_ROLES: list[str] = ["student", "administrator", "um_student"]
    PARENT_ROLES: list[str] = ["parent", "administrator", "um_parent"]
    ADMIN_ROLES: list[str] = ["administrator", "manage_options"]

    # Inclusive lower bound -> grade, checked highest first
    GRADE_BANDS: dict[float, str] = {80.0: "A", 70.0: "B", 60.0: "C", 50.0: "D"}
    GRADE_FALLBACK: str = "F"

    SYNC_WEBHOOK_URL: str = ""
    SYNC_TIMEOUT_SECONDS: float = 5.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
