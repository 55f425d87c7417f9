"""Taskboard configuration: backend-as-a-service endpoints and names."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Backend-as-a-service platform (empty = not configured)
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Relational store tables
    tasks_table: str = "tasks"
    subtasks_table: str = "subtasks"
    profiles_table: str = "profiles"

    # Object storage
    profile_pictures_bucket: str = "profile-pictures"
    profile_picture_cache_seconds: int = 3600

    # Remote functions
    embedding_function: str = "generate-task-embedding"
    subtasks_function: str = "generate-subtasks"
    search_function: str = "semantic-search"

    # Session cookie
    session_cookie_name: str = "taskboard_session"
    session_cookie_secure: bool = False

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:5173"

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


settings = Settings()
