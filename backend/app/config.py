from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / "JobBoard"
    api_prefix: str = "/api"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    default_list_limit: int = 10
    default_search_limit: int = 20
    max_page_limit: int = 100
    # Expiry offset applied at creation when no expiryDate is supplied
    job_ttl_days: int = 30

    suggestion_min_chars: int = 2
    suggestion_limit: int = 10
    suggestion_limit_per_family: int = 5
    top_industries_limit: int = 10
    top_skills_limit: int = 20

    @property
    def db_path(self) -> Path:
        return self.data_dir / "jobs.sqlite"

    model_config = {"env_prefix": "JOBBOARD_"}


settings = Settings()
