from functools import lru_cache
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


class Settings(BaseModel):
    database_url: str = Field(default="sqlite+aiosqlite:///./rocket_booking.db")
    echo_sql: bool = Field(default=False)
    create_tables: bool = Field(default=True)
    admission_timeout_seconds: float = Field(default=5.0, gt=0)
    log_level: str = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", Settings.model_fields["database_url"].default),
        echo_sql=bool(int(os.getenv("ECHO_SQL", "0"))),
        create_tables=bool(int(os.getenv("CREATE_TABLES", "1"))),
        admission_timeout_seconds=float(
            os.getenv("ADMISSION_TIMEOUT_SECONDS", Settings.model_fields["admission_timeout_seconds"].default)
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
