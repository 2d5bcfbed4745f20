from functools import lru_cache
from datetime import tzinfo

from dateutil import tz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchedulerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AGENDA_")
    LOG_LEVEL: str = "INFO"
    DEFAULT_TIMEZONE: str = "UTC"
    ENFORCE_OVERLAP_CONSTRAINT: bool = True
    PAGE_LIMIT_DEFAULT: int = 20
    PAGE_LIMIT_MAX: int = 100
    SEED_DEMO_DATA: bool = False

    @field_validator("DEFAULT_TIMEZONE")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if tz.gettz(value) is None:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def default_tzinfo(self) -> tzinfo:
        """Timezone attached to naive session timestamps."""
        return tz.gettz(self.DEFAULT_TIMEZONE)


@lru_cache
def get_settings() -> SchedulerSettings:
    return SchedulerSettings()
