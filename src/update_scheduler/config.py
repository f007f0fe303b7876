import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "UPDATE_SCHEDULER_"


class SchedulerSettings(BaseModel):
    """
    Process-wide defaults for task behaviour.
    """
    fire_overdue: bool = Field(default=False, description="Report an overdue loop occurrence as pending instead of skipping it")
    anchor_resume: bool = Field(default=False, description="Persist the current occurrence of anchored tasks instead of the original anchor")
    timezone: Optional[str] = Field(default=None, description="IANA zone the clock reports in. Defaults to the local zone")

    @classmethod
    def from_env(cls) -> "SchedulerSettings":
        """
        Build settings from ``UPDATE_SCHEDULER_*`` variables. Unset or blank variables keep their default.

        Raises:
            ValidationError: If a flag is not a boolean pydantic understands (1/0, true/false, yes/no, on/off).
        """
        values = {}
        for name in cls.model_fields:
            raw = os.environ.get(ENV_PREFIX + name.upper(), "").strip()
            if raw:
                values[name] = raw
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> SchedulerSettings:
    return SchedulerSettings.from_env()
