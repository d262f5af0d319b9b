"""
Settings for the analytics data source the engine reads samples, subjects and subscriptions from.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings
from config import (
    PULSECHECK_ANALYTICS_URL,
    PULSECHECK_ANALYTICS_TOKEN,
    PULSECHECK_CONNECTOR_TIMEOUT,
)


class DataSourceSettings(BaseSettings):
    analytics_url: str = PULSECHECK_ANALYTICS_URL
    analytics_token: str = PULSECHECK_ANALYTICS_TOKEN
    connector_timeout: int = PULSECHECK_CONNECTOR_TIMEOUT

    @field_validator("analytics_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return str(v or "").strip().rstrip("/")

    @field_validator("analytics_token", mode="before")
    @classmethod
    def strip_token(cls, v: str) -> str:
        return str(v or "").strip()

    model_config = {"env_prefix": "PULSECHECK_", "extra": "ignore"}
