"""
Provider wiring the analytics connector into the sample, subject and subscription ports.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from connectors.analytics import AnalyticsConnector
from .data_config import DataSourceSettings
from .fallback import FallbackSampleProvider, FallbackSubjectProvider, FallbackSubscriptionProvider


class DataSourceProvider:
    def __init__(self, settings: DataSourceSettings):
        self.settings = settings
        self.connector = AnalyticsConnector(
            settings.analytics_url,
            timeout=settings.connector_timeout,
            token=settings.analytics_token,
        )
        self.samples = FallbackSampleProvider(self.connector)
        self.subjects = FallbackSubjectProvider(self.connector)
        self.subscriptions = FallbackSubscriptionProvider(self.connector)

    async def aclose(self) -> None:
        await self.connector.aclose()
