"""
Cache key layout for the sample store.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import hashlib
from datetime import datetime


def _slug(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()[:32]


def sample(metric: str, day_start: datetime, day_end: datetime) -> str:
    span = f"{int(day_start.timestamp())}-{int(day_end.timestamp())}"
    return f"pc:sample:{_slug(metric)}:{span}"
