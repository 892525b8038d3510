"""
Course hierarchy models for request/response schemas.

Copyright (C) 2025 Prepdeck
"""

from pydantic import BaseModel

from .goals import SyncReport
from .hierarchy import TopicSnapshot


class TopicCompletionResponse(BaseModel):
    """A topic after its completion changed, with the goal sync it triggered."""

    topic: TopicSnapshot
    sync: SyncReport
