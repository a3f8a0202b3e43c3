# api/v1/schemas/reco.py
from pydantic import BaseModel, Field
from typing import Optional

from relatedreco.domain.models.product import UserProfile


class RelatedRequest(BaseModel):
    profile: UserProfile = Field(default_factory=UserProfile)
    limit: Optional[int] = Field(default=None, ge=0, le=50, description="Defaults to settings.default_limit")
