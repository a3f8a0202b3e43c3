from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from relatedreco.domain.models.product import Candidate, UserProfile, coerce_price
from relatedreco.domain.services.constants import DEFAULT_LIMIT


class RankingProductIn(BaseModel):
    """`currentProduct` as sent by the ranking client. Only the id is authoritative."""
    product_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id", "product_id"))
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    colors: List[str] = []

    @field_validator("price", mode="before")
    @classmethod
    def _lenient_price(cls, v):
        return coerce_price(v)

    @field_validator("colors", mode="before")
    @classmethod
    def _drop_empty(cls, v):
        return [c for c in (v or []) if c]


class RankingRequest(BaseModel):
    current_product: Optional[RankingProductIn] = None
    user_preferences: UserProfile = UserProfile()
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("user_preferences", mode="before")
    @classmethod
    def _default_profile(cls, v):
        return UserProfile() if v is None else v


class RankedProduct(Candidate):
    """Full catalog product plus the `id` field the ranking contract requires."""

    @computed_field
    @property
    def id(self) -> str:
        return self.product_id


class RankingResponse(BaseModel):
    success: bool
    recommendations: List[RankedProduct] = []
    source: Optional[str] = None
    error: Optional[str] = None
