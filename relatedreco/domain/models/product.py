import math
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, NonNegativeFloat, field_validator
from pydantic.alias_generators import to_camel

from relatedreco.domain.services.constants import VIEWED_PRODUCTS_CAP

SourceTag = Literal["ai", "local"]

# Catalog documents and remote payloads name the identifier differently
_ID_ALIASES = AliasChoices("id", "_id", "product_id")


def coerce_price(value):
    """Lenient numeric parse: anything non-numeric or non-finite becomes None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if math.isfinite(price) else None


class Variant(BaseModel):
    color: Optional[str] = None  # color name
    image: Optional[str] = None
    additional_images: List[str] = []

    model_config = {"frozen": True}

    @field_validator("additional_images", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or []


class Candidate(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: str = ""
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    variants: List[Variant] = []
    is_featured: bool = False

    model_config = {"frozen": True}  # catalog data is read-only

    @field_validator("price", mode="before")
    @classmethod
    def _lenient_price(cls, v):
        return coerce_price(v)

    @field_validator("variants", mode="before")
    @classmethod
    def _none_as_no_variants(cls, v):
        return v or []


class ProductContext(BaseModel):
    """The product currently being viewed, reduced to what ranking needs."""
    product_id: str = Field(..., min_length=1, validation_alias=_ID_ALIASES, serialization_alias="id")
    name: str = ""
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    colors: List[str] = []

    model_config = {"frozen": True}

    @field_validator("price", mode="before")
    @classmethod
    def _lenient_price(cls, v):
        return coerce_price(v)

    @field_validator("colors", mode="before")
    @classmethod
    def _unique_colors(cls, v):
        seen = set()
        out = []
        for c in v or []:
            if c and c not in seen:
                seen.add(c)
                out.append(c)
        return out

    @classmethod
    def from_candidate(cls, product: Candidate) -> "ProductContext":
        return cls(
            product_id=product.product_id,
            name=product.name,
            category=product.category,
            description=product.description,
            price=product.price,
            colors=[v.color for v in product.variants],
        )


class ViewedProduct(BaseModel):
    product_id: str = Field(..., min_length=1, validation_alias=_ID_ALIASES, serialization_alias="id")
    name: Optional[str] = None
    category: Optional[str] = None

    model_config = {"frozen": True}


class UserProfile(BaseModel):
    """
    Behavioural signals of the requesting user.
    Preference maps keep insertion order; it breaks ties when picking top categories/colors.
    """
    search_history: List[str] = []
    viewed_products: List[ViewedProduct] = []  # most recent first
    category_preferences: Dict[str, NonNegativeFloat] = {}
    color_preferences: Dict[str, NonNegativeFloat] = {}

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    @field_validator("search_history", "category_preferences", "color_preferences", mode="before")
    @classmethod
    def _none_as_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == "search_history" else {}
        return v

    @field_validator("viewed_products", mode="before")
    @classmethod
    def _cap_viewed(cls, v):
        return list(v or [])[:VIEWED_PRODUCTS_CAP]


class RemoteCandidateRef(BaseModel):
    """Identifier-only reference returned by the remote ranking service."""
    product_id: str = Field(..., min_length=1, validation_alias=_ID_ALIASES)

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)


class RecommendationResult(Candidate):
    image: str = Field(..., min_length=1)
    source: SourceTag

    @classmethod
    def from_candidate(cls, candidate: Candidate, *, image: str, source: str) -> "RecommendationResult":
        data = candidate.model_dump()
        data.update(image=image, source=source)
        return cls.model_validate(data)


class RelatedResult(BaseModel):
    source_product_id: str
    items: List[RecommendationResult]
    count: int

    model_config = {"frozen": True}
