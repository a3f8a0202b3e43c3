# relatedreco/domain/repositories/product_repo.py

from __future__ import annotations
import logging
from typing import Optional, List
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from relatedreco.domain.models.product import Candidate

logger = logging.getLogger(__name__)

# Fields that map onto Candidate
PRODUCT_PROJECTION = {
    "_id": 0,
    "product_id": 1,
    "name": 1,
    "category": 1,
    "description": 1,
    "price": 1,
    "image": 1,
    "variants": 1,
    "is_featured": 1,
}


def _to_candidate(doc: dict) -> Optional[Candidate]:
    try:
        return Candidate.model_validate(doc)
    except ValidationError as e:
        logger.warning("product_repo skipping invalid product doc product_id=%s err=%s", doc.get("product_id"), e)
        return None


def _to_candidates(docs: List[dict]) -> List[Candidate]:
    return [c for c in map(_to_candidate, docs) if c is not None]


class ProductRepo:
    """
    Catalog provider backed by the 'products' collection.
    Documents are stored with the Candidate field names.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    async def get_by_product_id(self, product_id: str) -> Optional[Candidate]:
        doc = await self.col.find_one({"product_id": product_id}, PRODUCT_PROJECTION)
        return _to_candidate(doc) if doc else None

    async def list_catalog(self, limit: Optional[int] = None) -> List[Candidate]:
        """Full recommendable catalog in insertion order (the local scorer's tie-break order)."""
        cursor = self.col.find({}, PRODUCT_PROJECTION).sort("_id", 1)
        docs = await cursor.to_list(length=limit)
        return _to_candidates(docs)

    async def find_pool(self, product: Candidate, limit: int) -> List[Candidate]:
        """
        Candidate pool for AI ranking: other products sharing the category,
        or featured ones, at most `limit`.
        """
        either: List[dict] = [{"is_featured": True}]
        if product.category:
            either.insert(0, {"category": product.category})
        query = {"product_id": {"$ne": product.product_id}, "$or": either}
        cursor = self.col.find(query, PRODUCT_PROJECTION).limit(limit)
        docs = await cursor.to_list(length=limit)
        return _to_candidates(docs)
