# relatedreco/db/mongo.py
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from relatedreco.core.config import Settings, get_settings
import certifi

logger = logging.getLogger(__name__)

PRODUCTS_COLLECTION = "products"

# Lookups by id, and the AI ranking pool query (category OR featured)
CATALOG_INDEXES = (
    ("product_id", {"unique": True}),
    ("category", {}),
    ("is_featured", {}),
)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    assert _client is not None, "Mongo client not initialized"
    return _client


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


def _new_client(settings: Settings) -> AsyncIOMotorClient:
    tls_opts = {}
    if settings.MONGO_URI.startswith("mongodb+srv://"):
        # Atlas-style URIs; containers often ship without a CA bundle
        tls_opts = {"tls": True, "tlsCAFile": certifi.where()}
    return AsyncIOMotorClient(
        settings.MONGO_URI,
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=6000,
        connectTimeoutMS=6000,
        **tls_opts,
    )


async def ensure_catalog_indexes(db: AsyncIOMotorDatabase) -> None:
    col = db[PRODUCTS_COLLECTION]
    for field, opts in CATALOG_INDEXES:
        await col.create_index(field, **opts)
    logger.info("Mongo catalog indexes ensured collection=%s n=%s", PRODUCTS_COLLECTION, len(CATALOG_INDEXES))


async def connect():
    """
    Open the catalog database.
    A failed startup ping does not stop the app: the client is kept and
    connects lazily on the first catalog query, which then fails on its own.
    """
    global _client, _db
    settings = get_settings()

    try:
        _client = _new_client(settings)
    except Exception as e:
        # invalid URI or options; routes that need the catalog will assert
        _client = None
        _db = None
        logger.error("Mongo client init failed: %s", e)
        return

    _db = _client[settings.MONGO_DB]
    try:
        await _client.admin.command("ping")
    except Exception as e:
        logger.warning("Mongo ping at startup failed: %s; first catalog query will retry", e)
        return

    logger.info("Mongo connected (ping ok) db=%s", settings.MONGO_DB)
    try:
        await ensure_catalog_indexes(_db)
    except Exception as e:
        logger.warning("Mongo index creation failed: %s", e)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
