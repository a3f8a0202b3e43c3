# Constants for the related-products recommendation pipeline.
DEFAULT_LIMIT = 4  # Recommendations returned when the caller does not ask for a size
VIEWED_PRODUCTS_CAP = 10  # Most recent viewed products kept in a profile / sent upstream

# Local scoring signal weights
WEIGHT_CATEGORY_MATCH = 100
WEIGHT_PREFERRED_CATEGORY = 50
WEIGHT_PRICE_PROXIMITY = 30
WEIGHT_COLOR_OVERLAP = 20
WEIGHT_SEARCH_HISTORY = 15

TOP_CATEGORIES_N = 3  # Preferred categories considered by the scorer
TOP_COLORS_N = 5  # Preferred colors considered by the scorer
PRICE_PROXIMITY_RATIO = 0.20  # Max relative price gap for the proximity signal

# Source tags
SOURCE_AI = "ai"  # Ranked by the remote ranking service
SOURCE_LOCAL = "local"  # Ranked by the deterministic local scorer
SOURCE_CATEGORY = "category"  # Server-side fallback when the LLM is unavailable

# Image fallback
PLACEHOLDER_IMAGE_URL = "https://placehold.co/400x500?text={text}"
PLACEHOLDER_DEFAULT_TEXT = "Product"

# Server-side AI ranking
POOL_DESCRIPTION_CHARS = 100  # Description snippet length per pooled product
