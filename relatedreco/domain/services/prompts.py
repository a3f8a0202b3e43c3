import json
from typing import Any, Dict, List


def system_prompt() -> str:
    return (
        "You are an AI shopping assistant that recommends products to users based on "
        "their preferences and browsing history. Return strict JSON only."
    )


def user_task(
    product_info: Dict[str, Any],
    user_context: Dict[str, Any],
    pool: List[Dict[str, Any]],
    limit: int,
) -> str:
    def _j(obj) -> str:
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))

    return (
        "Current product the user is viewing:\n"
        f"{_j(product_info)}\n\n"
        "User context:\n"
        f"- Search history: {_j(user_context.get('searchHistory', []))}\n"
        f"- Recently viewed products: {_j(user_context.get('viewedProducts', []))}\n"
        f"- Category preferences: {_j(user_context.get('categoryPreferences', {}))}\n"
        f"- Color preferences: {_j(user_context.get('colorPreferences', {}))}\n\n"
        "Available products for recommendation:\n"
        f"{_j(pool)}\n\n"
        f"Recommend {limit} products this user might be interested in, based on the current "
        "product and their preferences.\n"
        "RULES:\n"
        "- Only include ids from the available products list\n"
        "- Best match first\n"
        "- Format: strict JSON\n\n"
        'OUTPUT FORMAT: {"product_ids":["id1","id2","id3","id4"]}'
    )
