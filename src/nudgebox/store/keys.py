"""Key construction for persisted per-user state.

    history:<user_id>              capped JSON array of notification dicts
    seen:<user_id>:<category>      capped JSON array of dedup keys
"""


def history_key(user_id: str) -> str:
    return f"history:{user_id}"


def seen_key(user_id: str, category: str) -> str:
    return f"seen:{user_id}:{category}"
