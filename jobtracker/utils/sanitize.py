"""
MongoDB operator-injection sanitizer.

Keys that start with '$' or contain '.' are interpreted by MongoDB as
operators or paths, so they are dropped from client input before it reaches
any query.
"""

from typing import Any, Tuple


def is_prohibited_key(key: str) -> bool:
    return key.startswith("$") or "." in key


def sanitize(value: Any) -> Tuple[Any, bool]:
    """
    Recursively remove prohibited keys.

    Returns:
        (cleaned value, whether anything was removed)
    """
    if isinstance(value, dict):
        cleaned = {}
        changed = False
        for key, item in value.items():
            if isinstance(key, str) and is_prohibited_key(key):
                changed = True
                continue
            cleaned[key], item_changed = sanitize(item)
            changed = changed or item_changed
        return cleaned, changed

    if isinstance(value, list):
        cleaned_items = []
        changed = False
        for item in value:
            cleaned_item, item_changed = sanitize(item)
            cleaned_items.append(cleaned_item)
            changed = changed or item_changed
        return cleaned_items, changed

    return value, False
