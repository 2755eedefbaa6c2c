from __future__ import annotations

from typing import Tuple

from gantt.constants import SUBCATEGORY_KEY_SEP


def subcategory_key(category: str, sub_category: str) -> str:
    return f"{category}{SUBCATEGORY_KEY_SEP}{sub_category}"


def split_subcategory_key(key: str) -> Tuple[str, str]:
    category, sep, sub_category = key.partition(SUBCATEGORY_KEY_SEP)
    if not sep:
        raise ValueError(f"not a subcategory key: {key!r}")
    return category, sub_category
