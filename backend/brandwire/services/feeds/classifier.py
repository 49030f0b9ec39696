import re
from typing import Optional

from brandwire.models.brand_update import UpdateType


def _keywords(*words: str) -> str:
    # Anchored at a word start so "launches" matches "launch" but "class" never matches "ss"
    return r"\b(?:" + "|".join(re.escape(w) for w in words) + r")"


# Evaluated top to bottom, first match wins. Add a category by appending.
CLASSIFICATION_RULES: list[tuple[UpdateType, re.Pattern]] = [
    (
        UpdateType.PRODUCT_LAUNCH,
        re.compile(_keywords("launch", "drop", "release", "debut", "unveil")),
    ),
    (
        UpdateType.COLLECTION,
        re.compile(
            _keywords("collection", "season", "fall", "spring", "summer", "winter")
            + r"|\b(?:fw|aw|ss)(?:\d{2}|\d{4})?\b"
        ),
    ),
    (
        UpdateType.COLLABORATION,
        re.compile(_keywords("collab", "partnership", "collaboration") + r"|\w\s+x\s+\w"),
    ),
    (
        UpdateType.EVENT,
        re.compile(_keywords("event", "show", "fashion week", "runway", "exhibition")),
    ),
    (
        UpdateType.PRESS_RELEASE,
        re.compile(_keywords("press release", "announces", "statement")),
    ),
]


def classify_update(title: Optional[str], body: Optional[str]) -> UpdateType:
    text = f"{title or ''} {body or ''}".lower()
    for update_type, pattern in CLASSIFICATION_RULES:
        if pattern.search(text):
            return update_type
    return UpdateType.GENERAL
