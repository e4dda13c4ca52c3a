import json
from typing import Iterable, List

LIKE_ESCAPE = "\\"


def NormalizeTags(tags: Iterable[str] | None) -> List[str]:
    """Keep first-seen order, drop blanks and duplicates."""
    seen = set()
    result = []
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        value = tag.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def ParseTags(tags_json: str | None) -> List[str]:
    """Parse JSON tags string to list."""
    if not tags_json:
        return []
    try:
        parsed = json.loads(tags_json)
        return [tag for tag in parsed if isinstance(tag, str)] if isinstance(parsed, list) else []
    except (json.JSONDecodeError, TypeError):
        return []


def SerializeTags(tags: Iterable[str] | None) -> str:
    """Serialize tags list to JSON string."""
    return json.dumps(NormalizeTags(tags), ensure_ascii=False)


def EscapeLike(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def TagNeedle(tag: str) -> str:
    """One tag exactly as it appears inside a serialized tag array."""
    return json.dumps(tag.strip(), ensure_ascii=False)


def TagMatchPattern(tag: str) -> str:
    """LIKE pattern matching one whole element of a serialized tag array."""
    return f"%{EscapeLike(TagNeedle(tag))}%"
