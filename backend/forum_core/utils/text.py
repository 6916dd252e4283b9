import re
import unicodedata

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[-\s]+")


def slugify(value: str, max_length: int = 255) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_WORD.sub("", normalized).strip().lower()
    return _SEPARATORS.sub("-", cleaned)[:max_length].strip("-")
