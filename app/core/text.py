import math
import re

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
_EDGE_HYPHEN = re.compile(r"^-|-$")

WORDS_PER_MINUTE = 200


def slugify(text: str) -> str:
    """
    Derive a URL slug from a title.

    The title is lowercased, every run of characters outside [a-z0-9] becomes a
    single hyphen and one leading and one trailing hyphen are stripped.
    Accented letters are not transliterated: "Reunião Anual 2024!" gives
    "reuni-o-anual-2024".
    """
    slug = _NON_ALNUM_RUN.sub("-", (text or "").lower())
    return _EDGE_HYPHEN.sub("", slug)


def reading_time(content: str) -> int:
    """Estimated reading time in minutes"""
    words = len((content or "").split())
    return math.ceil(words / WORDS_PER_MINUTE)
