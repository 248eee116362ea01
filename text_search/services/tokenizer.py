"""Word extraction and normalization for indexed page text.

`normalize()` turns raw page text into the canonical search string stored
next to each page: lowercase words, no stop words, no single characters,
sorted by code point, each word once, joined by single spaces.
"""

import json
import re
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import AbstractSet

import logfire

from text_search.constants import MIN_WORD_LENGTH

# Whitespace, punctuation, typographic quotes and dashes, currency, bullets
# and ASCII digits all split words.
WORD_DELIMITERS = re.compile(
    r"[\s.…|;,_<>\"“”«»'´’‘~+\-–—―=%¿?¡!:/\\()\[\]{}$£*•0-9]"
)


@lru_cache(maxsize=None)
def load_stop_words(path: str | None = None) -> frozenset[str]:
    """Load the stop-word set, merging the lists of every language.

    Args:
        path: JSON file mapping language codes to word lists. When None the
            bundled `resources/stopwords.json` is used.

    Returns:
        Lowercase stop words as a frozenset
    """
    if path:
        raw = Path(path).read_text(encoding="utf-8")
        source = path
    else:
        raw = (
            resources.files("text_search.resources")
            .joinpath("stopwords.json")
            .read_text(encoding="utf-8")
        )
        source = "bundled"

    data = json.loads(raw)
    lists = data.values() if isinstance(data, dict) else [data]
    words = frozenset(w.strip().lower() for words in lists for w in words if w.strip())
    logfire.info("Stop words loaded", source=source, count=len(words))
    return words


def normalize(text: str, stop_words: AbstractSet[str] | None = None) -> str:
    """Build the canonical word string of `text`.

    Args:
        text: Raw text (title, body and descriptors of a page)
        stop_words: Words to discard. Defaults to the bundled stop-word set.

    Returns:
        Space-separated, sorted, deduplicated lowercase words
    """
    if not text:
        return ""
    if stop_words is None:
        stop_words = load_stop_words()

    words = []
    for fragment in WORD_DELIMITERS.split(text):
        word = fragment.strip().lower()
        if len(word) > MIN_WORD_LENGTH and word not in stop_words:
            words.append(word)

    words.sort()

    result: list[str] = []
    for word in words:
        if not result or word != result[-1]:
            result.append(word)
    return " ".join(result)
