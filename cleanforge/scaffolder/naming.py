"""Deterministic naming rules used by template slots.

Pluralization is used for table and collection names (table name = plural of
the entity name); the case helpers back the ``case`` fill rule and the Jinja2
filters of the same names.
"""

from __future__ import annotations

import re

_IRREGULAR_PLURALS: dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "ox": "oxen",
    "quiz": "quizzes",
    "hero": "heroes",
    "echo": "echoes",
    "potato": "potatoes",
    "tomato": "tomatoes",
    "veto": "vetoes",
    "calf": "calves",
    "half": "halves",
    "knife": "knives",
    "leaf": "leaves",
    "life": "lives",
    "loaf": "loaves",
    "self": "selves",
    "shelf": "shelves",
    "thief": "thieves",
    "wife": "wives",
    "wolf": "wolves",
}

_UNCOUNTABLE: frozenset[str] = frozenset(
    {"equipment", "information", "news", "series", "species", "metadata", "sheep", "fish"}
)

_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")
_LAST_WORD_RE = re.compile(r"([A-Z]?[a-z]+|[A-Z]+|\d+)$")


def split_words(value: str) -> list[str]:
    """Split on separators and camel humps.

    ``"OrderItem"`` -> ``["Order", "Item"]``, ``"unit_price"`` ->
    ``["unit", "price"]``, ``"HTTPServer"`` -> ``["HTTP", "Server"]``.
    """
    words: list[str] = []
    for part in re.split(r"[^A-Za-z0-9]+", value):
        words.extend(_WORD_RE.findall(part))
    return words


def to_pascal(value: str) -> str:
    """``order_item`` / ``order-item`` / ``orderItem`` -> ``OrderItem``."""
    return "".join(w[:1].upper() + w[1:].lower() for w in split_words(value))


def to_camel(value: str) -> str:
    """``OrderItem`` -> ``orderItem``."""
    pascal = to_pascal(value)
    return pascal[:1].lower() + pascal[1:]


def to_snake(value: str) -> str:
    """``OrderItem`` -> ``order_item``."""
    return "_".join(w.lower() for w in split_words(value))


def to_kebab(value: str) -> str:
    """``OrderItem`` -> ``order-item``."""
    return "-".join(w.lower() for w in split_words(value))


def pluralize(word: str) -> str:
    """Return the English plural of *word*, applied to its last word.

    Compound names keep their prefix (``OrderItem`` -> ``OrderItems``,
    ``SalesPerson`` -> ``SalesPeople``) and the capitalisation of the last
    word is preserved.  Words ending in ``o`` or ``f`` take a plain ``s``
    (``Photo`` -> ``Photos``, ``Roof`` -> ``Roofs``) unless listed as
    irregular (``Hero`` -> ``Heroes``, ``Leaf`` -> ``Leaves``).  An all-caps
    last word, including a single letter, gets a lowercase ``s``
    (``URL`` -> ``URLs``, ``ItemA`` -> ``ItemAs``).
    """
    if not word:
        return word
    match = _LAST_WORD_RE.search(word)
    if match is None:
        return word + "s"
    prefix, last = word[: match.start()], match.group(1)
    return prefix + _pluralize_word(last)


def _pluralize_word(word: str) -> str:
    lower = word.lower()
    if lower in _UNCOUNTABLE or lower.isdigit():
        return word
    if lower in _IRREGULAR_PLURALS:
        return _match_case(_IRREGULAR_PLURALS[lower], word)

    if word.isupper():
        return word + "s"
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + _match_case("ies", word[-1])
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + _match_case("es", word[-1])
    return word + _match_case("s", word[-1])


def _match_case(replacement: str, original: str) -> str:
    if original.isupper() and len(original) > 1:
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement
