"""
version_key.py
==============
Free-form version strings turned into comparable keys.

A version is split into items: integers, qualifiers ("beta", "rc", ...)
and nested lists (opened by ``-`` between two numeric parts, so ``1-1``
and ``1.1`` are different shapes).  Trailing null items are stripped,
which makes ``1``, ``1.0`` and ``1.0.0`` the same key.

Ordering of qualifiers:
  (unknown, lexical) < snapshot < alpha < beta < milestone < rc < sp < ""

At any one position the item kinds rank
  qualifier < nested list < 0 / missing < positive integer
(a release qualifier such as "ga" becomes 0)
so every "-" suffix sorts below the bare release it extends.

Examples:
  >>> VersionKey.parse("1.0.0") == VersionKey.parse("1")
  True
  >>> VersionKey.parse("1-sp") < VersionKey.parse("1")
  True
  >>> VersionKey.parse("1.0-1") < VersionKey.parse("1.0.1")
  True
"""

from __future__ import annotations

from functools import total_ordering
from typing import List, Optional, Tuple, Union

# ──────────────────────────────────────────────
#  Qualifier tables
# ──────────────────────────────────────────────

QUALIFIERS: Tuple[str, ...] = ("snapshot", "alpha", "beta", "milestone", "rc", "sp", "")

ALIASES = {
    "ga": "",
    "final": "",
    "cr": "rc",
}

# a1 = alpha-1, b1 = beta-1, m1 = milestone-1
_SHORT_QUALIFIERS = {
    "a": "alpha",
    "b": "beta",
    "m": "milestone",
}

RELEASE_RANK = QUALIFIERS.index("")

_DIGITS = frozenset("0123456789")


def qualifier_rank(qualifier: str) -> Tuple[int, str]:
    """
    Sort key for a qualifier.

    Known qualifiers rank by their position in QUALIFIERS; anything else
    ranks below all of them and falls back to lexical order.
    """
    try:
        return QUALIFIERS.index(qualifier), ""
    except ValueError:
        return -1, qualifier


# ──────────────────────────────────────────────
#  Items
# ──────────────────────────────────────────────

class IntItem:
    """
    Numeric item, kept as its digit string.

    Digit runs of any length compare by length, then lexically, so no
    int conversion limit applies.
    """

    __slots__ = ("digits",)

    def __init__(self, digits: str) -> None:
        self.digits = digits.lstrip("0") or "0"

    @property
    def value(self) -> int:
        return int(self.digits)

    def is_null(self) -> bool:
        return self.digits == "0"

    def compare(self, other: Optional["Item"]) -> int:
        if other is None:
            return 0 if self.is_null() else 1   # 1.0 == 1, 1.1 > 1
        if isinstance(other, IntItem):
            mine = (len(self.digits), self.digits)
            theirs = (len(other.digits), other.digits)
            return (mine > theirs) - (mine < theirs)
        return 1  # 1.1 > 1-sp, 1.1 > 1-1

    def __str__(self) -> str:
        return self.digits


class QualifierItem:
    """String item, usually a qualifier such as ``beta`` or ``sp``."""

    __slots__ = ("value",)

    def __init__(self, value: str, followed_by_digit: bool = False) -> None:
        if followed_by_digit and len(value) == 1:
            value = _SHORT_QUALIFIERS.get(value, value)
        self.value = ALIASES.get(value, value)

    def is_null(self) -> bool:
        return qualifier_rank(self.value) == (RELEASE_RANK, "")

    def compare(self, other: Optional["Item"]) -> int:
        if other is None:
            # 1-rc < 1, 1-sp < 1
            mine = qualifier_rank(self.value)
            release = (RELEASE_RANK, "")
            return (mine > release) - (mine < release)
        if isinstance(other, QualifierItem):
            mine, theirs = qualifier_rank(self.value), qualifier_rank(other.value)
            return (mine > theirs) - (mine < theirs)
        return -1  # 1.any < 1.1, 1-sp < 1-1

    def __str__(self) -> str:
        return self.value


class ListItem(list):
    """Ordered run of items; used for the top level and for ``-N`` sub-lists."""

    def is_null(self) -> bool:
        return len(self) == 0

    def normalize(self) -> None:
        """Strip trailing null items: 0, "" and empty lists."""
        while self and self[-1].is_null():
            self.pop()

    def compare(self, other: Optional["Item"]) -> int:
        if other is None:
            return -1 if self else 0  # 1-1 < 1
        if isinstance(other, IntItem):
            return -1  # 1-1 < 1.0.1
        if isinstance(other, QualifierItem):
            return 1  # 1-1 > 1-sp

        for index in range(max(len(self), len(other))):
            left = self[index] if index < len(self) else None
            right = other[index] if index < len(other) else None
            if left is None:
                result = -right.compare(None)
            else:
                result = left.compare(right)
            if result != 0:
                return result
        return 0

    def __str__(self) -> str:
        return "(" + ",".join(str(item) for item in self) + ")"


Item = Union[IntItem, QualifierItem, ListItem]


def _qualifier(token: str, followed_by_digit: bool = False) -> Item:
    item = QualifierItem(token, followed_by_digit)
    # a release qualifier mid-version (1.ga.1) is the same slot as 0
    return IntItem("0") if item.is_null() else item


def _make_item(is_digit: bool, token: str) -> Item:
    return IntItem(token) if is_digit else _qualifier(token)


# ──────────────────────────────────────────────
#  VersionKey
# ──────────────────────────────────────────────

@total_ordering
class VersionKey:
    """
    Comparable, normalized form of a version string.

    Equality and hashing use the canonical form, so two keys compare
    equal exactly when ``canonical`` matches.
    """

    __slots__ = ("text", "items", "canonical")

    def __init__(self, text: str) -> None:
        self.text = text
        self.items = self._parse(text)
        self.canonical = str(self.items)

    @classmethod
    def parse(cls, text: Optional[str]) -> "VersionKey":
        return cls(text or "")

    @staticmethod
    def _parse(text: str) -> ListItem:
        version = text.lower()
        root = ListItem()
        current = root
        stack: List[ListItem] = [root]

        is_digit = False
        start = 0

        for i, char in enumerate(version):
            if char in ".-":
                if i == start:
                    current.append(IntItem("0"))
                else:
                    current.append(_make_item(is_digit, version[start:i]))
                start = i + 1

                if char == "-" and is_digit:
                    current.normalize()  # 1.0-* == 1-*
                    if i + 1 < len(version) and version[i + 1] in _DIGITS:
                        # only 1-1 needs a sub-list; it must differ from 1.1
                        nested = ListItem()
                        current.append(nested)
                        current = nested
                        stack.append(nested)
            elif char in _DIGITS:
                if not is_digit and i > start:
                    current.append(_qualifier(version[start:i], followed_by_digit=True))
                    start = i
                is_digit = True
            else:
                if is_digit and i > start:
                    current.append(IntItem(version[start:i]))
                    start = i
                is_digit = False

        if len(version) > start:
            current.append(_make_item(is_digit, version[start:]))

        while stack:
            stack.pop().normalize()

        return root

    # ── Queries ───────────────────────────────

    @property
    def major(self) -> Optional[int]:
        """
        Leading numeric component.

        Legacy ``1.x`` versions (``1.8.0_292``) report ``x``.
        """
        if not self.items or not isinstance(self.items[0], IntItem):
            return None
        first = self.items[0]
        if first.digits == "1" and len(self.items) > 1 and isinstance(self.items[1], IntItem):
            first = self.items[1]
        try:
            return first.value
        except ValueError:  # beyond int conversion limit
            return None

    def compare(self, other: "VersionKey") -> int:
        return self.items.compare(other.items)

    # ── Dunder ────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionKey):
            return NotImplemented
        return self.canonical == other.canonical

    def __lt__(self, other: "VersionKey") -> bool:
        if not isinstance(other, VersionKey):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(self.canonical)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"VersionKey({self.text!r})"


def compare_versions(a: str | VersionKey, b: str | VersionKey) -> int:
    """Return -1, 0 or 1 for two version strings (or keys)."""
    left = a if isinstance(a, VersionKey) else VersionKey.parse(a)
    right = b if isinstance(b, VersionKey) else VersionKey.parse(b)
    return left.compare(right)
