"""
Validated identifiers constructed at the system boundary.
"""
import re
from typing import Any

from constants import TrendingPeriod
from .errors import InvalidArgument

_CANONICAL_ID = re.compile(r"[1-9][0-9]*")


class ArticleId(int):
    """
    Positive integer article identifier.

    Use `ArticleId.parse` on anything coming from outside (path params,
    client payloads); it rejects loose coercions such as "042", "4.0",
    floats and booleans instead of guessing.
    """

    @classmethod
    def parse(cls, raw: Any) -> "ArticleId":
        if isinstance(raw, bool):
            raise InvalidArgument(f"Invalid article ID: {raw!r}")
        if isinstance(raw, int):
            if raw <= 0:
                raise InvalidArgument(f"Invalid article ID: {raw!r}")
            return cls(raw)
        if isinstance(raw, str):
            text = raw.strip()
            if _CANONICAL_ID.fullmatch(text):
                return cls(int(text))
        raise InvalidArgument(f"Invalid article ID: {raw!r}")

    @property
    def member(self) -> str:
        """Member name of this article inside a ranking key."""
        return str(int(self))

    def __repr__(self) -> str:
        return f"ArticleId({int(self)})"


def parse_period(raw: Any) -> TrendingPeriod:
    """Parse a trending period name (daily, weekly, monthly, yearly)."""
    try:
        return TrendingPeriod(raw)
    except ValueError:
        raise InvalidArgument(
            f"Unknown period: {raw!r}. Expected one of {[p.value for p in TrendingPeriod]}"
        ) from None
