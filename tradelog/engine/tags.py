"""Trade tags as a set of labels.

The store and the legacy wire format keep tags as one comma-joined string;
everything in between works with ``TagSet``.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional


class TagSet(frozenset):
    SEPARATOR = ","

    def __new__(cls, labels: Iterable[str] = ()):
        cleaned = []
        for label in labels:
            if label is None:
                continue
            text = str(label).strip()
            # the separator cannot survive a round trip through storage
            text = text.replace(cls.SEPARATOR, " ").strip()
            if text:
                cleaned.append(text)
        return super().__new__(cls, cleaned)

    @classmethod
    def parse(cls, raw: Any) -> "TagSet":
        """Build from ``None``, a joined string or any iterable of labels."""
        if raw is None:
            return cls()
        if isinstance(raw, TagSet):
            return raw
        if isinstance(raw, str):
            return cls(raw.split(cls.SEPARATOR))
        return cls(raw)

    def to_list(self) -> list[str]:
        return sorted(self, key=str.lower)

    def to_storage(self) -> Optional[str]:
        if not self:
            return None
        return self.SEPARATOR.join(self.to_list())

    def __repr__(self) -> str:
        return f"TagSet({self.to_list()!r})"
