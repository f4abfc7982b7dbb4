from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

LISTING_FIELDS = ("address", "rating", "review_count", "category", "website", "hours", "source")


@dataclass
class Lead:
    """A business contact extracted from page content or a listing."""

    name: str = ""
    title: str = ""
    company: str = ""
    email: str = ""
    phone: str = ""
    address: Optional[str] = None
    rating: Optional[str] = None
    review_count: Optional[str] = None
    category: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[str] = None
    source: Optional[str] = None
    source_url: Optional[str] = None
    keyword: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **extra: Any) -> "Lead":
        """Build a Lead from a loosely-shaped mapping (classifier output).

        Unknown keys are dropped, `None` becomes empty for the core fields and
        camelCase keys used by listing sources are accepted.
        """
        aliases = {"reviewCount": "review_count", "fullName": "name", "sourceUrl": "source_url"}
        values: dict[str, Any] = {}
        for key, value in dict(data).items():
            key = aliases.get(key, key)
            if key not in cls.__dataclass_fields__:
                continue
            if value is None:
                continue
            if not isinstance(value, str):
                value = str(value)
            values[key] = value
        values.update({k: v for k, v in extra.items() if v is not None})
        return cls(**values)

    def has_listing_fields(self) -> bool:
        return any(getattr(self, f) for f in LISTING_FIELDS)

    def to_dict(self) -> dict:
        return asdict(self)

    def __repr__(self):
        return f"<Lead name={self.name!r} email={self.email!r} company={self.company!r}>"
