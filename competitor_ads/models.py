from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


def _normalize_entries(values: Iterable[object]) -> frozenset[str]:
    cleaned = (str(value).strip().lower() for value in values if value)
    return frozenset(value for value in cleaned if value)


@dataclass(frozen=True)
class SkipLists:
    reserved_words: frozenset[str] = frozenset()
    leading_words: frozenset[str] = frozenset()
    minor_locations: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        for name in ("reserved_words", "leading_words", "minor_locations"):
            object.__setattr__(self, name, _normalize_entries(getattr(self, name)))

    @classmethod
    def from_values(
        cls,
        reserved_words: Iterable[object] = (),
        leading_words: Iterable[object] = (),
        minor_locations: Iterable[object] = (),
    ) -> "SkipLists":
        return cls(
            reserved_words=_normalize_entries(reserved_words),
            leading_words=_normalize_entries(leading_words),
            minor_locations=_normalize_entries(minor_locations),
        )


@dataclass(frozen=True)
class ClassificationResult:
    skip: bool
    reason: str = ""


@dataclass(frozen=True)
class DomainSettings:
    domain: str
    gl: str


SCRAPED_AD_COLUMNS: tuple[str, ...] = (
    "keyword",
    "position",
    "block_position",
    "relative_block_position",
    "title",
    "tracking_link",
    "link",
    "domain",
    "displayed_link",
    "description",
    "sitelinks",
    "phone",
    "location",
    "extensions",
    "rich_snippet",
    "scraped_at",
)


@dataclass
class ScrapedAd:
    keyword: str
    position: Any = ""
    block_position: Any = ""
    relative_block_position: Any = ""
    title: str = ""
    tracking_link: str = ""
    link: str = ""
    domain: str = ""
    displayed_link: str = ""
    description: str = ""
    sitelinks: str = ""
    phone: str = ""
    location: str = ""
    extensions: str = ""
    rich_snippet: str = ""
    scraped_at: str = ""

    def as_row(self) -> list[Any]:
        return [getattr(self, column) or "" for column in SCRAPED_AD_COLUMNS]


@dataclass(frozen=True)
class CompetitorCheck:
    count: int
    url: str = ""
    reason: str = ""

    @property
    def is_competitor(self) -> bool:
        return self.count > 0


@dataclass
class ReportTable:
    headers: list[str]
    rows: list[list[Any]] = field(default_factory=list)
