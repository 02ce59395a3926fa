"""
Search request and result models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .entries import Entry


class SearchMode(str, Enum):
    PREFIX = "Prefix"
    EXACT = "Exact"
    CONTAINS = "Contains"
    FUZZY = "Fuzzy"


class SearchFeature(str, Enum):
    SEARCH = "Search"
    LOOKUP = "Lookup"


@dataclass
class SearchTermbaseSettings:
    termbase_id: int
    filter_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"termbaseId": self.termbase_id}
        if self.filter_id is not None:
            result["filterId"] = self.filter_id
        return result


@dataclass
class SearchRequest:
    """
    A search query.

    ``start_index`` and ``max_count`` select the page of hits; ``total`` in
    the result does not depend on them. ``source_language_ids`` restricts the
    languages searched in, ``target_language_ids`` the languages returned.
    """

    term: str = ""
    mode: SearchMode = SearchMode.PREFIX
    feature: SearchFeature = SearchFeature.SEARCH
    start_index: int = 0
    max_count: int = 20
    source_language_ids: List[int] = field(default_factory=list)
    target_language_ids: List[int] = field(default_factory=list)
    termbase_settings: List[SearchTermbaseSettings] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "term": self.term,
            "mode": self.mode.value,
            "feature": self.feature.value,
            "startIndex": self.start_index,
            "maxCount": self.max_count,
            "sourceLanguageIds": list(self.source_language_ids),
            "targetLanguageIds": list(self.target_language_ids),
            "termbaseSettings": [s.to_dict() for s in self.termbase_settings],
        }

    @classmethod
    def for_termbase(cls, termbase, term: str = "", **kwargs) -> "SearchRequest":
        """Search every language of ``termbase``, like the demo does."""
        return cls(
            term=term,
            source_language_ids=list(termbase.language_ids),
            target_language_ids=list(termbase.language_ids),
            termbase_settings=[SearchTermbaseSettings(termbase.id)],
            **kwargs,
        )


@dataclass(frozen=True)
class Hit:
    entry_uuid: str
    termbase_id: int
    language_id: Optional[int] = None
    term: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Hit":
        return cls(
            entry_uuid=data.get("entryUuid", ""),
            termbase_id=data.get("termbaseId", 0),
            language_id=data.get("languageId"),
            term=data.get("term", ""),
        )


@dataclass(frozen=True)
class SearchResult:
    total: int = 0
    hits: Tuple[Hit, ...] = ()
    entries: Tuple[Entry, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResult":
        return cls(
            total=data.get("total", 0),
            hits=tuple(Hit.from_dict(h) for h in data.get("hits") or []),
            entries=tuple(Entry.from_dict(e) for e in data.get("entries") or []),
        )


@dataclass(frozen=True)
class RawSearchResult:
    """Cheaper search result without related entries."""

    total: int = 0
    hits: Tuple[Hit, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawSearchResult":
        return cls(
            total=data.get("total", 0),
            hits=tuple(Hit.from_dict(h) for h in data.get("hits") or []),
        )
