"""
Analysis profile and segment analysis models.

Whether a hit is problematical is decided by the server from the profile
settings; the client only reports the flag and the searched term.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AnalyzeType(str, Enum):
    SOURCE = "Source"
    TARGET = "Target"
    SOURCE_AND_TARGET = "SourceAndTarget"


@dataclass(frozen=True)
class ProfileTermbaseSettings:
    termbase_id: int
    is_enabled: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileTermbaseSettings":
        return cls(termbase_id=data["termbaseId"], is_enabled=bool(data.get("isEnabled", True)))


@dataclass(frozen=True)
class AnalysisProfile:
    id: int
    name: str = ""
    termbase_settings: Tuple[ProfileTermbaseSettings, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisProfile":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            termbase_settings=tuple(
                ProfileTermbaseSettings.from_dict(s) for s in data.get("termbaseSettings") or []
            ),
        )

    @property
    def termbase_ids(self) -> List[int]:
        return [s.termbase_id for s in self.termbase_settings]


@dataclass
class Segment:
    """Source text to analyze. ``id`` and ``index`` are echoed back only."""

    source_value: str
    id: Optional[str] = None
    index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"sourceValue": self.source_value, "id": self.id, "index": self.index}


@dataclass(frozen=True)
class AnalyzeResult:
    searched: str = ""
    is_problematical: bool = False
    language_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzeResult":
        return cls(
            searched=data.get("searched") or "",
            is_problematical=bool(data.get("isProblematical", False)),
            language_id=data.get("languageId"),
        )


@dataclass(frozen=True)
class AnalyzeResultPair:
    source: AnalyzeResult
    target: Optional[AnalyzeResult] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzeResultPair":
        target = data.get("target")
        return cls(
            source=AnalyzeResult.from_dict(data.get("source") or {}),
            target=AnalyzeResult.from_dict(target) if target else None,
        )


@dataclass(frozen=True)
class AnalyzeResultPairs:
    analyze_result_pairs: Tuple[AnalyzeResultPair, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzeResultPairs":
        return cls(
            analyze_result_pairs=tuple(
                AnalyzeResultPair.from_dict(p) for p in data.get("analyzeResultPairs") or []
            )
        )

    def problematical(self) -> List[AnalyzeResult]:
        """Source results flagged as problematical."""
        return [p.source for p in self.analyze_result_pairs if p.source.is_problematical]

    def __len__(self) -> int:
        return len(self.analyze_result_pairs)
