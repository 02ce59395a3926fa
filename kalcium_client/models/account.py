"""
Account models returned at login.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..utils import distinct

CHECK_TERM_MODULE = "CheckTerm"


@dataclass(frozen=True)
class GroupTermbase:
    termbase_id: int
    is_enabled: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroupTermbase":
        # a missing flag counts as disabled
        return cls(termbase_id=data["termbaseId"], is_enabled=bool(data.get("isEnabled") or False))

    def to_dict(self) -> Dict[str, Any]:
        return {"termbaseId": self.termbase_id, "isEnabled": self.is_enabled}


@dataclass(frozen=True)
class Group:
    """A permission bundle: enabled modules, analysis profiles and termbases."""

    id: int
    name: str = ""
    termbases: List[GroupTermbase] = field(default_factory=list)
    enabled_modules: List[str] = field(default_factory=list)
    analysis_profile_ids: List[int] = field(default_factory=list)
    is_check_term_module_enabled: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Group":
        modules = list(data.get("enabledModules") or [])
        check_term = data.get("isCheckTermModuleEnabled")
        if check_term is None:
            check_term = CHECK_TERM_MODULE in modules
        return cls(
            id=data.get("id", 0),
            name=data.get("name", ""),
            termbases=[GroupTermbase.from_dict(tb) for tb in data.get("termbases") or []],
            enabled_modules=modules,
            analysis_profile_ids=list(data.get("analysisProfileIds") or []),
            is_check_term_module_enabled=bool(check_term),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "termbases": [tb.to_dict() for tb in self.termbases],
            "enabledModules": list(self.enabled_modules),
            "analysisProfileIds": list(self.analysis_profile_ids),
            "isCheckTermModuleEnabled": self.is_check_term_module_enabled,
        }


@dataclass(frozen=True)
class AuthenticationData:
    """Identity of the logged in user: the groups it belongs to."""

    user_name: str
    groups: List[Group] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthenticationData":
        return cls(
            user_name=data.get("userName", ""),
            groups=[Group.from_dict(g) for g in data.get("groups") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"userName": self.user_name, "groups": [g.to_dict() for g in self.groups]}

    def enabled_termbase_ids(self) -> List[int]:
        """Distinct ids of the termbases enabled in any group."""
        return distinct(
            tb.termbase_id
            for group in self.groups
            for tb in group.termbases
            if tb.is_enabled
        )

    def analysis_profile_ids(self) -> List[int]:
        return distinct(pid for group in self.groups for pid in group.analysis_profile_ids)

    def is_module_enabled(self, module: str) -> bool:
        return any(module in group.enabled_modules for group in self.groups)

    def is_check_term_enabled(self) -> bool:
        return any(group.is_check_term_module_enabled for group in self.groups)
