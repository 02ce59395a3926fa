"""
Term request (task) models.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .entries import EditableEntry


@dataclass
class CreateTermRequestModel:
    """A proposed entry to be reviewed before it becomes a real entry."""

    content: EditableEntry
    termbase_id: int
    comment: str = ""
    source_expression: str = ""
    source_language_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content.to_dict(),
            "termbaseId": self.termbase_id,
            "comment": self.comment,
            "sourceExpression": self.source_expression,
            "sourceLanguageId": self.source_language_id,
        }


@dataclass(frozen=True)
class TermRequest:
    id: int
    termbase_id: int
    content: Optional[EditableEntry] = None
    comment: str = ""
    source_expression: str = ""
    source_language_id: Optional[int] = None
    status: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TermRequest":
        content = data.get("content")
        return cls(
            id=data["id"],
            termbase_id=data.get("termbaseId", 0),
            content=EditableEntry.from_dict(content) if content else None,
            comment=data.get("comment") or "",
            source_expression=data.get("sourceExpression") or "",
            source_language_id=data.get("sourceLanguageId"),
            status=data.get("status") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "termbaseId": self.termbase_id,
            "content": self.content.to_dict() if self.content else None,
            "comment": self.comment,
            "sourceExpression": self.source_expression,
            "sourceLanguageId": self.source_language_id,
            "status": self.status,
        }
