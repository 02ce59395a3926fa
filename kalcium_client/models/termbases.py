"""
Termbase, language and schema definition models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class FieldType(str, Enum):
    """Field type tags used by termbase schema definitions."""

    TEXT = "Text"
    MULTIMEDIA = "Multimedia"
    PICKLIST = "Picklist"
    DATE = "Date"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FieldType":
        """Map a wire tag to a member, unknown tags become OTHER."""
        for member in cls:
            if value is not None and member.value.lower() == str(value).lower():
                return member
        return cls.OTHER


class FieldLevel(str, Enum):
    """Where in an entry a field may appear."""

    ENTRY = "Entry"
    LANGUAGE = "Language"
    TERM = "Term"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["FieldLevel"]:
        for member in cls:
            if value is not None and member.value.lower() == str(value).lower():
                return member
        return None


@dataclass(frozen=True)
class Language:
    """A language known by the server."""

    id: int
    code: str
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Language":
        return cls(id=data["id"], code=data.get("code", ""), name=data.get("name", ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "code": self.code, "name": self.name}


@dataclass(frozen=True)
class Termbase:
    """Immutable snapshot of a termbase."""

    id: int
    name: str
    language_ids: List[int] = field(default_factory=list)
    schema_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Termbase":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            language_ids=list(data.get("languageIds") or []),
            schema_id=data.get("schemaId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "languageIds": list(self.language_ids),
            "schemaId": self.schema_id,
        }


@dataclass(frozen=True)
class LanguageGroupDefinition:
    """A language allowed in a termbase."""

    language_id: int
    language_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LanguageGroupDefinition":
        return cls(language_id=data["languageId"], language_name=data.get("languageName", ""))

    def to_dict(self) -> Dict[str, Any]:
        return {"languageId": self.language_id, "languageName": self.language_name}


@dataclass(frozen=True)
class FieldDefinition:
    """A field allowed in a termbase, with its type tag and optional level."""

    name: str
    field_type: FieldType = FieldType.TEXT
    level: Optional[FieldLevel] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDefinition":
        return cls(
            name=data["name"],
            field_type=FieldType.parse(data.get("fieldType")),
            level=FieldLevel.parse(data.get("level")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"name": self.name, "fieldType": self.field_type.value}
        if self.level is not None:
            result["level"] = self.level.value
        return result


@dataclass(frozen=True)
class SchemaDefinition:
    """
    Structure of a termbase.

    Describes which languages an entry may contain and which fields, with
    which types, may be filled in.
    """

    termbase_id: int
    termbase_name: str = ""
    language_group_definitions: List[LanguageGroupDefinition] = field(default_factory=list)
    field_definitions: List[FieldDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaDefinition":
        return cls(
            termbase_id=data["termbaseId"],
            termbase_name=data.get("termbaseName", ""),
            language_group_definitions=[
                LanguageGroupDefinition.from_dict(item)
                for item in data.get("languageGroupDefinitions") or []
            ],
            field_definitions=[
                FieldDefinition.from_dict(item)
                for item in data.get("fieldDefinitions") or []
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "termbaseId": self.termbase_id,
            "termbaseName": self.termbase_name,
            "languageGroupDefinitions": [d.to_dict() for d in self.language_group_definitions],
            "fieldDefinitions": [d.to_dict() for d in self.field_definitions],
        }

    @property
    def language_ids(self) -> List[int]:
        return [d.language_id for d in self.language_group_definitions]

    def find_field(self, name: str) -> Optional[FieldDefinition]:
        """Return the field definition called ``name``, if any."""
        for definition in self.field_definitions:
            if definition.name == name:
                return definition
        return None

    def first_field_of_type(self, field_type: FieldType) -> Optional[FieldDefinition]:
        for definition in self.field_definitions:
            if definition.field_type == field_type:
                return definition
        return None
