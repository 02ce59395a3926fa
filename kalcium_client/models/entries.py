"""
Entry models: editable drafts, persisted entries and upload files.

Field values are a tagged variant. A field group carries a ``TextValue``, a
``MediaReference`` to an uploaded file, or an ``OtherValue`` for any other
field type. On the wire every field group is ``{"name", "value", "fieldType"}``.
"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from .termbases import FieldType, SchemaDefinition


class FieldValue:
    """Base class of the field value variants."""

    field_type: FieldType = FieldType.OTHER

    @property
    def raw(self) -> str:
        raise NotImplementedError

    @staticmethod
    def from_wire(tag: Union[FieldType, str, None], raw: Optional[str]) -> "FieldValue":
        """Build the variant matching ``tag`` around the raw wire string."""
        field_type = tag if isinstance(tag, FieldType) else FieldType.parse(tag)
        raw = "" if raw is None else str(raw)
        if field_type == FieldType.TEXT:
            return TextValue(raw)
        if field_type == FieldType.MULTIMEDIA:
            return MediaReference(raw)
        return OtherValue(raw, field_type)


@dataclass(frozen=True)
class TextValue(FieldValue):
    text: str
    field_type: ClassVar[FieldType] = FieldType.TEXT

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class MediaReference(FieldValue):
    """Reference to a media file by file name."""

    file_name: str
    field_type: ClassVar[FieldType] = FieldType.MULTIMEDIA

    @property
    def raw(self) -> str:
        return self.file_name


@dataclass(frozen=True)
class OtherValue(FieldValue):
    value: str
    tag: FieldType = FieldType.OTHER

    @property
    def field_type(self) -> FieldType:  # type: ignore[override]
        return self.tag

    @property
    def raw(self) -> str:
        return self.value


def _field_to_dict(name: str, value: FieldValue) -> Dict[str, Any]:
    return {"name": name, "value": value.raw, "fieldType": value.field_type.value}


def _field_from_dict(data: Dict[str, Any]) -> Tuple[str, FieldValue]:
    return data["name"], FieldValue.from_wire(data.get("fieldType"), data.get("value"))


# ---------------------------------------------------------------------------
# Editable (draft) models
# ---------------------------------------------------------------------------

@dataclass
class EditableFieldGroup:
    name: str
    value: FieldValue

    @classmethod
    def text(cls, name: str, text: str) -> "EditableFieldGroup":
        return cls(name, TextValue(text))

    @classmethod
    def media(cls, name: str, file_name: str) -> "EditableFieldGroup":
        return cls(name, MediaReference(file_name))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditableFieldGroup":
        return cls(*_field_from_dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return _field_to_dict(self.name, self.value)


@dataclass
class EditableTermGroup:
    term: str
    fields: List[EditableFieldGroup] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditableTermGroup":
        return cls(
            term=data.get("term", ""),
            fields=[EditableFieldGroup.from_dict(f) for f in data.get("fields") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "fields": [f.to_dict() for f in self.fields]}


@dataclass
class EditableLanguageGroup:
    language_id: int
    terms: List[EditableTermGroup] = field(default_factory=list)
    fields: List[EditableFieldGroup] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditableLanguageGroup":
        return cls(
            language_id=data["languageId"],
            terms=[EditableTermGroup.from_dict(t) for t in data.get("terms") or []],
            fields=[EditableFieldGroup.from_dict(f) for f in data.get("fields") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "languageId": self.language_id,
            "terms": [t.to_dict() for t in self.terms],
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class EditableEntry:
    """
    Mutable draft of an entry.

    It has to honor the schema definition of ``termbase_id``. See
    :class:`kalcium_client.validation.EntryValidator` for the client-side
    check.
    """

    termbase_id: int
    languages: List[EditableLanguageGroup] = field(default_factory=list)
    fields: List[EditableFieldGroup] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditableEntry":
        return cls(
            termbase_id=data["termbaseId"],
            languages=[EditableLanguageGroup.from_dict(lang) for lang in data.get("languages") or []],
            fields=[EditableFieldGroup.from_dict(f) for f in data.get("fields") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "termbaseId": self.termbase_id,
            "languages": [lang.to_dict() for lang in self.languages],
            "fields": [f.to_dict() for f in self.fields],
        }

    def all_fields(self) -> List[EditableFieldGroup]:
        """Field groups of every level, entry level first."""
        result = list(self.fields)
        for language in self.languages:
            result.extend(language.fields)
            for term in language.terms:
                result.extend(term.fields)
        return result

    def media_file_names(self) -> List[str]:
        return [f.value.file_name for f in self.all_fields() if isinstance(f.value, MediaReference)]


# ---------------------------------------------------------------------------
# Persisted (immutable) models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntryId:
    uuid: str
    termbase_id: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntryId":
        return cls(uuid=data["uuid"], termbase_id=data["termbaseId"])

    def to_dict(self) -> Dict[str, Any]:
        return {"uuid": self.uuid, "termbaseId": self.termbase_id}


@dataclass(frozen=True)
class FieldGroup:
    name: str
    value: FieldValue

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldGroup":
        return cls(*_field_from_dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return _field_to_dict(self.name, self.value)

    def typed_value(self, schema: SchemaDefinition) -> FieldValue:
        """Resolve the value against the field type declared in ``schema``."""
        definition = schema.find_field(self.name)
        if definition is None:
            return self.value
        return FieldValue.from_wire(definition.field_type, self.value.raw)

    def to_editable(self, schema: Optional[SchemaDefinition] = None) -> EditableFieldGroup:
        value = self.typed_value(schema) if schema is not None else self.value
        return EditableFieldGroup(self.name, value)


@dataclass(frozen=True)
class TermGroup:
    term: str
    fields: Tuple[FieldGroup, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TermGroup":
        return cls(
            term=data.get("term", ""),
            fields=tuple(FieldGroup.from_dict(f) for f in data.get("fields") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"term": self.term, "fields": [f.to_dict() for f in self.fields]}


@dataclass(frozen=True)
class LanguageGroup:
    language_id: int
    terms: Tuple[TermGroup, ...] = ()
    fields: Tuple[FieldGroup, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LanguageGroup":
        return cls(
            language_id=data["languageId"],
            terms=tuple(TermGroup.from_dict(t) for t in data.get("terms") or []),
            fields=tuple(FieldGroup.from_dict(f) for f in data.get("fields") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "languageId": self.language_id,
            "terms": [t.to_dict() for t in self.terms],
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass(frozen=True)
class Entry:
    """A persisted terminology entry, as returned by the server."""

    id: EntryId
    languages: Tuple[LanguageGroup, ...] = ()
    fields: Tuple[FieldGroup, ...] = ()

    @property
    def termbase_id(self) -> int:
        return self.id.termbase_id

    @property
    def uuid(self) -> str:
        return self.id.uuid

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        entry_id = EntryId.from_dict(data["id"])
        return cls(
            id=entry_id,
            languages=tuple(LanguageGroup.from_dict(lang) for lang in data.get("languages") or []),
            fields=tuple(FieldGroup.from_dict(f) for f in data.get("fields") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.to_dict(),
            "termbaseId": self.termbase_id,
            "languages": [lang.to_dict() for lang in self.languages],
            "fields": [f.to_dict() for f in self.fields],
        }

    def to_editable(self, schema: Optional[SchemaDefinition] = None) -> EditableEntry:
        """
        Convert back to an editable draft.

        Comparing the result with the submitted draft checks that the server
        stored the content unchanged.
        """
        return EditableEntry(
            termbase_id=self.termbase_id,
            languages=[
                EditableLanguageGroup(
                    language_id=language.language_id,
                    terms=[
                        EditableTermGroup(
                            term=term.term,
                            fields=[f.to_editable(schema) for f in term.fields],
                        )
                        for term in language.terms
                    ],
                    fields=[f.to_editable(schema) for f in language.fields],
                )
                for language in self.languages
            ],
            fields=[f.to_editable(schema) for f in self.fields],
        )


@dataclass(frozen=True)
class EntriesResult:
    entries: Tuple[Entry, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntriesResult":
        return cls(entries=tuple(Entry.from_dict(e) for e in data.get("entries") or [] if e))

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, uuid: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.uuid == uuid:
                return entry
        return None


@dataclass(frozen=True)
class UploadFileModel:
    """A media file to be uploaded with an entry or term request."""

    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def load(cls, path: Union[str, Path]) -> "UploadFileModel":
        """Read a file from disk, guessing its content type from the extension."""
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(file_name=path.name, content=path.read_bytes(), content_type=content_type)

    def __repr__(self) -> str:
        return f"UploadFileModel(file_name='{self.file_name}', size={len(self.content)})"
