"""
Client-side validation of editable entries against a termbase schema definition.

The server is authoritative. This check only catches obviously malformed
entries before they are sent: unknown languages, unknown fields, fields at
the wrong level, values of the wrong type, and media references without an
uploaded file.

The structural part is expressed as a JSON Schema generated from the
``SchemaDefinition`` and checked with jsonschema.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from jsonschema import Draft7Validator

from .http_client import KalcError
from .models.entries import EditableEntry, EditableFieldGroup, UploadFileModel
from .models.termbases import FieldLevel, FieldType, SchemaDefinition
from .utils import logger


class ValidationError(KalcError):
    """Exception raised when a request is rejected before being sent."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or [message]
        super().__init__(message)


def _field_names(schema: SchemaDefinition, level: FieldLevel) -> List[str]:
    return [
        d.name for d in schema.field_definitions
        if d.level is None or d.level == level
    ]


def _fields_schema(names: List[str]) -> Dict[str, Any]:
    if not names:
        return {"type": "array", "maxItems": 0}
    return {
        "type": "array",
        "items": {
            "type": "object",
            "required": ["name", "value"],
            "properties": {
                "name": {"enum": names},
                "value": {"type": "string"},
                "fieldType": {"type": "string"},
            },
        },
    }


def build_entry_schema(schema: SchemaDefinition) -> Dict[str, Any]:
    """
    Generate the JSON Schema an editable entry of this termbase must satisfy.

    Args:
        schema: Schema definition of the termbase

    Returns:
        JSON Schema (draft 7) for the wire form of ``EditableEntry``
    """
    language_ids = schema.language_ids
    if language_ids:
        languages_schema = {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["languageId", "terms"],
                "properties": {
                    "languageId": {"enum": language_ids},
                    "terms": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["term"],
                            "properties": {
                                "term": {"type": "string", "pattern": r"\S"},
                                "fields": _fields_schema(_field_names(schema, FieldLevel.TERM)),
                            },
                        },
                    },
                    "fields": _fields_schema(_field_names(schema, FieldLevel.LANGUAGE)),
                },
            },
        }
    else:
        languages_schema = {"type": "array", "maxItems": 0}

    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "required": ["termbaseId", "languages"],
        "properties": {
            "termbaseId": {"const": schema.termbase_id},
            "languages": languages_schema,
            "fields": _fields_schema(_field_names(schema, FieldLevel.ENTRY)),
        },
    }


class EntryValidator:
    """Validates editable entries against one termbase schema definition."""

    def __init__(self, schema: SchemaDefinition):
        self.schema = schema
        self._validator = Draft7Validator(build_entry_schema(schema))

    def validate(self, entry: EditableEntry,
                 media_files: Optional[Iterable[UploadFileModel]] = None) -> Tuple[bool, List[str]]:
        """
        Validate an entry.

        Args:
            entry: Entry draft
            media_files: Files that will be uploaded with the entry

        Returns:
            Tuple of (is_valid, list_of_error_messages)
        """
        errors = []
        for error in sorted(self._validator.iter_errors(entry.to_dict()), key=lambda e: [str(p) for p in e.path]):
            error_path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            errors.append(f"Validation error at '{error_path}': {error.message}")

        errors.extend(self._check_duplicate_languages(entry))
        errors.extend(self._check_field_types(entry.all_fields()))
        errors.extend(self._check_media_references(entry, media_files or []))

        if errors:
            logger.debug(f"Entry failed validation for termbase #{self.schema.termbase_id}: {errors}")
        return not errors, errors

    def check(self, entry: EditableEntry,
              media_files: Optional[Iterable[UploadFileModel]] = None) -> None:
        """Like :meth:`validate` but raises ValidationError."""
        is_valid, errors = self.validate(entry, media_files)
        if not is_valid:
            raise ValidationError(
                f"Entry does not match schema of termbase #{self.schema.termbase_id}: {'; '.join(errors)}",
                errors,
            )

    @staticmethod
    def _check_duplicate_languages(entry: EditableEntry) -> List[str]:
        seen = set()
        errors = []
        for language in entry.languages:
            if language.language_id in seen:
                errors.append(f"Language #{language.language_id} appears more than once")
            seen.add(language.language_id)
        return errors

    def _check_field_types(self, fields: List[EditableFieldGroup]) -> List[str]:
        errors = []
        for field_group in fields:
            definition = self.schema.find_field(field_group.name)
            if definition is None:
                # reported by the structural check
                continue
            actual = field_group.value.field_type
            if definition.field_type != FieldType.OTHER and actual != definition.field_type:
                errors.append(
                    f"Field '{field_group.name}' expects {definition.field_type.value} value, got {actual.value}"
                )
        return errors

    @staticmethod
    def _check_media_references(entry: EditableEntry, media_files: Iterable[UploadFileModel]) -> List[str]:
        uploaded = {upload.file_name for upload in media_files}
        return [
            f"Media file '{name}' is referenced but not uploaded"
            for name in entry.media_file_names()
            if name not in uploaded
        ]
