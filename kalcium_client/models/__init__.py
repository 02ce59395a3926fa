"""
Typed request/response models and their JSON wire codecs.
"""

from .account import AuthenticationData, Group, GroupTermbase, CHECK_TERM_MODULE
from .termbases import (
    FieldDefinition,
    FieldLevel,
    FieldType,
    Language,
    LanguageGroupDefinition,
    SchemaDefinition,
    Termbase,
)
from .entries import (
    EditableEntry,
    EditableFieldGroup,
    EditableLanguageGroup,
    EditableTermGroup,
    EntriesResult,
    Entry,
    EntryId,
    FieldGroup,
    FieldValue,
    LanguageGroup,
    MediaReference,
    OtherValue,
    TermGroup,
    TextValue,
    UploadFileModel,
)
from .search import (
    Hit,
    RawSearchResult,
    SearchFeature,
    SearchMode,
    SearchRequest,
    SearchResult,
    SearchTermbaseSettings,
)
from .tasks import CreateTermRequestModel, TermRequest
from .analysis import (
    AnalysisProfile,
    AnalyzeResult,
    AnalyzeResultPair,
    AnalyzeResultPairs,
    AnalyzeType,
    ProfileTermbaseSettings,
    Segment,
)

__all__ = [
    "AuthenticationData", "Group", "GroupTermbase", "CHECK_TERM_MODULE",
    "FieldDefinition", "FieldLevel", "FieldType", "Language", "LanguageGroupDefinition",
    "SchemaDefinition", "Termbase",
    "EditableEntry", "EditableFieldGroup", "EditableLanguageGroup", "EditableTermGroup",
    "EntriesResult", "Entry", "EntryId", "FieldGroup", "FieldValue", "LanguageGroup",
    "MediaReference", "OtherValue", "TermGroup", "TextValue", "UploadFileModel",
    "Hit", "RawSearchResult", "SearchFeature", "SearchMode", "SearchRequest", "SearchResult",
    "SearchTermbaseSettings",
    "CreateTermRequestModel", "TermRequest",
    "AnalysisProfile", "AnalyzeResult", "AnalyzeResultPair", "AnalyzeResultPairs",
    "AnalyzeType", "ProfileTermbaseSettings", "Segment",
]
