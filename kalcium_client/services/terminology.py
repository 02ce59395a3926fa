"""
Terminology service: termbases, schema definitions, languages, entries and media files.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..codec import encode_payload
from ..http_client import MalformedResponseError
from ..models.entries import EditableEntry, EntriesResult, Entry, UploadFileModel
from ..models.termbases import Language, SchemaDefinition, Termbase
from ..utils import format_file_size, logger
from ..validation import EntryValidator, ValidationError
from .base import BaseService

TERMBASES_PATH = "/api/terminology/termbases"
DEFINITIONS_PATH = "/api/terminology/termbases/definitions"
LANGUAGES_PATH = "/api/terminology/languages"


def _entries_path(termbase_id: int) -> str:
    return f"/api/terminology/termbases/{termbase_id}/entries"


def _media_path(termbase_id: int) -> str:
    return f"/api/terminology/termbases/{termbase_id}/media"


class TerminologyService(BaseService):
    """Access to termbases and their entries."""

    def _resolve_termbase_ids(self, ids: Optional[Iterable[int]], restrict_to_enabled: bool) -> List[int]:
        enabled = self._authentication_data().enabled_termbase_ids()
        if ids is None:
            return enabled
        ids = list(dict.fromkeys(ids))
        if not restrict_to_enabled:
            return ids
        visible = [tb_id for tb_id in ids if tb_id in enabled]
        hidden = [tb_id for tb_id in ids if tb_id not in enabled]
        if hidden:
            logger.debug(f"Ignoring termbases not enabled for the user: {hidden}")
        return visible

    async def get_termbases(self, ids: Optional[Iterable[int]] = None,
                            restrict_to_enabled: bool = True) -> List[Termbase]:
        """
        Fetch termbases by id.

        Args:
            ids: Termbase ids, defaults to every termbase enabled for the user
            restrict_to_enabled: Drop ids not enabled in any of the user's groups

        Returns:
            List of termbases
        """
        termbase_ids = self._resolve_termbase_ids(ids, restrict_to_enabled)
        if not termbase_ids:
            return []
        response = await self._get(TERMBASES_PATH, params={"ids": termbase_ids})
        return [Termbase.from_dict(item) for item in response or []]

    async def get_termbase_definitions(self, ids: Optional[Iterable[int]] = None,
                                       restrict_to_enabled: bool = True) -> List[SchemaDefinition]:
        """Fetch schema definitions; ``ids`` behaves as in :meth:`get_termbases`."""
        termbase_ids = self._resolve_termbase_ids(ids, restrict_to_enabled)
        if not termbase_ids:
            return []
        response = await self._get(DEFINITIONS_PATH, params={"ids": termbase_ids})
        return [SchemaDefinition.from_dict(item) for item in response or []]

    async def get_languages(self, ids: Iterable[int]) -> List[Language]:
        self._authentication_data()
        language_ids = list(dict.fromkeys(ids))
        if not language_ids:
            return []
        response = await self._get(LANGUAGES_PATH, params={"ids": language_ids})
        return [Language.from_dict(item) for item in response or []]

    async def create_entry(self, entry: EditableEntry, termbase_id: int,
                           media_files: Optional[Iterable[UploadFileModel]] = None,
                           schema: Optional[SchemaDefinition] = None) -> Entry:
        """
        Create an entry, uploading its media files alongside.

        Args:
            entry: Entry draft
            termbase_id: Target termbase
            media_files: Files referenced by multimedia fields of the entry
            schema: If given, the entry is validated against it before sending

        Returns:
            The persisted entry with its generated id

        Raises:
            ValidationError: If the draft does not fit the termbase
        """
        media_files = list(media_files or [])
        if entry.termbase_id != termbase_id:
            raise ValidationError(
                f"Entry belongs to termbase #{entry.termbase_id}, not #{termbase_id}"
            )
        if schema is not None:
            EntryValidator(schema).check(entry, media_files)

        logger.debug(f"Creating entry in termbase #{termbase_id} with {len(media_files)} media file(s)")
        response = await self._post(
            _entries_path(termbase_id),
            **encode_payload("entry", entry.to_dict(), media_files),
        )
        if not isinstance(response, dict) or "id" not in response:
            raise MalformedResponseError("Entry creation returned no id")
        created = Entry.from_dict(response)
        logger.info(f"[OK] Entry created with id #{created.uuid}")
        return created

    async def get_entries_by_uuid(self, termbase_id: int, uuids: Iterable[str],
                                  language_ids: Optional[Iterable[int]] = None,
                                  include_history: bool = False,
                                  include_comments: bool = False,
                                  include_fields: bool = True,
                                  include_term_requests: bool = False,
                                  include_links: bool = False) -> EntriesResult:
        """
        Fetch entries by uuid.

        Unknown uuids are simply missing from the result. The ``include_*``
        flags select which optional parts of the entries are returned.
        """
        body = {
            "uuids": list(uuids),
            "languageIds": list(language_ids or []),
            "includeHistory": include_history,
            "includeComments": include_comments,
            "includeFields": include_fields,
            "includeTermRequests": include_term_requests,
            "includeLinks": include_links,
        }
        response = await self._post(f"{_entries_path(termbase_id)}/query", body)
        return EntriesResult.from_dict(response or {})

    async def delete_entry(self, uuid: str, termbase_id: int) -> None:
        """
        Delete an entry.

        Raises:
            NotFoundError: If the entry does not exist
        """
        await self._delete(f"{_entries_path(termbase_id)}/{uuid}")
        logger.info(f"[OK] Entry {uuid} has been deleted")

    @staticmethod
    def _media_params(file_name: str, is_term_request: bool, term_request_id: Optional[int],
                      entry_uuid: Optional[str], field_id: Optional[str],
                      width: Optional[int], height: Optional[int]) -> dict:
        return {
            "fileName": file_name,
            "isTermRequest": is_term_request,
            "termRequestId": term_request_id,
            "entryUuid": entry_uuid,
            "fieldId": field_id,
            "width": width,
            "height": height,
        }

    async def get_media_file(self, termbase_id: int, file_name: str,
                             is_term_request: bool = False,
                             term_request_id: Optional[int] = None,
                             entry_uuid: Optional[str] = None,
                             field_id: Optional[str] = None,
                             width: Optional[int] = None,
                             height: Optional[int] = None) -> bytes:
        """
        Download a media file, resized when width/height are given.

        Raises:
            NotFoundError: If the file reference is stale
        """
        params = self._media_params(file_name, is_term_request, term_request_id,
                                    entry_uuid, field_id, width, height)
        return await self._get(_media_path(termbase_id), params=params, expect="bytes")

    async def download_media_file(self, termbase_id: int, file_name: str,
                                  destination: Union[str, Path],
                                  is_term_request: bool = False,
                                  term_request_id: Optional[int] = None,
                                  entry_uuid: Optional[str] = None,
                                  field_id: Optional[str] = None,
                                  width: Optional[int] = None,
                                  height: Optional[int] = None) -> Path:
        """
        Stream a media file to ``destination`` and return its path.

        The body is written to a ``.part`` file next to the destination and
        renamed into place once complete, so a failed download leaves nothing behind.
        """
        destination = Path(destination)
        partial = destination.with_name(destination.name + ".part")
        params = self._media_params(file_name, is_term_request, term_request_id,
                                    entry_uuid, field_id, width, height)
        size = 0
        try:
            async with self.session.stream("GET", _media_path(termbase_id), params=params) as response:
                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        size += len(chunk)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        partial.replace(destination)
        logger.debug(f"Downloaded {file_name} ({format_file_size(size)}) to {destination}")
        return destination
