"""
Test suite for the Kalcium client

Tests exercise the real client code paths against a mocked HTTP server
(respx), so request encoding, response decoding and error translation are
covered together.

Test Structure:
- test_http_client.py: Transport, error translation and version checks
- test_session.py: Login, logout and session state
- test_terminology.py: Termbases, definitions, entries and media files
- test_search.py: Search paging
- test_tasks.py: Term request lifecycle
- test_analysis.py: Segment analysis
- test_models.py: Wire models
- test_validation.py: Client-side entry validation
- test_config.py: Configuration and scenario files
- test_scenario.py: Scenario runner and the default scenario
- test_main.py: Command-line interface

Usage:
    pytest tests/ -v
"""

import json
import os
from typing import Any, Dict, Iterable, List, Optional

import httpx

from kalcium_client.http_client import KALC_API_VERSION, VERSION_HEADER

# Test API constants
TEST_BASE_URL = "http://kalcium.test"
TEST_USERNAME = "joker"
TEST_PASSWORD = "joker"
TEST_TOKEN = "test-token-123"
TEST_TERMBASE_ID = 1
TEST_TERMBASE_NAME = "Kalcium"
TEST_PROFILE_ID = 7

LANG_EN_US = 10
LANG_DE = 20

VERSION_HEADERS = {VERSION_HEADER: KALC_API_VERSION}

os.environ.setdefault("SSL_VERIFY", "true")


class MockAPIResponses:
    """Utility class for creating mock API responses."""

    @staticmethod
    def create_auth_response(token: str = TEST_TOKEN,
                             termbases: Iterable = ((1, True), (2, True), (3, False)),
                             check_term: bool = True,
                             profile_ids: Iterable[int] = (TEST_PROFILE_ID,)) -> Dict[str, Any]:
        """Create a login response with one group."""
        modules = ["Terminology"] + (["CheckTerm"] if check_term else [])
        return {
            "token": token,
            "userName": TEST_USERNAME,
            "groups": [
                {
                    "id": 100,
                    "name": "Translators",
                    "termbases": [{"termbaseId": tb_id, "isEnabled": enabled} for tb_id, enabled in termbases],
                    "enabledModules": modules,
                    "analysisProfileIds": list(profile_ids),
                    "isCheckTermModuleEnabled": check_term,
                }
            ],
        }

    @staticmethod
    def create_termbase(termbase_id: int = TEST_TERMBASE_ID, name: str = TEST_TERMBASE_NAME,
                        language_ids: Iterable[int] = (LANG_EN_US, LANG_DE)) -> Dict[str, Any]:
        return {"id": termbase_id, "name": name, "languageIds": list(language_ids), "schemaId": 5}

    @staticmethod
    def create_definition(termbase_id: int = TEST_TERMBASE_ID, name: str = TEST_TERMBASE_NAME,
                          with_media: bool = True) -> Dict[str, Any]:
        fields = [
            {"name": "Definition", "fieldType": "Text", "level": "Entry"},
            {"name": "Note", "fieldType": "Text", "level": "Term"},
        ]
        if with_media:
            fields.append({"name": "Image", "fieldType": "Multimedia", "level": "Entry"})
        return {
            "termbaseId": termbase_id,
            "termbaseName": name,
            "languageGroupDefinitions": [
                {"languageId": LANG_EN_US, "languageName": "English (US)"},
                {"languageId": LANG_DE, "languageName": "German"},
            ],
            "fieldDefinitions": fields,
        }

    @staticmethod
    def create_entry(uuid: str = "entry-uuid-1", termbase_id: int = TEST_TERMBASE_ID,
                     term: str = "test term", fields: Optional[List[Dict[str, Any]]] = None,
                     language_id: int = LANG_EN_US) -> Dict[str, Any]:
        return {
            "id": {"uuid": uuid, "termbaseId": termbase_id},
            "termbaseId": termbase_id,
            "languages": [
                {"languageId": language_id, "terms": [{"term": term, "fields": []}], "fields": []}
            ],
            "fields": fields or [],
        }

    @staticmethod
    def create_entry_from_request(request_json: Dict[str, Any], uuid: str = "entry-uuid-1") -> Dict[str, Any]:
        """Echo a submitted editable entry back as a persisted entry."""
        return {
            "id": {"uuid": uuid, "termbaseId": request_json["termbaseId"]},
            "termbaseId": request_json["termbaseId"],
            "languages": request_json["languages"],
            "fields": request_json.get("fields", []),
        }

    @staticmethod
    def create_term_request(request_id: int, model_json: Dict[str, Any]) -> Dict[str, Any]:
        return dict(model_json, id=request_id, status="Pending")

    @staticmethod
    def create_search_response(total: int, count: int, termbase_id: int = TEST_TERMBASE_ID,
                               start: int = 0) -> Dict[str, Any]:
        return {
            "total": total,
            "hits": [
                {"entryUuid": f"uuid-{i}", "termbaseId": termbase_id, "languageId": LANG_EN_US, "term": f"term {i}"}
                for i in range(start, start + count)
            ],
            "entries": [],
        }

    @staticmethod
    def create_profile(profile_id: int = TEST_PROFILE_ID,
                       termbase_ids: Iterable[int] = (TEST_TERMBASE_ID,)) -> Dict[str, Any]:
        return {
            "id": profile_id,
            "name": "Default profile",
            "termbaseSettings": [{"termbaseId": tb_id, "isEnabled": True} for tb_id in termbase_ids],
        }

    @staticmethod
    def create_languages() -> List[Dict[str, Any]]:
        return [
            {"id": LANG_EN_US, "code": "en-US", "name": "English (US)"},
            {"id": LANG_DE, "code": "de-DE", "name": "German"},
        ]

    @staticmethod
    def create_analyze_response(*results) -> Dict[str, Any]:
        """``results`` are (searched, is_problematical) pairs."""
        return {
            "analyzeResultPairs": [
                {"source": {"searched": searched, "isProblematical": flagged, "languageId": LANG_EN_US}}
                for searched, flagged in results
            ]
        }

    @staticmethod
    def create_error_response(status_code: int, message: Optional[str] = None,
                              short_message: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"statusCode": status_code}
        if message is not None:
            body["message"] = message
        if short_message is not None:
            body["shortMessage"] = short_message
        return body


def _entry_part(request, part_name: str = "entry") -> Dict[str, Any]:
    """JSON model of an entry or term request, sent plain or as multipart."""
    request.read()
    content_type = request.headers["content-type"]
    if content_type.startswith("application/json"):
        return json.loads(request.content)
    boundary = content_type.split("boundary=", 1)[1].encode()
    for part in request.content.split(b"--" + boundary):
        head, _, body = part.partition(b"\r\n\r\n")
        if f'name="{part_name}"'.encode() in head:
            return json.loads(body.rstrip(b"\r\n"))
    raise AssertionError(f"No {part_name} part in multipart request")


class FakeKalciumServer:
    """
    In-memory stand-in for a Kalcium server, installed on a respx router.

    Entries and term requests created through it can be queried and deleted
    again, so whole scenarios run against it.
    """

    def __init__(self, check_term: bool = True, with_media: bool = True):
        self.check_term = check_term
        self.with_media = with_media
        self.termbases = {
            1: MockAPIResponses.create_termbase(1, TEST_TERMBASE_NAME),
            2: MockAPIResponses.create_termbase(2, "Medical"),
            3: MockAPIResponses.create_termbase(3, "Hidden"),
        }
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.tasks: Dict[int, Dict[str, Any]] = {}
        self.logged_out = False
        self._next_entry = 0
        self._next_task = 100

    def install(self, router) -> "FakeKalciumServer":
        router.post("/api/account/login").mock(side_effect=self.login)
        router.post("/api/account/logout").mock(side_effect=self.logout)
        router.get("/api/terminology/termbases").mock(side_effect=self.get_termbases)
        router.get("/api/terminology/termbases/definitions").mock(side_effect=self.get_definitions)
        router.get("/api/terminology/languages").mock(
            return_value=httpx.Response(200, json=MockAPIResponses.create_languages(), headers=VERSION_HEADERS)
        )
        router.post("/api/search").mock(
            return_value=httpx.Response(200, json=MockAPIResponses.create_search_response(3, 3), headers=VERSION_HEADERS)
        )
        router.post(path__regex=r"/api/terminology/termbases/\d+/entries$").mock(side_effect=self.create_entry)
        router.post(path__regex=r"/api/terminology/termbases/\d+/entries/query$").mock(side_effect=self.query_entries)
        router.delete(path__regex=r"/api/terminology/termbases/\d+/entries/[^/]+$").mock(side_effect=self.delete_entry)
        router.get(path__regex=r"/api/terminology/termbases/\d+/media$").mock(
            return_value=httpx.Response(200, content=b"\x89PNG resized", headers=VERSION_HEADERS)
        )
        router.post("/api/tasks/termrequests").mock(side_effect=self.create_term_request)
        router.post("/api/tasks/termrequests/query").mock(side_effect=self.query_tasks)
        router.delete("/api/tasks").mock(side_effect=self.delete_tasks)
        router.get(path__regex=r"/api/analysis/profiles/\d+$").mock(
            return_value=httpx.Response(200, json=MockAPIResponses.create_profile(), headers=VERSION_HEADERS)
        )
        router.post("/api/analysis/segment").mock(
            return_value=httpx.Response(
                200, json=MockAPIResponses.create_analyze_response(("sentence", True), ("analyze", False)),
                headers=VERSION_HEADERS,
            )
        )
        return self

    @staticmethod
    def _ids(request) -> List[int]:
        return [int(i) for i in request.url.params.get_list("ids")]

    def login(self, request):
        return httpx.Response(200, json=MockAPIResponses.create_auth_response(check_term=self.check_term),
                              headers=VERSION_HEADERS)

    def logout(self, request):
        self.logged_out = True
        return httpx.Response(200, headers=VERSION_HEADERS)

    def get_termbases(self, request):
        return httpx.Response(200, json=[self.termbases[i] for i in self._ids(request) if i in self.termbases])

    def get_definitions(self, request):
        return httpx.Response(200, json=[
            MockAPIResponses.create_definition(i, self.termbases[i]["name"], with_media=self.with_media)
            for i in self._ids(request) if i in self.termbases
        ])

    def create_entry(self, request):
        self._next_entry += 1
        uuid = f"entry-uuid-{self._next_entry}"
        self.entries[uuid] = MockAPIResponses.create_entry_from_request(_entry_part(request), uuid)
        return httpx.Response(200, json=self.entries[uuid], headers=VERSION_HEADERS)

    def query_entries(self, request):
        uuids = json.loads(request.content)["uuids"]
        return httpx.Response(200, json={"entries": [self.entries[u] for u in uuids if u in self.entries]})

    def delete_entry(self, request):
        uuid = request.url.path.rsplit("/", 1)[-1]
        if self.entries.pop(uuid, None) is None:
            return httpx.Response(404, json=MockAPIResponses.create_error_response(404, "Entry not found"))
        return httpx.Response(204)

    def create_term_request(self, request):
        self._next_task += 1
        self.tasks[self._next_task] = MockAPIResponses.create_term_request(
            self._next_task, _entry_part(request, "termRequest")
        )
        return httpx.Response(200, json={"id": self._next_task})

    def query_tasks(self, request):
        ids = json.loads(request.content)["ids"]
        return httpx.Response(200, json=[self.tasks[i] for i in ids if i in self.tasks])

    def delete_tasks(self, request):
        ids = json.loads(request.content)["ids"]
        if any(i not in self.tasks for i in ids):
            return httpx.Response(404, json=MockAPIResponses.create_error_response(404, "Task not found"))
        for i in ids:
            del self.tasks[i]
        return httpx.Response(204)


async def login_client(client):
    """Log the client in against a mocked login route."""
    return await client.login(TEST_USERNAME, TEST_PASSWORD)


__all__ = [
    "TEST_BASE_URL",
    "TEST_USERNAME",
    "TEST_PASSWORD",
    "TEST_TOKEN",
    "TEST_TERMBASE_ID",
    "TEST_TERMBASE_NAME",
    "TEST_PROFILE_ID",
    "LANG_EN_US",
    "LANG_DE",
    "VERSION_HEADERS",
    "MockAPIResponses",
    "FakeKalciumServer",
    "login_client",
]
