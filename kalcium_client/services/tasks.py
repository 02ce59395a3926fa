"""
Task management services: term requests and generic task operations.
"""

from typing import Iterable, List, Optional

from ..codec import encode_payload
from ..http_client import MalformedResponseError
from ..models.entries import UploadFileModel
from ..models.tasks import CreateTermRequestModel, TermRequest
from ..utils import logger
from .base import BaseService

TASKS_PATH = "/api/tasks"
TERM_REQUESTS_PATH = "/api/tasks/termrequests"


class TermRequestsService(BaseService):
    """Proposed entries waiting for review."""

    async def create_term_request(self, model: CreateTermRequestModel,
                                  media_files: Optional[Iterable[UploadFileModel]] = None,
                                  assignee_ids: Optional[Iterable[int]] = None) -> int:
        """
        Submit a term request.

        The request is queued for review. The server returns its id right
        away, it does not create an entry.

        Args:
            model: The proposal
            media_files: Files referenced by multimedia fields of the content
            assignee_ids: Users to assign the review to

        Returns:
            Id of the new term request
        """
        payload = model.to_dict()
        if assignee_ids:
            payload["assigneeIds"] = list(assignee_ids)
        response = await self._post(
            TERM_REQUESTS_PATH,
            **encode_payload("termRequest", payload, media_files),
        )
        if not isinstance(response, dict) or "id" not in response:
            raise MalformedResponseError("Term request creation returned no id")
        logger.info(f"[OK] Term request #{response['id']} created")
        return response["id"]

    async def get_tasks_by_id(self, ids: Iterable[int], include_history: bool = False,
                              include_comments: bool = False) -> List[TermRequest]:
        """Fetch term requests by id; unknown ids are missing from the result."""
        body = {
            "ids": list(ids),
            "includeHistory": include_history,
            "includeComments": include_comments,
        }
        response = await self._post(f"{TERM_REQUESTS_PATH}/query", body)
        return [TermRequest.from_dict(item) for item in response or []]


class BaseTasksService(BaseService):
    """Operations shared by every task type."""

    async def delete(self, ids: Iterable[int]) -> None:
        """
        Delete pending tasks.

        Raises:
            NotFoundError: If a task was already resolved or deleted
        """
        ids = list(ids)
        await self._delete(TASKS_PATH, json_body={"ids": ids})
        logger.info(f"[OK] Task(s) {ids} deleted")
