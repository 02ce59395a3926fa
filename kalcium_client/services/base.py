"""
Common plumbing of the resource services.
"""

from typing import Any, Dict, Optional

from ..models.account import AuthenticationData
from ..session import NotAuthenticatedError, Session, SessionExpiredError, SessionState


class BaseService:
    """Typed facade over one resource family, bound to a session."""

    def __init__(self, session: Session):
        self.session = session

    def _authentication_data(self) -> AuthenticationData:
        if self.session.state == SessionState.EXPIRED:
            raise SessionExpiredError("Session has expired, log in again")
        data = self.session.authentication_data
        if data is None:
            raise NotAuthenticatedError("Not authenticated. Call login() first.")
        return data

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.session.request("GET", path, params=params, **kwargs)

    async def _post(self, path: str, json_body: Any = None, **kwargs) -> Any:
        return await self.session.request("POST", path, json_body=json_body, **kwargs)

    async def _delete(self, path: str, json_body: Any = None) -> None:
        await self.session.request("DELETE", path, json_body=json_body, expect="none")
