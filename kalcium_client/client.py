"""
Client facade bundling the transport, the session and the resource services.
"""

from typing import Optional

import httpx

from .http_client import KalcHttp
from .models.account import AuthenticationData
from .services import (
    AnalysisProfilesService,
    AnalysisService,
    BaseTasksService,
    SearchService,
    TermRequestsService,
    TerminologyService,
)
from .session import Session


class KalcClient:
    """
    Client for one Kalcium server and one user session.

    Instances are independent, so one process may hold several sessions.

    Usage:
        async with KalcClient("https://kalcium.example.com") as client:
            await client.login("user", "password")
            termbases = await client.terminology.get_termbases()
    """

    def __init__(self, server_url: str, timeout: float = 30,
                 ssl_verify: Optional[bool] = None,
                 ignore_kalc_version: bool = False,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.http = KalcHttp(
            server_url,
            timeout=timeout,
            ssl_verify=ssl_verify,
            ignore_kalc_version=ignore_kalc_version,
            transport=transport,
        )
        self.session = Session(self.http)

        self.terminology = TerminologyService(self.session)
        self.search = SearchService(self.session)
        self.term_requests = TermRequestsService(self.session)
        self.base_tasks = BaseTasksService(self.session)
        self.analysis_profiles = AnalysisProfilesService(self.session)
        self.analysis = AnalysisService(self.session)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def backend_url(self) -> str:
        return self.http.backend_url

    @property
    def authentication_data(self) -> Optional[AuthenticationData]:
        return self.session.authentication_data

    async def login(self, username: str, password: str) -> AuthenticationData:
        return await self.session.login(username, password)

    async def logout(self) -> None:
        await self.session.logout()

    async def close(self) -> None:
        """Close the HTTP connection pool, keeping the server session untouched."""
        await self.http.aclose()
