"""
Shared fixtures: a respx router standing in for the Kalcium server.
"""

import httpx
import pytest
import respx

from kalcium_client.client import KalcClient

from . import TEST_BASE_URL, VERSION_HEADERS, MockAPIResponses


@pytest.fixture
def mock_api():
    """Router for the test server; unmatched requests fail the test."""
    with respx.mock(base_url=TEST_BASE_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def client():
    return KalcClient(TEST_BASE_URL, ssl_verify=True)


@pytest.fixture
def login_route(mock_api):
    """Login endpoint answering with the default authentication data."""
    return mock_api.post("/api/account/login").mock(
        return_value=httpx.Response(200, json=MockAPIResponses.create_auth_response(), headers=VERSION_HEADERS)
    )


@pytest.fixture
def logout_route(mock_api):
    return mock_api.post("/api/account/logout").mock(
        return_value=httpx.Response(200, headers=VERSION_HEADERS)
    )
