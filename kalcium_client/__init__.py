"""
Kalcium Client

An async client for the Kalcium terminology server REST API, with an end-to-end
test scenario exercising it.

This package provides both a programmatic API and command-line interface for:
- Logging in and discovering the termbases enabled for the user
- Searching terms and reading termbase schema definitions
- Creating, reading and deleting entries with media attachments
- Submitting and deleting term requests
- Analyzing segments with the CheckTerm module

Usage:
    from kalcium_client import KalcClient

    async with KalcClient("http://localhost:42000") as client:
        await client.login("joker", "joker")
        termbases = await client.terminology.get_termbases()
        await client.logout()

Command Line:
    python -m kalcium_client --server http://localhost:42000 -u joker -p joker
"""

__version__ = "1.0.0"

from .client import KalcClient
from .config import Config, ScenarioSettings
from .http_client import (
    KALC_API_VERSION,
    ApiError,
    AuthenticationError,
    ConnectivityError,
    KalcError,
    MalformedResponseError,
    NotFoundError,
    VersionMismatchError,
)
from .main import KalciumTestClient
from .results import Result, attempt
from .scenario import ScenarioRunner, Step, StepOutcome, StepStatus, default_steps
from .session import NotAuthenticatedError, SessionExpiredError, SessionState
from .utils import logger
from .validation import EntryValidator, ValidationError

__all__ = [
    "KALC_API_VERSION",
    "ApiError",
    "AuthenticationError",
    "Config",
    "ConnectivityError",
    "EntryValidator",
    "KalcClient",
    "KalcError",
    "KalciumTestClient",
    "MalformedResponseError",
    "NotAuthenticatedError",
    "NotFoundError",
    "Result",
    "ScenarioRunner",
    "ScenarioSettings",
    "SessionExpiredError",
    "SessionState",
    "Step",
    "StepOutcome",
    "StepStatus",
    "ValidationError",
    "VersionMismatchError",
    "attempt",
    "default_steps",
    "logger",
]
