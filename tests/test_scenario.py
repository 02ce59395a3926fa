"""
Tests for the scenario runner and the default end-to-end scenario.
"""

import httpx
import pytest

from kalcium_client.client import KalcClient
from kalcium_client.config import ScenarioSettings
from kalcium_client.http_client import ApiError, MalformedResponseError
from kalcium_client.scenario import (
    DEFAULT_STEP_NAMES,
    ExpectationFailed,
    ScenarioContext,
    ScenarioRunner,
    Step,
    StepSkipped,
    StepStatus,
    default_steps,
    describe_error,
    expect,
)

from . import TEST_BASE_URL, TEST_PASSWORD, TEST_USERNAME, FakeKalciumServer, MockAPIResponses


@pytest.fixture
def settings(tmp_path):
    sample = tmp_path / "sample.png"
    sample.write_bytes(b"\x89PNG\r\n\x1a\nsample")
    return ScenarioSettings(sample_media_path=str(sample), download_dir=str(tmp_path))


def make_context(settings, client=None):
    return ScenarioContext(
        client=client or KalcClient(TEST_BASE_URL, ssl_verify=True),
        settings=settings,
        username=TEST_USERNAME,
        password=TEST_PASSWORD,
    )


def statuses(report):
    return {o.name: o.status for o in report.outcomes}


async def passing(ctx):
    return "value"


async def failing(ctx):
    raise ApiError(500, "Internal error")


class TestScenarioRunner:
    """Test step ordering, dependencies and outcome recording."""

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            ScenarioRunner([Step("a", passing), Step("a", passing)])

    def test_requires_must_reference_earlier_step(self):
        with pytest.raises(ValueError):
            ScenarioRunner([Step("a", passing, requires=("b",)), Step("b", passing)])

    def test_select_unknown_step(self):
        runner = ScenarioRunner(default_steps())
        with pytest.raises(ValueError) as exc_info:
            runner.select(["login", "make_coffee"])
        assert "make_coffee" in str(exc_info.value)

    def test_select_pulls_in_dependencies(self):
        runner = ScenarioRunner(default_steps()).select(["download_media"])
        assert runner.step_names == ["login", "query_termbases", "query_definitions",
                                     "create_entry", "download_media"]

    def test_select_nothing_keeps_all(self):
        assert ScenarioRunner(default_steps()).select(None).step_names == DEFAULT_STEP_NAMES

    @pytest.mark.asyncio
    async def test_failure_skips_dependents_only(self, settings):
        runner = ScenarioRunner([
            Step("first", failing),
            Step("second", passing, requires=("first",)),
            Step("third", passing),
        ])
        report = await runner.run(make_context(settings))

        assert statuses(report) == {
            "first": StepStatus.FAILED,
            "second": StepStatus.SKIPPED,
            "third": StepStatus.PASSED,
        }
        assert report.outcome("first").message == "ERROR [500] Internal error"
        assert report.outcome("second").message == "Skipped, requires first"
        assert not report.succeeded

    @pytest.mark.asyncio
    async def test_expectation_failure(self, settings):
        def never(value, ctx):
            expect(value == "other", "value mismatch")

        report = await ScenarioRunner([Step("a", passing, never)]).run(make_context(settings))

        outcome = report.outcome("a")
        assert outcome.status == StepStatus.FAILED
        assert outcome.value == "value"
        assert isinstance(outcome.error, ExpectationFailed)

    @pytest.mark.asyncio
    async def test_skipped_step_does_not_fail_run(self, settings):
        async def not_here(ctx):
            raise StepSkipped("module disabled")

        report = await ScenarioRunner([
            Step("a", not_here),
            Step("b", passing, requires=("a",)),
        ]).run(make_context(settings))

        assert report.outcome("a").status == StepStatus.SKIPPED
        assert report.outcome("a").message == "module disabled"
        assert report.outcome("b").status == StepStatus.SKIPPED
        assert report.succeeded

    @pytest.mark.asyncio
    async def test_malformed_response_recorded(self, settings):
        async def broken(ctx):
            raise MalformedResponseError("bad json")

        report = await ScenarioRunner([Step("a", broken)]).run(make_context(settings))
        assert report.outcome("a").status == StepStatus.FAILED

    @pytest.mark.asyncio
    async def test_unexpected_exceptions_propagate(self, settings):
        async def bug(ctx):
            raise KeyError("oops")

        with pytest.raises(KeyError):
            await ScenarioRunner([Step("a", bug)]).run(make_context(settings))

    def test_describe_error(self):
        assert describe_error(ApiError(404, "Entry not found")) == "ERROR [404] Entry not found"


class TestDefaultScenario:
    """Run the full scenario against the in-memory server."""

    @pytest.mark.asyncio
    async def test_full_scenario_passes(self, mock_api, settings, tmp_path):
        server = FakeKalciumServer().install(mock_api)
        ctx = make_context(settings)
        async with ctx.client:
            report = await ScenarioRunner(default_steps()).run(ctx)

        assert [o.name for o in report.outcomes] == DEFAULT_STEP_NAMES
        failed = [(o.name, o.message) for o in report.outcomes if o.status != StepStatus.PASSED]
        assert failed == []
        assert server.entries == {}
        assert server.tasks == {}
        assert server.logged_out
        assert ctx.downloaded_media.parent == tmp_path
        assert ctx.downloaded_media.read_bytes() == b"\x89PNG resized"
        assert [r.searched for r in report.outcome("segment_analysis").value.problematical()] == ["sentence"]

    @pytest.mark.asyncio
    async def test_check_term_disabled_skips_analysis(self, mock_api, settings):
        FakeKalciumServer(check_term=False).install(mock_api)
        ctx = make_context(settings)
        async with ctx.client:
            report = await ScenarioRunner(default_steps()).run(ctx)

        outcome = report.outcome("segment_analysis")
        assert outcome.status == StepStatus.SKIPPED
        assert outcome.message == "CT module is not enabled for the user"
        assert report.outcome("logout").status == StepStatus.PASSED
        assert report.succeeded

    @pytest.mark.asyncio
    async def test_no_media_field_skips_download(self, mock_api, settings):
        FakeKalciumServer(with_media=False).install(mock_api)
        ctx = make_context(settings)
        async with ctx.client:
            report = await ScenarioRunner(default_steps()).run(ctx)

        assert report.outcome("download_media").status == StepStatus.SKIPPED
        assert report.outcome("delete_entry").status == StepStatus.PASSED
        assert report.succeeded

    @pytest.mark.asyncio
    async def test_missing_termbase_fails_dependents(self, mock_api, settings):
        FakeKalciumServer().install(mock_api)
        settings.termbase_name = "Does not exist"
        ctx = make_context(settings)
        async with ctx.client:
            report = await ScenarioRunner(default_steps()).run(ctx)

        result = statuses(report)
        assert result["query_termbases"] == StepStatus.FAILED
        assert result["search"] == StepStatus.SKIPPED
        assert result["create_entry"] == StepStatus.SKIPPED
        assert result["segment_analysis"] == StepStatus.PASSED
        assert result["logout"] == StepStatus.PASSED

    @pytest.mark.asyncio
    async def test_entry_creation_error_keeps_going(self, mock_api, settings):
        # routes match in order, so the failing one goes in before the fake server
        mock_api.post("/api/terminology/termbases/1/entries").mock(
            return_value=httpx.Response(400, json=MockAPIResponses.create_error_response(400, "Field is read-only"))
        )
        server = FakeKalciumServer().install(mock_api)
        ctx = make_context(settings)
        async with ctx.client:
            report = await ScenarioRunner(default_steps()).select(
                ["create_entry", "delete_entry", "create_term_request", "logout"]
            ).run(ctx)

        result = statuses(report)
        assert result["create_entry"] == StepStatus.FAILED
        assert report.outcome("create_entry").message == "ERROR [400] Field is read-only"
        assert result["delete_entry"] == StepStatus.SKIPPED
        assert result["create_term_request"] == StepStatus.PASSED
        assert result["logout"] == StepStatus.PASSED
        assert server.logged_out

    @pytest.mark.asyncio
    async def test_login_failure_skips_everything(self, mock_api, settings):
        mock_api.post("/api/account/login").mock(
            return_value=httpx.Response(401, json=MockAPIResponses.create_error_response(401, "Invalid credentials"))
        )
        ctx = make_context(settings)
        async with ctx.client:
            report = await ScenarioRunner(default_steps()).run(ctx)

        assert report.outcome("login").status == StepStatus.FAILED
        assert report.outcome("login").message == "ERROR [401] Invalid credentials"
        assert all(o.status == StepStatus.SKIPPED for o in report.outcomes[1:])
