"""
Declarative end-to-end scenario against a Kalcium server.

A scenario is an ordered list of :class:`Step` objects. Each step has:

- an async action,
- an optional post-condition,
- the names of the steps it depends on.

:class:`ScenarioRunner` executes the steps in order. A step whose
dependencies did not pass is skipped, so one failure does not abort
unrelated steps. Logout, for example, still runs when entry creation failed.
"""

import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .client import KalcClient
from .config import ScenarioSettings
from .http_client import ApiError, MalformedResponseError, NotFoundError
from .models.analysis import AnalyzeResultPairs, AnalyzeType, Segment
from .models.entries import (
    EditableEntry,
    EditableFieldGroup,
    EditableLanguageGroup,
    EditableTermGroup,
    Entry,
    MediaReference,
    UploadFileModel,
)
from .models.search import SearchMode, SearchRequest, SearchResult
from .models.tasks import CreateTermRequestModel, TermRequest
from .models.termbases import FieldType, SchemaDefinition, Termbase
from .results import attempt
from .utils import generate_uuid, logger, safe_json_dump


class ExpectationFailed(Exception):
    """Raised by a post-condition that does not hold."""
    pass


class StepSkipped(Exception):
    """Raised by an action that cannot run in the current environment."""
    pass


class StepStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[["ScenarioContext"], Awaitable[Any]]
    expect: Optional[Callable[[Any, "ScenarioContext"], None]] = None
    requires: Tuple[str, ...] = ()
    description: str = ""


@dataclass
class StepOutcome:
    name: str
    status: StepStatus
    value: Any = None
    error: Optional[BaseException] = None
    message: str = ""


@dataclass
class ScenarioContext:
    """State shared by the steps of one run."""

    client: KalcClient
    settings: ScenarioSettings
    username: str
    password: str
    termbases: Dict[int, Termbase] = field(default_factory=dict)
    definitions: Dict[int, SchemaDefinition] = field(default_factory=dict)
    termbase: Optional[Termbase] = None
    submitted_entry: Optional[EditableEntry] = None
    created_entry: Optional[Entry] = None
    downloaded_media: Optional[Path] = None
    submitted_term_request: Optional[CreateTermRequestModel] = None
    term_request: Optional[TermRequest] = None

    def definition(self) -> SchemaDefinition:
        if self.termbase is None or self.termbase.id not in self.definitions:
            raise ExpectationFailed("No schema definition for the selected termbase")
        return self.definitions[self.termbase.id]


@dataclass
class ScenarioReport:
    outcomes: List[StepOutcome] = field(default_factory=list)

    def by_status(self, status: StepStatus) -> List[StepOutcome]:
        return [o for o in self.outcomes if o.status == status]

    def outcome(self, name: str) -> Optional[StepOutcome]:
        for o in self.outcomes:
            if o.name == name:
                return o
        return None

    @property
    def succeeded(self) -> bool:
        return not self.by_status(StepStatus.FAILED)


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise ExpectationFailed(message)


def describe_error(error: BaseException) -> str:
    """One-line description, ``ERROR [status] message`` for API errors."""
    if isinstance(error, ApiError):
        return f"ERROR [{error.status_code}] {error.message}"
    return f"ERROR {error}"


class ScenarioRunner:
    """Runs an ordered list of steps."""

    def __init__(self, steps: Sequence[Step]):
        names = [step.name for step in steps]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate step names: {sorted(duplicates)}")
        for index, step in enumerate(steps):
            unknown = [r for r in step.requires if r not in names[:index]]
            if unknown:
                raise ValueError(f"Step '{step.name}' requires unknown or later steps: {unknown}")
        self.steps = list(steps)

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]

    def select(self, names: Optional[Iterable[str]]) -> "ScenarioRunner":
        """
        Restrict the run to the named steps and the steps they depend on,
        keeping scenario order.
        """
        if not names:
            return self
        wanted = list(names)
        unknown = [n for n in wanted if n not in self.step_names]
        if unknown:
            raise ValueError(f"Unknown steps: {unknown}. Available: {', '.join(self.step_names)}")
        by_name = {step.name: step for step in self.steps}
        selected = set()
        pending = list(wanted)
        while pending:
            name = pending.pop()
            if name not in selected:
                selected.add(name)
                pending.extend(by_name[name].requires)
        return ScenarioRunner([step for step in self.steps if step.name in selected])

    async def run_step(self, step: Step, context: ScenarioContext) -> StepOutcome:
        try:
            result = await attempt(step.action(context))
        except StepSkipped as e:
            logger.info(str(e))
            return StepOutcome(step.name, StepStatus.SKIPPED, message=str(e))
        except ExpectationFailed as e:
            logger.error(f"[ERROR] {step.name}: {e}")
            return StepOutcome(step.name, StepStatus.FAILED, error=e, message=str(e))
        except MalformedResponseError as e:
            logger.error(f"[ERROR] {step.name}: malformed server response: {e}")
            return StepOutcome(step.name, StepStatus.FAILED, error=e, message=str(e))

        if not result.ok:
            message = describe_error(result.error)
            logger.error(message)
            return StepOutcome(step.name, StepStatus.FAILED, error=result.error, message=message)

        if step.expect is not None:
            try:
                step.expect(result.value, context)
            except ExpectationFailed as e:
                logger.error(f"[ERROR] {step.name}: {e}")
                return StepOutcome(step.name, StepStatus.FAILED, value=result.value, error=e, message=str(e))

        return StepOutcome(step.name, StepStatus.PASSED, value=result.value)

    async def run(self, context: ScenarioContext) -> ScenarioReport:
        report = ScenarioReport()
        passed = set()
        for step in self.steps:
            missing = [r for r in step.requires if r not in passed]
            if missing:
                message = f"Skipped, requires {', '.join(missing)}"
                logger.debug(f"{step.name}: {message}")
                report.outcomes.append(StepOutcome(step.name, StepStatus.SKIPPED, message=message))
                continue

            logger.debug(f"Running step {step.name}")
            outcome = await self.run_step(step, context)
            report.outcomes.append(outcome)
            if outcome.status == StepStatus.PASSED:
                passed.add(step.name)
        return report


# ---------------------------------------------------------------------------
# Default scenario
# ---------------------------------------------------------------------------

async def login(ctx: ScenarioContext):
    logger.info(f"Connecting to Kalcium REST API on address {ctx.client.backend_url}")
    data = await ctx.client.login(ctx.username, ctx.password)
    logger.info(f"Successfully logged in with user {ctx.username}")
    return data


def _expect_logged_in(data, ctx: ScenarioContext) -> None:
    expect(ctx.client.session.is_authenticated, "Session is not authenticated after login")


async def query_termbases(ctx: ScenarioContext) -> Dict[int, Termbase]:
    logger.info("Querying available termbases")
    termbases = await ctx.client.terminology.get_termbases()
    for tb in termbases:
        logger.info(f" > Termbase '{tb.name}' [#{tb.id}] found")
    ctx.termbases = {tb.id: tb for tb in termbases}
    ctx.termbase = next(
        (tb for tb in termbases if tb.name == ctx.settings.termbase_name), None
    )
    return ctx.termbases


def _expect_test_termbase(termbases, ctx: ScenarioContext) -> None:
    expect(ctx.termbase is not None, f"Termbase '{ctx.settings.termbase_name}' is not available")
    enabled = set(ctx.client.authentication_data.enabled_termbase_ids())
    expect(set(termbases) <= enabled, "Server returned termbases not enabled for the user")


async def query_definitions(ctx: ScenarioContext) -> Dict[int, SchemaDefinition]:
    logger.info("Querying termbase schema definitions")
    definitions = await ctx.client.terminology.get_termbase_definitions()
    for tbdef in definitions:
        logger.info(f" > Definition for termbase '{tbdef.termbase_name}' [#{tbdef.termbase_id}] found")
    ctx.definitions = {d.termbase_id: d for d in definitions}
    return ctx.definitions


def _expect_test_definition(definitions, ctx: ScenarioContext) -> None:
    expect(ctx.termbase.id in definitions,
           f"No schema definition returned for termbase #{ctx.termbase.id}")


async def search(ctx: ScenarioContext) -> SearchResult:
    settings = ctx.settings
    logger.info(f"Test searching for '{settings.search_term}'")
    request = SearchRequest.for_termbase(
        ctx.termbase,
        term=settings.search_term,
        mode=SearchMode(settings.search_mode),
        start_index=settings.search_start_index,
        max_count=settings.search_max_count,
    )
    results = await ctx.client.search.search(request)
    logger.info(f" > Total number of matches: {results.total}")
    logger.info(f" > Number of hits returned: {len(results.hits)}")
    logger.info(f" > Number of related entries: {len(results.entries)}")
    return results


def _expect_page(results: SearchResult, ctx: ScenarioContext) -> None:
    expect(len(results.hits) <= ctx.settings.search_max_count,
           f"Search returned {len(results.hits)} hits, more than max count {ctx.settings.search_max_count}")
    expect(results.total >= len(results.hits), "Total number of matches is lower than the page size")


def build_entry(termbase: Termbase, definition: SchemaDefinition, term: str) -> EditableEntry:
    """Entry with one term in the first language of the termbase."""
    language = definition.language_group_definitions[0]
    return EditableEntry(
        termbase_id=termbase.id,
        languages=[
            EditableLanguageGroup(
                language_id=language.language_id,
                terms=[EditableTermGroup(term=term)],
            )
        ],
    )


async def create_entry(ctx: ScenarioContext) -> Entry:
    logger.info("Test creating entry")
    termbase = ctx.termbase
    definition = ctx.definition()
    expect(bool(definition.language_group_definitions), "Termbase has no languages")
    language = definition.language_group_definitions[0]

    entry = build_entry(
        termbase, definition,
        f"test term in termbase {termbase.name}, language {language.language_name}",
    )
    logger.info(f" > Adding term to language {language.language_name} (#{language.language_id}): "
                f"'{entry.languages[0].terms[0].term}'")

    text_field = definition.first_field_of_type(FieldType.TEXT)
    if text_field is not None:
        entry.fields.append(EditableFieldGroup.text(text_field.name, ctx.settings.text_field_value))
        logger.info(f" > Adding entry level text field, field name: {text_field.name}; "
                    f"value: {ctx.settings.text_field_value}")

    media_files = []
    media_field = definition.first_field_of_type(FieldType.MULTIMEDIA)
    sample_path = ctx.settings.sample_media_path
    if media_field is not None and sample_path and Path(sample_path).is_file():
        upload = UploadFileModel.load(sample_path)
        entry.fields.append(EditableFieldGroup.media(media_field.name, upload.file_name))
        media_files.append(upload)
        logger.info(f" > Adding media field {media_field.name}: {upload.file_name}")
    elif media_field is not None:
        logger.info(f" > Sample media file {sample_path} not found, media field left empty")

    ctx.submitted_entry = entry
    created = await ctx.client.terminology.create_entry(entry, termbase.id, media_files, schema=definition)
    logger.info(safe_json_dump(created))

    query_result = await ctx.client.terminology.get_entries_by_uuid(
        termbase.id, [created.uuid], termbase.language_ids, include_fields=True,
    )
    queried = query_result.find(created.uuid)
    if queried is not None:
        logger.info(f" > Entry #{created.uuid} has been queried again")
        logger.info(safe_json_dump(queried))
    ctx.created_entry = queried or created
    return queried


def _expect_round_trip(queried: Optional[Entry], ctx: ScenarioContext) -> None:
    expect(queried is not None, "Created entry could not be queried again")
    expect(queried.to_editable(ctx.definition()) == ctx.submitted_entry,
           "Queried entry content differs from the submitted entry")


async def download_media(ctx: ScenarioContext) -> Path:
    entry = ctx.created_entry
    media = [f for f in entry.fields if isinstance(f.typed_value(ctx.definition()), MediaReference)]
    if not media:
        raise StepSkipped("Entry has no media field, nothing to download")

    file_name = media[-1].value.raw
    download_dir = Path(ctx.settings.download_dir or tempfile.gettempdir())
    destination = download_dir / f"{generate_uuid()}{Path(file_name).suffix}"
    await ctx.client.terminology.download_media_file(
        entry.termbase_id, file_name, destination,
        entry_uuid=entry.uuid,
        width=ctx.settings.media_width,
        height=ctx.settings.media_height,
    )
    logger.info(f" >> Image attachment has been downloaded to {destination}")
    ctx.downloaded_media = destination
    return destination


def _expect_downloaded(path: Path, ctx: ScenarioContext) -> None:
    expect(path.is_file() and path.stat().st_size > 0, f"Downloaded media file {path} is empty")


async def delete_entry(ctx: ScenarioContext) -> bool:
    entry = ctx.created_entry
    logger.info(f"Deleting entry {entry.uuid}")
    await ctx.client.terminology.delete_entry(entry.uuid, entry.termbase_id)
    logger.info(f" > Entry {entry.uuid} has been deleted")
    try:
        remaining = await ctx.client.terminology.get_entries_by_uuid(
            entry.termbase_id, [entry.uuid], ctx.termbase.language_ids,
        )
    except NotFoundError:
        return True
    return remaining.find(entry.uuid) is None


def _expect_gone(gone: bool, ctx: ScenarioContext) -> None:
    expect(gone, "Deleted entry is still returned by the server")


async def create_term_request(ctx: ScenarioContext) -> List[TermRequest]:
    logger.info("Test creating term request")
    termbase = ctx.termbase
    definition = ctx.definition()
    expect(bool(definition.language_group_definitions), "Termbase has no languages")
    language = definition.language_group_definitions[0]
    entry = build_entry(
        termbase, definition,
        f"test term request in termbase {termbase.name}, language {language.language_name}",
    )
    model = CreateTermRequestModel(
        content=entry,
        termbase_id=termbase.id,
        comment=ctx.settings.term_request_comment,
        source_expression=entry.languages[0].terms[0].term,
        source_language_id=entry.languages[0].language_id,
    )
    ctx.submitted_term_request = model
    request_id = await ctx.client.term_requests.create_term_request(model)
    term_requests = await ctx.client.term_requests.get_tasks_by_id([request_id])
    if term_requests:
        ctx.term_request = term_requests[0]
    return term_requests


def _expect_one_term_request(term_requests: List[TermRequest], ctx: ScenarioContext) -> None:
    expect(len(term_requests) == 1, f"Expected one term request, got {len(term_requests)}")
    submitted = ctx.submitted_term_request
    expect(term_requests[0].content == submitted.content,
           "Term request content differs from the submission")
    expect(term_requests[0].source_expression == submitted.source_expression,
           "Term request source expression differs from the submission")


async def delete_term_request(ctx: ScenarioContext) -> bool:
    request_id = ctx.term_request.id
    logger.info(f"Deleting term request {request_id}")
    await ctx.client.base_tasks.delete([request_id])
    logger.info(f" > Term request {request_id} has been deleted")
    try:
        remaining = await ctx.client.term_requests.get_tasks_by_id([request_id])
    except NotFoundError:
        return True
    return not remaining


def _expect_term_request_gone(gone: bool, ctx: ScenarioContext) -> None:
    expect(gone, "Deleted term request is still returned by the server")


async def segment_analysis(ctx: ScenarioContext) -> AnalyzeResultPairs:
    client = ctx.client
    auth = client.authentication_data
    if not auth.is_check_term_enabled():
        raise StepSkipped("CT module is not enabled for the user")
    profile_ids = auth.analysis_profile_ids()
    if not profile_ids:
        raise StepSkipped("No Analysis profile is enabled for the user")

    profile = await client.analysis_profiles.get_analysis_profile(profile_ids[0])
    termbases = await client.terminology.get_termbases(profile.termbase_ids, restrict_to_enabled=False)
    all_language_ids = list(dict.fromkeys(lid for tb in termbases for lid in tb.language_ids))
    languages = await client.terminology.get_languages(all_language_ids)

    target_code = ctx.settings.target_language_code
    target = next((lang for lang in languages if target_code and lang.code == target_code), None)
    source_language_ids = all_language_ids[:1]
    if target is not None:
        target_language_ids = [target.id]
    else:
        target_language_ids = all_language_ids[1:2]

    segment = Segment(source_value=ctx.settings.segment_text, id=generate_uuid(), index=0)
    results = await client.analysis.analyze_segment(
        segment, profile.id, source_language_ids, target_language_ids, AnalyzeType.SOURCE,
    )
    for result in results.problematical():
        logger.info(f"Problematical hit is found '{result.searched}'")
    return results


def _expect_flagged_terms_named(results: AnalyzeResultPairs, ctx: ScenarioContext) -> None:
    expect(all(r.searched for r in results.problematical()),
           "Problematical result without searched term")


async def logout(ctx: ScenarioContext):
    await ctx.client.logout()
    logger.info("Successfully logged out")


def _expect_logged_out(value, ctx: ScenarioContext) -> None:
    expect(not ctx.client.session.is_authenticated, "Session still authenticated after logout")


def default_steps() -> List[Step]:
    """The end-to-end scenario of the test client."""
    return [
        Step("login", login, _expect_logged_in,
             description="Log in and load the user's groups"),
        Step("query_termbases", query_termbases, _expect_test_termbase, ("login",),
             description="Fetch the termbases enabled for the user"),
        Step("query_definitions", query_definitions, _expect_test_definition, ("query_termbases",),
             description="Fetch the schema definitions of the enabled termbases"),
        Step("search", search, _expect_page, ("query_termbases",),
             description="Prefix search in the test termbase"),
        Step("create_entry", create_entry, _expect_round_trip, ("query_definitions",),
             description="Create an entry with text and media fields and read it back"),
        Step("download_media", download_media, _expect_downloaded, ("create_entry",),
             description="Download the entry's media attachment resized"),
        Step("delete_entry", delete_entry, _expect_gone, ("create_entry",),
             description="Delete the created entry and check it is gone"),
        Step("create_term_request", create_term_request, _expect_one_term_request, ("query_definitions",),
             description="Submit a term request and read it back"),
        Step("delete_term_request", delete_term_request, _expect_term_request_gone, ("create_term_request",),
             description="Delete the term request and check it is gone"),
        Step("segment_analysis", segment_analysis, _expect_flagged_terms_named, ("login",),
             description="Analyze a segment with the first analysis profile"),
        Step("logout", logout, _expect_logged_out, ("login",),
             description="Log out"),
    ]


DEFAULT_STEP_NAMES = [step.name for step in default_steps()]
