# ./tests/tests_unit/test_experiments/test_cli_utils.py


###### IMPORT TOOLS ######
# global imports
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
import pytest

# local imports
import mock_tools.experiments.cli_utils as cli_utils
from mock_tools.data_base.crud import StoreUnavailableError
from mock_tools.experiments.schemas import ExperimentType, GenerationSummary


###### FAKE RESOURCES ######
class FakeResources:
    """Async context manager recording how the CLI acquired its collaborators."""
    instances = []

    def __init__(self, settings=None, use_store=False):
        self.settings = settings
        self.use_store = use_store
        self.sink = object()
        self.engine = object() if use_store else None
        self.entered = False
        self.exited = False
        FakeResources.instances.append(self)

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True
        return False


class ExplodingResources:
    def __init__(self, *args, **kwargs):
        raise AssertionError("Resources must not be created on argument errors")


###### FIXTURES ######
@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    """Stable lookback windows for default start dates."""
    monkeypatch.setattr(
        cli_utils,
        "get_settings",
        lambda: SimpleNamespace(DEFAULT_LOOKBACK_DAYS=14, WAREHOUSE_LOOKBACK_DAYS=10),
    )


@pytest.fixture
def fake_resources(monkeypatch):
    FakeResources.instances = []
    monkeypatch.setattr(cli_utils, "Resources", FakeResources)
    return FakeResources


@pytest.fixture
def template_calls(monkeypatch):
    """Replace every template with a spy that records its arguments."""
    calls = []

    def _spy(name):
        async def _template(*args, **kwargs):
            calls.append((name, args, kwargs))
            return GenerationSummary(users=1)
        return _template

    monkeypatch.setattr(cli_utils, "mock_experiment_events", _spy("experiment_events"))
    monkeypatch.setattr(cli_utils, "mock_funnel_experiment_with_trend_metrics", _spy("funnel_with_trend"))
    monkeypatch.setattr(cli_utils, "mock_data_warehouse_experiment", _spy("data_warehouse"))
    return calls


###### PARSER ######
def test_parser_reads_experiment_events_arguments():
    args = cli_utils.build_parser().parse_args(
        ["mock-experiment-events", "funnel", "my-flag", "--start_date", "2024-01-01T00:00:00.000Z", "--send-initial-events"]
    )
    assert args.command == "mock-experiment-events"
    assert args.type is ExperimentType.FUNNEL
    assert args.flag == "my-flag"
    assert args.start_date == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert args.send_initial_events is True


def test_parser_defaults():
    args = cli_utils.build_parser().parse_args(["mock-data-warehouse-experiment", "my-flag"])
    assert args.start_date is None
    assert args.send_initial_events is False


def test_invalid_experiment_type_is_rejected_before_side_effects(monkeypatch, capsys):
    monkeypatch.setattr(cli_utils, "Resources", ExplodingResources)
    with pytest.raises(SystemExit) as exc:
        cli_utils.main(["mock-experiment-events", "retention", "my-flag"])
    assert exc.value.code == 2
    assert 'Type must be either "funnel" or "trend"' in capsys.readouterr().err


def test_future_start_date_is_rejected(monkeypatch, capsys):
    monkeypatch.setattr(cli_utils, "Resources", ExplodingResources)
    with pytest.raises(SystemExit) as exc:
        cli_utils.main(["mock-experiment-events", "trend", "f", "--start_date", "2999-01-01T00:00:00Z"])
    assert exc.value.code == 2
    assert "must be before now" in capsys.readouterr().err


def test_no_arguments_prints_help(capsys):
    assert cli_utils.main([]) == 0
    out = capsys.readouterr().out
    assert "mock-experiment-events" in out
    assert "mock-data-warehouse-experiment" in out
    assert "mock-funnel-experiment-with-trend-metrics" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli_utils.main(["--version"])
    assert exc.value.code == 0
    assert cli_utils.VERSION in capsys.readouterr().out


###### RUN COMMAND ######
@pytest.mark.asyncio
async def test_run_command_experiment_events(fake_resources, template_calls):
    args = cli_utils.build_parser().parse_args(["mock-experiment-events", "trend", "my-flag"])
    before = datetime.now(timezone.utc)
    summary = await cli_utils.run_command(args)
    assert summary.users == 1

    name, call_args, _ = template_calls[0]
    assert name == "experiment_events"
    sink, experiment_type, flag, start_date, initial = call_args
    assert sink is fake_resources.instances[0].sink
    assert experiment_type is ExperimentType.TREND
    assert flag == "my-flag"
    assert initial is False
    assert abs((before - timedelta(days=14)) - start_date) < timedelta(seconds=5)

    res = fake_resources.instances[0]
    assert res.use_store is False
    assert res.entered and res.exited


@pytest.mark.asyncio
async def test_run_command_data_warehouse_uses_store_and_ten_day_window(fake_resources, template_calls):
    args = cli_utils.build_parser().parse_args(["mock-data-warehouse-experiment", "f", "--send-initial-events"])
    before = datetime.now(timezone.utc)
    await cli_utils.run_command(args)

    name, call_args, _ = template_calls[0]
    assert name == "data_warehouse"
    sink, engine, flag, start_date, initial = call_args
    res = fake_resources.instances[0]
    assert res.use_store is True
    assert engine is res.engine
    assert initial is True
    assert abs((before - timedelta(days=10)) - start_date) < timedelta(seconds=5)


@pytest.mark.asyncio
async def test_run_command_funnel_with_trend_keeps_explicit_start_date(fake_resources, template_calls):
    args = cli_utils.build_parser().parse_args(
        ["mock-funnel-experiment-with-trend-metrics", "f", "--start_date", "2024-01-01T00:00:00Z"]
    )
    await cli_utils.run_command(args)
    name, call_args, _ = template_calls[0]
    assert name == "funnel_with_trend"
    assert call_args[2] == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert fake_resources.instances[0].use_store is False


@pytest.mark.asyncio
async def test_run_command_releases_resources_on_error(fake_resources, monkeypatch):
    async def _boom(*args, **kwargs):
        raise StoreUnavailableError("Error creating payments table: boom")
    monkeypatch.setattr(cli_utils, "mock_data_warehouse_experiment", _boom)
    args = cli_utils.build_parser().parse_args(["mock-data-warehouse-experiment", "f"])
    with pytest.raises(StoreUnavailableError):
        await cli_utils.run_command(args)
    assert fake_resources.instances[0].exited is True


###### MAIN ######
def test_main_runs_command_and_returns_zero(monkeypatch):
    called = {}
    async def spy_run_command(args):
        called["args"] = args
        return GenerationSummary(users=3, first_events=3)
    monkeypatch.setattr(cli_utils, "run_command", spy_run_command)
    assert cli_utils.main(["mock-experiment-events", "funnel", "my-flag"]) == 0
    assert called["args"].flag == "my-flag"
    assert called["args"].type is ExperimentType.FUNNEL


def test_main_returns_one_when_store_unavailable(monkeypatch, caplog):
    async def failing_run_command(args):
        raise StoreUnavailableError("Error connecting to the data warehouse: refused")
    monkeypatch.setattr(cli_utils, "run_command", failing_run_command)
    assert cli_utils.main(["mock-data-warehouse-experiment", "f"]) == 1
    assert "aborted" in caplog.text
