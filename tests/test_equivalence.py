"""Runs the scenario catalog against both transports in-process."""
import grpc
import httpx
import pytest

from conftest import make_context
from taskboard.harness.clients import RestClient, RpcClient
from taskboard.harness.outcomes import Outcome
from taskboard.harness.runner import EmailAliases, ScenarioRunner, Verdict, render_report
from taskboard.harness.scenarios import CATALOG, SCENARIOS, Ref, Scenario, Step
from taskboard.main import create_app
from taskboard.rpc.server import create_server


async def _runner(rest_context, rpc_context, aliases):
    app = create_app(rest_context)
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    server, port = create_server(rpc_context, "127.0.0.1:0")
    await server.start()
    channel = grpc.aio.insecure_channel(f"127.0.0.1:{port}")
    return ScenarioRunner(RestClient(http=http), RpcClient(channel=channel), aliases), server


@pytest.fixture
async def isolated_runner():
    # Separate, empty stores: emails can be sent unchanged
    runner, server = await _runner(make_context(), make_context(), EmailAliases(enabled=False))
    yield runner
    await runner.clients["REST"].close()
    await runner.clients["RPC"].close()
    await server.stop(None)


@pytest.fixture
async def shared_runner():
    context = make_context()
    runner, server = await _runner(context, context, EmailAliases(run_id="test"))
    yield runner
    await runner.clients["REST"].close()
    await runner.clients["RPC"].close()
    await server.stop(None)


@pytest.mark.parametrize("name", sorted(SCENARIOS))
async def test_scenario_passes_on_isolated_stores(isolated_runner, name):
    result = await isolated_runner.run_scenario(SCENARIOS[name])
    assert result.passed, render_report([result], show_responses=True)


async def test_catalog_passes_on_a_shared_store(shared_runner):
    results = await shared_runner.run_all(CATALOG)
    assert all(r.passed for r in results), render_report(results)


def test_aliases_round_trip():
    aliases = EmailAliases(run_id="abc")
    rest = aliases.alias("a@example.com", "REST")
    rpc = aliases.alias("a@example.com", "RPC")
    assert (rest, rpc) == ("a+abc-rest@example.com", "a+abc-rpc@example.com")
    assert aliases.unalias({"username": rest, "users": [{"username": rpc}]}) == {
        "username": "a@example.com", "users": [{"username": "a@example.com"}],
    }
    assert EmailAliases(enabled=False).alias("a@example.com", "REST") == "a@example.com"


async def test_failed_precondition_aborts_and_skips(isolated_runner):
    scenario = Scenario("broken_login", "Capture step fails", [
        Step("login unknown user", "login", {"email": "ghost@example.com", "password": "password123"},
             capture="session"),
        Step("list users", "list_users", auth="session.token"),
    ])
    result = await isolated_runner.run_scenario(scenario)

    assert result.verdict is Verdict.ABORTED
    assert [s.verdict for s in result.steps] == [Verdict.FAILED, Verdict.SKIPPED]
    assert any("expected Success, got Unauthenticated" in issue for issue in result.steps[0].issues)


async def test_failed_step_fails_scenario(isolated_runner):
    scenario = Scenario("wrong_expectation", "Expectation does not hold", [
        Step("create user", "create_user", {"email": "x@example.com", "password": "password123"},
             capture="user"),
        Step("get user without token", "get_user", {"user_id": Ref("user.id")}),
        Step("never runs", "list_users"),
    ])
    result = await isolated_runner.run_scenario(scenario)

    assert result.verdict is Verdict.FAILED
    assert [s.verdict for s in result.steps] == [Verdict.PASSED, Verdict.FAILED, Verdict.SKIPPED]

    report = render_report([result])
    assert "[FAILED] wrong_expectation" in report
    assert "Steps: 1 passed, 1 failed, 1 skipped" in report


async def test_report_lists_responses_side_by_side(isolated_runner):
    scenario = Scenario("signup_only", "Single step", [
        Step("create user", "create_user", {"email": "y@example.com", "password": "password123"},
             expect=Outcome.SUCCESS),
    ])
    result = await isolated_runner.run_scenario(scenario)
    report = render_report([result], show_responses=True)

    assert "[PASS] signup_only" in report
    assert "REST 201" in report and "RPC OK" in report
    assert "Scenarios: 1 passed, 0 failed, 0 aborted" in report
