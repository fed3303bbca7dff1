"""Runs scenarios against both transports and builds the report."""
import enum
import itertools
import json
import logging
import uuid
from dataclasses import dataclass, field

from taskboard.harness.clients import RestClient, RpcClient
from taskboard.harness.diff import diff_records
from taskboard.harness.normalize import NormalizedResponse, normalize_rest, normalize_rpc
from taskboard.harness.scenarios import Ref, Scenario, Step, resolve

logger = logging.getLogger(__name__)

SIDES = ("REST", "RPC")


class Verdict(str, enum.Enum):
    PASSED = "passed"
    FAILED = "failed"
    ABORTED = "aborted"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    name: str
    operation: str
    verdict: Verdict
    issues: list[str] = field(default_factory=list)
    responses: dict[str, NormalizedResponse] = field(default_factory=dict)


@dataclass
class ScenarioResult:
    name: str
    verdict: Verdict
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.verdict is Verdict.PASSED


class EmailAliases:
    """Rewrites scenario emails into per-run, per-transport addresses.

    ``a@example.com`` becomes ``a+<run>-rest@example.com`` on REST and
    ``a+<run>-rpc@example.com`` on RPC, so both sides can share one store
    and repeated runs never collide. ``unalias`` maps them back so records
    compare equal.
    """

    def __init__(self, enabled: bool = True, run_id: str | None = None):
        self.enabled = enabled
        self.run_id = run_id or uuid.uuid4().hex[:8]
        self._logical = {}

    def alias(self, email, side: str):
        if not self.enabled or not isinstance(email, str) or "@" not in email:
            return email
        local, _, domain = email.partition("@")
        aliased = f"{local}+{self.run_id}-{side.lower()}@{domain}"
        self._logical[aliased] = email
        return aliased

    def unalias(self, value):
        if isinstance(value, str):
            return self._logical.get(value, value)
        if isinstance(value, dict):
            return {k: self.unalias(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.unalias(v) for v in value]
        return value


def _contains_key(value, key: str) -> bool:
    if isinstance(value, dict):
        return key in value or any(_contains_key(v, key) for v in value.values())
    if isinstance(value, list):
        return any(_contains_key(v, key) for v in value)
    return False


def evaluate_step(step: Step, responses: dict[str, NormalizedResponse], captures: dict[str, dict]) -> list[str]:
    """Every equivalence and expectation check for one step; an empty list means it passed."""
    rest, rpc = responses["REST"], responses["RPC"]
    issues = []

    if rest.outcome.ok != rpc.outcome.ok:
        issues.append(f"Success state differs - REST {rest.status} vs RPC {rpc.status}")
    elif rest.outcome != rpc.outcome:
        issues.append(
            f"Status mismatch - REST {rest.status} ({rest.outcome.value}) vs RPC {rpc.status} ({rpc.outcome.value})"
        )

    for side, response in responses.items():
        if response.outcome is not step.expect:
            issues.append(f"[{side}] expected {step.expect.value}, got {response.outcome.value} ({response.status})")

    if rest.outcome.ok and rpc.outcome.ok:
        issues.extend(str(issue) for issue in diff_records(rest.record, rpc.record, step.check_values))
    elif not rest.outcome.ok and not rpc.outcome.ok and rest.message != rpc.message:
        issues.append(f"Error message differs - {rest.message!r} vs {rpc.message!r}")

    for side, response in responses.items():
        if step.expect_message is not None and response.message != step.expect_message:
            issues.append(f"[{side}] message is {response.message!r}, expected {step.expect_message!r}")
        if not response.outcome.ok:
            continue
        record = response.record
        for key, expected in step.expect_record.items():
            expected = resolve(expected, captures[side])
            actual = record.get(key) if isinstance(record, dict) else None
            if actual != expected:
                issues.append(f"[{side}] {key} is {actual!r}, expected {expected!r}")
        for key in step.expect_absent:
            if _contains_key(record, key):
                issues.append(f"[{side}] field {key!r} must not be present")
        for check in step.checks:
            issues.extend(f"[{side}] {problem}" for problem in check(record, captures[side]))

    return issues


class ScenarioRunner:
    def __init__(self, rest: RestClient, rpc: RpcClient, aliases: EmailAliases | None = None):
        self.clients = {"REST": rest, "RPC": rpc}
        self.aliases = aliases or EmailAliases()

    async def _call(self, side: str, step: Step, captures: dict) -> NormalizedResponse:
        args = resolve(step.args, captures)
        if "email" in args:
            args["email"] = self.aliases.alias(args["email"], side)
        token = Ref(step.auth).resolve(captures) if step.auth else None

        raw = await self.clients[side].call(step.operation, args, token)
        normalize = normalize_rest if side == "REST" else normalize_rpc
        response = normalize(step.operation, raw)
        response.record = self.aliases.unalias(response.record)
        return response

    async def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        result = ScenarioResult(scenario.name, Verdict.PASSED)
        captures = {side: {} for side in SIDES}
        steps = iter(scenario.steps)

        try:
            for step in steps:
                responses = {side: await self._call(side, step, captures[side]) for side in SIDES}
                issues = evaluate_step(step, responses, captures)
                verdict = Verdict.FAILED if issues else Verdict.PASSED
                result.steps.append(StepResult(step.name, step.operation, verdict, issues, responses))

                if issues:
                    # A failed capture leaves later steps without their inputs
                    result.verdict = Verdict.ABORTED if step.capture else Verdict.FAILED
                    break
                if step.capture:
                    for side in SIDES:
                        captures[side][step.capture] = responses[side].record
        except Exception as exc:
            logger.exception("[HARNESS] Scenario %s raised", scenario.name)
            result.verdict = Verdict.ABORTED
            result.error = f"scenario aborted: {exc!r}"
            result.steps.append(StepResult(step.name, step.operation, Verdict.FAILED, [result.error]))

        for step in steps:
            result.steps.append(StepResult(step.name, step.operation, Verdict.SKIPPED))

        logger.info("[HARNESS] %s: %s", scenario.name, result.verdict.value)
        return result

    async def run_all(self, scenarios) -> list[ScenarioResult]:
        return [await self.run_scenario(scenario) for scenario in scenarios]


def _side_by_side(left, right, width: int = 48) -> list[str]:
    left_lines = json.dumps(left, indent=2, sort_keys=True, default=str).splitlines()
    right_lines = json.dumps(right, indent=2, sort_keys=True, default=str).splitlines()
    return [
        f"      {a:<{width}} | {b}"
        for a, b in itertools.zip_longest(left_lines, right_lines, fillvalue="")
    ]


def render_report(results: list[ScenarioResult], show_responses: bool = False) -> str:
    lines = []
    counts = {verdict: 0 for verdict in Verdict}

    for scenario in results:
        tag = "PASS" if scenario.passed else scenario.verdict.value.upper()
        lines.append(f"[{tag}] {scenario.name}")
        for step in scenario.steps:
            counts[step.verdict] += 1
            lines.append(f"  - {step.name} ({step.operation}): {step.verdict.value}")
            lines.extend(f"      ! {issue}" for issue in step.issues)
            if show_responses and step.responses:
                rest, rpc = step.responses["REST"], step.responses["RPC"]
                lines.append(f"      {'REST ' + rest.status:<48} | RPC {rpc.status}")
                lines.extend(_side_by_side(rest.record or rest.message, rpc.record or rpc.message))

    scenario_counts = {verdict: sum(1 for r in results if r.verdict is verdict) for verdict in Verdict}
    lines.append("")
    lines.append(
        f"Scenarios: {scenario_counts[Verdict.PASSED]} passed, {scenario_counts[Verdict.FAILED]} failed, "
        f"{scenario_counts[Verdict.ABORTED]} aborted"
    )
    lines.append(
        f"Steps: {counts[Verdict.PASSED]} passed, {counts[Verdict.FAILED]} failed, "
        f"{counts[Verdict.SKIPPED]} skipped"
    )
    return "\n".join(lines)
