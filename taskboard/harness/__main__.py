"""Run the equivalence scenarios against running REST and RPC servers.

    python -m taskboard.harness --rest-url http://localhost:5001 --rpc-target localhost:50051
"""
import argparse
import asyncio
import sys

from taskboard.config import settings
from taskboard.harness.clients import RestClient, RpcClient
from taskboard.harness.runner import EmailAliases, ScenarioRunner, render_report
from taskboard.harness.scenarios import CATALOG, SCENARIOS
from taskboard.logging_config import configure_logging


async def run(args) -> int:
    scenarios = [SCENARIOS[name] for name in args.scenario] if args.scenario else CATALOG
    rest = RestClient(args.rest_url)
    rpc = RpcClient(args.rpc_target)
    try:
        runner = ScenarioRunner(rest, rpc, EmailAliases(enabled=not args.no_alias))
        results = await runner.run_all(scenarios)
    finally:
        await rest.close()
        await rpc.close()

    print(render_report(results, show_responses=args.show_responses))
    return 0 if all(result.passed for result in results) else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check that the REST and RPC transports behave identically")
    parser.add_argument("--rest-url", default=f"http://localhost:{settings.REST_PORT}")
    parser.add_argument("--rpc-target", default=f"localhost:{settings.GRPC_PORT}")
    parser.add_argument("--scenario", action="append", choices=sorted(SCENARIOS),
                        help="Run only this scenario (repeatable)")
    parser.add_argument("--show-responses", action="store_true",
                        help="Print both normalized responses side by side for every step")
    parser.add_argument("--no-alias", action="store_true",
                        help="Send scenario emails unchanged (only safe against empty, separate stores)")
    args = parser.parse_args(argv)

    configure_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
