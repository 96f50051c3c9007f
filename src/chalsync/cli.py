"""Command line entry point.

Exit codes: 0 converged, 1 diagnostics with errors, 2 usage, manifest or
state error, 3 invariant violation reported by CTFd.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable

import structlog

from chalsync.challenges.policy import FieldPolicy
from chalsync.challenges.reconciler import ChallengeReconciler
from chalsync.config import Settings, get_settings
from chalsync.ctfd.client import CTFdClient
from chalsync.diagnostics import Diagnostics, InvariantViolation
from chalsync.logging import setup_logging
from chalsync.manifest import ManifestError, load_manifest
from chalsync.runner import Outcome, apply_all, plan_all
from chalsync.state import StateError, StateFile

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_USAGE = 2
EXIT_INVARIANT = 3

Command = Callable[[argparse.Namespace, ChallengeReconciler, StateFile], Awaitable[int]]


def _print_diagnostics(name: str, diags: Diagnostics) -> None:
    for diag in diags:
        print(f"  {name}: {diag}")


def _print_outcomes(outcomes: list[Outcome]) -> int:
    code = EXIT_OK
    for outcome in outcomes:
        plan = outcome.plan
        drift = f" ({', '.join(plan.drift)})" if plan.drift else ""
        print(f"{plan.name}: {plan.action.value}{drift}")
        _print_diagnostics(plan.name, outcome.diagnostics)
        if not outcome.ok:
            code = EXIT_DIAGNOSTICS
    return code


# ── Commands ──


async def cmd_plan(args: argparse.Namespace, reconciler: ChallengeReconciler, state: StateFile) -> int:
    desired = load_manifest(args.manifest)
    return _print_outcomes(await plan_all(reconciler, desired, state))


async def cmd_apply(args: argparse.Namespace, reconciler: ChallengeReconciler, state: StateFile) -> int:
    desired = load_manifest(args.manifest)
    return _print_outcomes(await apply_all(reconciler, desired, state))


async def cmd_read(args: argparse.Namespace, reconciler: ChallengeReconciler, state: StateFile) -> int:
    stored = state.get(args.name)
    if stored is None:
        print(f"{args.name}: not in state", file=sys.stderr)
        return EXIT_USAGE

    result = await reconciler.read(stored)
    if result.missing:
        print(f"{args.name}: challenge {stored.id} no longer exists", file=sys.stderr)
        return EXIT_DIAGNOSTICS
    _print_diagnostics(args.name, result.diagnostics)
    if not result.ok or result.model is None:
        return EXIT_DIAGNOSTICS
    print(json.dumps(result.model.model_dump(mode="json"), indent=2))
    return EXIT_OK


async def cmd_import(args: argparse.Namespace, reconciler: ChallengeReconciler, state: StateFile) -> int:
    if state.get(args.name) is not None:
        print(f"{args.name}: already in state", file=sys.stderr)
        return EXIT_USAGE
    if not args.id.isdigit():
        print(f"invalid challenge id {args.id!r}", file=sys.stderr)
        return EXIT_USAGE

    result = await reconciler.import_challenge(args.id)
    if result.missing:
        print(f"{args.name}: challenge {args.id} does not exist", file=sys.stderr)
        return EXIT_DIAGNOSTICS
    _print_diagnostics(args.name, result.diagnostics)
    if not result.ok or result.model is None:
        return EXIT_DIAGNOSTICS
    state.put(args.name, result.model)
    state.save()
    print(f"{args.name}: imported challenge {args.id}")
    return EXIT_OK


async def cmd_destroy(args: argparse.Namespace, reconciler: ChallengeReconciler, state: StateFile) -> int:
    names = [args.name] if args.name else sorted(state.challenges)
    code = EXIT_OK
    for name in names:
        stored = state.get(name)
        if stored is None:
            print(f"{name}: not in state", file=sys.stderr)
            code = EXIT_USAGE
            continue
        result = await reconciler.delete(stored)
        _print_diagnostics(name, result.diagnostics)
        if not result.ok:
            code = EXIT_DIAGNOSTICS
            continue
        state.remove(name)
        state.save()
        print(f"{name}: destroyed")
    return code


# ── CLI ──


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chalsync",
        description="Converge CTFd challenges to a declarative manifest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what would change
  %(prog)s plan challenges.yaml

  # Converge CTFd to the manifest
  %(prog)s apply challenges.yaml

  # Adopt challenge 12 under the local name "warmup"
  %(prog)s import warmup 12
        """,
    )
    parser.add_argument("--url", help="CTFd base URL (default: CHALSYNC_CTFD_URL)")
    parser.add_argument("--api-key", help="CTFd admin token (default: CHALSYNC_CTFD_API_KEY)")
    parser.add_argument("--state", help="State file (default: CHALSYNC_STATE_FILE)")
    parser.add_argument("--log-format", choices=["console", "json"], help="Log renderer")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("plan", help="Show planned changes and drift")
    p.add_argument("manifest")
    p.set_defaults(handler=cmd_plan)

    p = sub.add_parser("apply", help="Converge CTFd to the manifest")
    p.add_argument("manifest")
    p.set_defaults(handler=cmd_apply)

    p = sub.add_parser("read", help="Print the remote state of a challenge")
    p.add_argument("name")
    p.set_defaults(handler=cmd_read)

    p = sub.add_parser("import", help="Adopt an existing challenge")
    p.add_argument("name")
    p.add_argument("id")
    p.set_defaults(handler=cmd_import)

    p = sub.add_parser("destroy", help="Delete one or every managed challenge")
    p.add_argument("name", nargs="?")
    p.set_defaults(handler=cmd_destroy)

    return parser.parse_args(argv)


def _settings_for(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.url:
        overrides["ctfd_url"] = args.url
    if args.api_key:
        overrides["ctfd_api_key"] = args.api_key
    if args.state:
        overrides["state_file"] = args.state
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return get_settings().model_copy(update=overrides)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    handler: Command = args.handler
    state = StateFile.load(settings.state_file)
    async with CTFdClient.from_settings(settings) as client:
        reconciler = ChallengeReconciler(client, FieldPolicy.from_settings(settings))
        return await handler(args, reconciler, state)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = _settings_for(args)
    setup_logging(settings)

    try:
        return asyncio.run(run(args, settings))
    except (ManifestError, StateError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except InvariantViolation as exc:
        logger.error("invariant_violation", error=str(exc))
        print(f"fatal: {exc}", file=sys.stderr)
        return EXIT_INVARIANT


if __name__ == "__main__":
    sys.exit(main())
