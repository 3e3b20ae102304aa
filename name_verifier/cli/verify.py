"""Standalone CLI for verifying band and song names.

Usage::

    python -m name_verifier.cli verify "Midnight Static"
    python -m name_verifier.cli.verify "Velvet Harbor" "Glass Owls" --type band
    python -m name_verifier.cli.verify "Yesterday" --type song --json

Builds the same component graph as the API server, runs one batch
verification and prints a short report per name, or the camelCase JSON
results with ``--json``.  Exit code is 0 on success and 2 when the input
is rejected.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from name_verifier.models.verification import VerificationOptions, VerificationResult
from name_verifier.utils.errors import InvalidInputError
from name_verifier.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_text_output(name: str, result: VerificationResult) -> str:
    """Format one verification result as a human-readable block."""
    lines = [f"{name}: {result.status.value.upper()}"]
    if result.confidence is not None:
        level = result.confidence_level.value if result.confidence_level else "n/a"
        lines.append(f"  Confidence: {result.confidence:.0%} ({level})")
    if result.aggregation_quality is not None:
        lines.append(f"  Evidence quality: {result.aggregation_quality.value}")
    lines.append(f"  {result.details}")
    if result.similar_names:
        lines.append(f"  Similar: {', '.join(result.similar_names)}")
    for link in result.verification_links:
        lines.append(f"  - {link.name}: {link.url}")
    return "\n".join(lines)


def _format_json_output(names: list[str], results: list[VerificationResult]) -> str:
    payload = [
        {"name": name, "verification": result.model_dump(mode="json", by_alias=True)}
        for name, result in zip(names, results, strict=True)
    ]
    return json.dumps(payload, indent=2)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _suppress_logs() -> None:
    """Keep stdout for the report: WARNING+ log lines only, on stderr."""
    configure_logging("WARNING", stream=sys.stderr)


async def _run(args: argparse.Namespace, quiet: bool) -> int:
    # Deferred: importing main configures logging and reads settings.
    from name_verifier.main import build_components, settings

    if quiet:
        _suppress_logs()

    components = build_components(settings)
    service = components["verification_service"]
    options = VerificationOptions(
        cache_enabled=False,
        platforms_to_query=args.platforms or None,
    )

    try:
        results = await service.verify_names(
            [{"name": name, "type": args.type} for name in args.names],
            options=options,
        )
    except InvalidInputError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 2
    finally:
        await components["http_client"].aclose()

    if args.json_output:
        print(_format_json_output(args.names, results))
    else:
        print("\n\n".join(_format_text_output(n, r) for n, r in zip(args.names, results, strict=True)))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m name_verifier.cli.verify",
        description="Check whether band or song names are already taken.",
    )
    parser.add_argument("names", nargs="+", help="One or more names to verify.")
    parser.add_argument(
        "--type", "-t",
        choices=["band", "song"],
        default="band",
        help="Kind of name being verified (default: band).",
    )
    parser.add_argument(
        "--platform", "-p",
        dest="platforms",
        action="append",
        help="Restrict to a source (spotify, itunes, musicbrainz, bandcamp, famous). Repeatable.",
    )
    parser.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print results as JSON.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output (implied by --json).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the verify tool.

    A leading ``verify`` token is accepted so both
    ``python -m name_verifier.cli verify NAME`` and the bare form work.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "verify":
        argv = argv[1:]
    args = _build_parser().parse_args(argv)
    quiet = args.quiet or args.json_output
    sys.exit(asyncio.run(_run(args, quiet)))


if __name__ == "__main__":
    main()
