"""CLI entry point for the streaming job search service."""

import argparse
import asyncio
import json
import logging
import sys

from jobstream.core.config import Settings
from jobstream.core.errors import JobStreamError
from jobstream.core.schemas import SearchFilters
from jobstream.stream.consumer import SearchAggregate
from jobstream.stream.events import (
    JobsFound,
    ScraperComplete,
    ScraperError,
    SearchStarted,
    StreamEvent,
    UserMessage,
)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to settings YAML file (default: built-in defaults)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="jobstream - streaming multi-provider job search",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- serve subcommand ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP search server")
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: from config)")
    _add_common(serve_parser)

    # --- search subcommand ---
    search_parser = subparsers.add_parser("search", help="Run one streamed search")
    search_parser.add_argument(
        "--profile",
        required=True,
        help="Path to candidate profile YAML/JSON",
    )
    search_parser.add_argument(
        "--url",
        help="Search server URL; runs in-process when omitted",
    )
    search_parser.add_argument(
        "--experience",
        choices=["entry", "mid", "senior", "lead"],
        help="Preferred experience level",
    )
    search_parser.add_argument(
        "--salary",
        choices=["50k", "75k", "100k", "125k", "150k"],
        help="Minimum annual salary",
    )
    search_parser.add_argument(
        "--timezone",
        choices=["us-only", "europe", "global"],
        help="Region constraint",
    )
    search_parser.add_argument(
        "--remote-only",
        action="store_true",
        help="Keep only listings that look remote",
    )
    search_parser.add_argument(
        "--export",
        choices=["json"],
        help="Print the final listings in this format",
    )
    _add_common(search_parser)

    # --- providers subcommand ---
    providers_parser = subparsers.add_parser(
        "providers", help="Show which providers have credentials configured",
    )
    _add_common(providers_parser)

    # --- extract-profile subcommand ---
    extract_parser = subparsers.add_parser(
        "extract-profile",
        help="Extract a candidate profile from a resume (PDF or TXT) using an LLM",
    )
    extract_parser.add_argument(
        "--resume",
        required=True,
        help="Path to resume PDF or TXT file",
    )
    extract_parser.add_argument(
        "--output",
        default="config/profile.yaml",
        help="Output path for profile YAML (default: config/profile.yaml)",
    )
    extract_parser.add_argument(
        "--provider",
        default="openai",
        choices=["openai", "anthropic"],
        help="LLM provider for resume analysis (default: openai)",
    )
    extract_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def print_event(event: StreamEvent, aggregate: SearchAggregate) -> None:
    """Progressive rendering of stream events."""
    if isinstance(event, SearchStarted):
        print(event.message)
    elif isinstance(event, JobsFound):
        print(f"  + {event.provider}: {len(event.listings)} listings "
              f"({aggregate.total} so far, {event.elapsed_seconds:.1f}s)")
    elif isinstance(event, ScraperComplete):
        print(f"  . {event.provider}: no listings")
    elif isinstance(event, ScraperError):
        print(f"  ! {event.message}")
    elif isinstance(event, UserMessage):
        print(f"  [{event.severity}] {event.title}: {event.message}")


def print_results(aggregate: SearchAggregate, export_format: str | None) -> None:
    listings = aggregate.sorted_listings()
    print(f"\n{aggregate.summary}")
    print(f"Total listings: {aggregate.total}")
    for listing in listings[:20]:
        match = f"{listing.match_percentage}%" if listing.match_percentage is not None else "n/a"
        print(f"  [{match:>4}] {listing.title} - {listing.company} ({listing.source.value})")
        print(f"         {listing.salary} | {listing.location} | {listing.link}")

    if export_format == "json":
        payload = [l.model_dump(mode="json", by_alias=True) for l in listings]
        print(json.dumps(payload, indent=2))


async def run_search(args: argparse.Namespace, settings: Settings) -> SearchAggregate:
    """Run a search against a server, or in-process through the same frame codec."""
    from jobstream.profile.schema import CandidateProfile

    profile = CandidateProfile.from_yaml(args.profile)
    filters = SearchFilters(
        experience=args.experience,
        salary=args.salary,
        timezone=args.timezone,
        remote_only=args.remote_only,
    )

    if args.url:
        from jobstream.client import SearchClient

        client = SearchClient(args.url, timeout=settings.server.transport_timeout_seconds)
        return await client.search(profile, filters, on_event=print_event)

    import httpx

    from jobstream.pipeline.orchestrator import Orchestrator, prepare_search
    from jobstream.providers import build_adapters
    from jobstream.stream.consumer import StreamConsumer

    async with httpx.AsyncClient(follow_redirects=True) as http:
        adapters = build_adapters(http, settings)
        session = prepare_search(profile, filters, adapters, settings)
        consumer = StreamConsumer(on_event=print_event)
        return await consumer.consume(Orchestrator(settings).stream(session))


def cmd_serve(args: argparse.Namespace, settings: Settings) -> None:
    """Handle serve subcommand."""
    import uvicorn

    from jobstream.api.app import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


async def provider_report(settings: Settings) -> list[dict]:
    import httpx

    from jobstream.providers import build_adapters, provider_status_report

    async with httpx.AsyncClient() as http:
        return provider_status_report(build_adapters(http, settings))


def cmd_providers(settings: Settings) -> None:
    """Handle providers subcommand."""
    report = asyncio.run(provider_report(settings))
    for entry in report:
        mark = "configured" if entry["configured"] else "missing"
        print(f"  {entry['name']:<12} {mark:<11} ({', '.join(entry['envVars'])})")
    configured = sum(1 for e in report if e["configured"])
    print(f"{configured} of {len(report)} providers configured")


def cmd_extract_profile(args: argparse.Namespace) -> None:
    """Handle extract-profile subcommand."""
    from jobstream.profile.extractor import extract_text
    from jobstream.profile.llm_analyzer import analyze_resume

    print(f"Extracting text from {args.resume}...")
    text = extract_text(args.resume)
    print(f"Extracted {len(text)} characters.")

    print(f"Analyzing resume with {args.provider} provider...")
    profile = analyze_resume(text, provider=args.provider)
    profile.to_yaml(args.output)
    print(f"Profile written to {args.output}")
    print(f"  Seniority: {profile.seniority_level}")
    print(f"  Technical skills: {profile.technical_skills}")
    print(f"  Work experience: {profile.work_experience}")
    print(f"Review the profile and then run: python main.py search --profile {args.output}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "extract-profile":
        try:
            cmd_extract_profile(args)
        except (FileNotFoundError, ImportError, JobStreamError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        return

    try:
        settings = Settings.load(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "serve":
        cmd_serve(args, settings)
    elif args.command == "providers":
        cmd_providers(settings)
    else:
        try:
            aggregate = asyncio.run(run_search(args, settings))
        except (FileNotFoundError, ValueError, JobStreamError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print_results(aggregate, args.export)
        if aggregate.failed:
            sys.exit(1)


if __name__ == "__main__":
    main()
