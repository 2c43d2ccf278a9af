#!/usr/bin/env python3
"""
Job Automation - Main Entry Point

Usage:
    # Run API server
    python main.py server

    # Scrape a platform into the job store
    python main.py scrape --platform indeed --keywords "backend engineer" --country us --quantity 20

    # Apply to jobs
    python main.py apply --job-url https://... --profile path/to/profile.yaml
    python main.py apply --platform indeed --status pending --profile path/to/profile.yaml

    # Check a platform login
    python main.py test-platform --platform linkedin

    # Application stats
    python main.py stats --platform linkedin
    python main.py stats --dashboard
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import yaml

from api.config import SUPPORTED_PLATFORMS, get_config
from api.logging_config import setup_logging


def check_environment():
    """Print configuration problems (missing credentials, proxies, API key)."""
    problems = get_config().validate()
    if not problems:
        print("✅ Configuration OK")
        return

    print("⚠️  Configuration warnings:")
    for problem in problems:
        print(f"  - {problem}")


def load_profile(profile_path: Optional[str]):
    """Load an applicant profile from YAML."""
    from core.models import ApplicantProfile

    if not profile_path:
        return None
    with open(profile_path) as f:
        profile_data = yaml.safe_load(f) or {}
    return ApplicantProfile.from_dict(profile_data)


def print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = False):
    """Run the FastAPI server."""
    import uvicorn

    print(f"🚀 Starting server on {host}:{port}")
    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )


async def run_with_orchestrator(action):
    """Start an orchestrator, run one action against it, always shut down."""
    from core.orchestrator import JobOrchestrator

    orchestrator = JobOrchestrator(get_config())
    await orchestrator.start()
    try:
        return await action(orchestrator)
    finally:
        await orchestrator.shutdown()


async def scrape(args) -> int:
    result = await run_with_orchestrator(lambda o: o.scrape(
        args.platform,
        args.keywords,
        country=args.country,
        job_type=args.job_type,
        seniority=args.seniority,
        quantity=args.quantity,
    ))
    print_json(result.to_dict())
    return 0


async def apply(args) -> int:
    from core.models import JobFilter

    profile = load_profile(args.profile)

    if args.job_url:
        job = {"url": args.job_url, "platform": args.platform}
        result = await run_with_orchestrator(lambda o: o.apply_to_one(job, profile))
        print_json(result.to_dict())
        return 0 if result.succeeded else 1

    job_filter = JobFilter(
        platform=args.platform,
        status=args.status,
        date_from=args.date_from,
        date_to=args.date_to,
        limit=args.limit,
    )
    batch = await run_with_orchestrator(lambda o: o.apply_by_filter(job_filter, profile))
    print_json(batch.to_dict())
    return 0 if batch.failed_count == 0 else 1


async def test_platform(args) -> int:
    result = await run_with_orchestrator(lambda o: o.test_platform(args.platform))
    print_json(result.to_dict())
    return 0 if result.status == "success" else 1


async def stats(args) -> int:
    from api.database import JobStore

    from api.stats import dashboard_metrics

    store = JobStore(get_config().DATABASE_PATH)
    await store.init()
    if args.dashboard:
        print_json(await dashboard_metrics(store))
        return 0
    print_json(await store.get_application_stats(
        platform=args.platform, date_from=args.date_from, date_to=args.date_to
    ))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Automation - scrape job boards and apply through a browser"
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Server command
    server_parser = subparsers.add_parser('server', help='Run API server')
    server_parser.add_argument('--host', default=get_config().HOST, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=get_config().PORT, help='Port to bind to')
    server_parser.add_argument('--reload', action='store_true', help='Enable auto-reload')

    # Scrape command
    scrape_parser = subparsers.add_parser('scrape', help='Scrape job listings')
    scrape_parser.add_argument('--platform', required=True, choices=SUPPORTED_PLATFORMS)
    scrape_parser.add_argument('--keywords', required=True, help='Search keywords')
    scrape_parser.add_argument('--country', help='Country name or code (us, uk, ...)')
    scrape_parser.add_argument('--job-type', default='Remote', help='Remote, Hybrid, Full-time, ...')
    scrape_parser.add_argument('--seniority', help='junior, middle or senior')
    scrape_parser.add_argument('--quantity', type=int, help='Number of listings (1-100)')

    # Apply command
    apply_parser = subparsers.add_parser('apply', help='Apply to one job or to stored jobs by filter')
    apply_parser.add_argument('--job-url', help='Job posting URL (omit to apply by filter)')
    apply_parser.add_argument('--platform', choices=SUPPORTED_PLATFORMS)
    apply_parser.add_argument('--status', default='pending', help='Stored job status to match')
    apply_parser.add_argument('--date-from', help='YYYY-MM-DD')
    apply_parser.add_argument('--date-to', help='YYYY-MM-DD')
    apply_parser.add_argument('--limit', type=int, default=50, help='Maximum jobs to apply to')
    apply_parser.add_argument('--profile', help='Path to applicant profile YAML')

    # Test platform command
    test_parser = subparsers.add_parser('test-platform', help='Check that a platform is reachable and logged in')
    test_parser.add_argument('--platform', required=True, choices=SUPPORTED_PLATFORMS)

    # Stats command
    stats_parser = subparsers.add_parser('stats', help='Show application statistics')
    stats_parser.add_argument('--platform', choices=SUPPORTED_PLATFORMS)
    stats_parser.add_argument('--date-from', help='YYYY-MM-DD')
    stats_parser.add_argument('--date-to', help='YYYY-MM-DD')
    stats_parser.add_argument('--dashboard', action='store_true', help='Last 30 days summary')

    return parser


COMMANDS = {
    'scrape': scrape,
    'apply': apply,
    'test-platform': test_platform,
    'stats': stats,
}


def main():
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging("", get_config().LOG_DIR)
    check_environment()

    if args.command == 'server':
        run_server(args.host, args.port, args.reload)
        return

    sys.exit(asyncio.run(COMMANDS[args.command](args)))


if __name__ == "__main__":
    main()
