"""
Main entry point and CLI for Ride Search.

Runs searches, popular route and city suggestion lookups, and cache
invalidation against the configured PostgreSQL store and Redis cache.
Results are printed as JSON.
"""

import asyncio
import argparse
import json
import logging
import sys
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

from ridesearch.caching import RedisSearchCache, SearchCache
from ridesearch.config import SearchSettings, get_search_settings
from ridesearch.db import close_connections, connect_postgres, connect_redis
from ridesearch.error_handling import RideSearchError
from ridesearch.services.mapping import OSRMMappingClient
from ridesearch.services.search import SearchOrchestrator
from ridesearch.store import PostgresRideStore


logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def filters_from_args(args: argparse.Namespace) -> dict:
    """
    Build a raw filter mapping from parsed CLI arguments.

    ``--filters`` supplies a JSON object; individual flags override it.
    """
    filters = json.loads(args.filters) if args.filters else {}
    overrides = {
        "originCity": args.origin,
        "destinationCity": args.destination,
        "departureDate": args.date,
        "minSeats": args.min_seats,
        "maxPrice": args.max_price,
        "sortBy": args.sort_by,
        "sortOrder": args.sort_order,
        "limit": args.limit,
    }
    filters.update({key: value for key, value in overrides.items() if value is not None})
    return filters


async def build_orchestrator(settings: SearchSettings):
    """Connect collaborators and return (orchestrator, pg_pool, redis_client)"""
    connections = settings.connections
    pg_pool = await connect_postgres(connections.database_url)
    try:
        redis_client = await connect_redis(connections.redis_url, connections.environment)
    except Exception:
        await close_connections(pg_pool)
        raise

    distributed = None
    if redis_client is not None:
        distributed = RedisSearchCache(
            redis_client,
            prefix=settings.cache.key_prefix,
            strict=settings.is_production,
        )

    mapping = None
    if connections.osrm_base_url:
        mapping = OSRMMappingClient(
            connections.osrm_base_url,
            timeout_seconds=connections.mapping_timeout_seconds,
        )

    orchestrator = SearchOrchestrator(
        store=PostgresRideStore(pg_pool),
        cache=SearchCache.create(settings.cache, distributed),
        mapping=mapping,
        settings=settings,
    )
    return orchestrator, pg_pool, redis_client


async def run_command(args: argparse.Namespace, settings: Optional[SearchSettings] = None) -> int:
    """
    Execute one CLI command.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    settings = settings or get_search_settings()
    orchestrator = None
    pg_pool = None
    redis_client = None

    try:
        orchestrator, pg_pool, redis_client = await build_orchestrator(settings)
        async with orchestrator:
            if args.command == "search":
                result = await orchestrator.search(filters_from_args(args), timeout=args.timeout)
                output = result.to_response()
            elif args.command == "popular":
                routes = await orchestrator.popular_routes(limit=args.limit)
                output = [route.model_dump(mode="json", by_alias=True) for route in routes]
            elif args.command == "suggest":
                suggestions = await orchestrator.suggestions(args.text, type=args.type)
                output = [item.model_dump(mode="json", by_alias=True) for item in suggestions]
            else:
                await orchestrator.invalidate_all()
                output = {"invalidated": True}

        print(json.dumps(output, indent=2))
        return 0

    except (RideSearchError, json.JSONDecodeError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    finally:
        if orchestrator is not None and orchestrator.mapping is not None:
            await orchestrator.mapping.close()
        await close_connections(pg_pool, redis_client)


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="ridesearch",
        description="Search published rides and inspect route statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Cheapest rides from Mumbai to Pune with 2 free seats
  ridesearch search --origin Mumbai --destination Pune --min-seats 2 --sort-by price

  # Full filter object
  ridesearch search --filters '{"originCity": "Mumbai", "flexibleDates": true, "departureDate": "2024-03-01"}'

  # Popular routes and city suggestions
  ridesearch popular --limit 5
  ridesearch suggest pu

  # After bulk ride updates
  ridesearch invalidate
        """
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Search rides")
    search.add_argument("--filters", default=None, help="Search filters as a JSON object")
    search.add_argument("--origin", default=None, help="Origin city")
    search.add_argument("--destination", default=None, help="Destination city")
    search.add_argument("--date", default=None, help="Departure date (YYYY-MM-DD)")
    search.add_argument("--min-seats", type=int, default=None, help="Minimum available seats")
    search.add_argument("--max-price", type=float, default=None, help="Maximum price per seat")
    search.add_argument(
        "--sort-by",
        choices=["price", "rating", "availableSeats", "duration", "departureTime"],
        default=None,
        help="Sort key"
    )
    search.add_argument("--sort-order", choices=["asc", "desc"], default=None, help="Sort direction")
    search.add_argument("--limit", type=int, default=None, help="Maximum rides to return")
    search.add_argument("--timeout", type=float, default=None, help="Search timeout in seconds")

    popular = subparsers.add_parser("popular", help="Most frequent routes")
    popular.add_argument("--limit", type=int, default=10, help="Number of routes")

    suggest = subparsers.add_parser("suggest", help="City name suggestions")
    suggest.add_argument("text", help="Partial city name")
    suggest.add_argument("--type", default="city", help="Suggestion type")

    subparsers.add_parser("invalidate", help="Clear every cache tier")

    return parser


def main(argv=None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error in main: {str(e)}")
        print(f"Unexpected error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
