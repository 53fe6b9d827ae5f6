"""Command-line client for Niche Scout."""

import argparse
import asyncio
import logging
from typing import Optional

import httpx

from .app_client import NicheScoutClient, describe_error
from .config import ClientConfig, ConfigError, Settings
from .log import setup_logging
from .models import ProductSummary

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Amazon niche scout (Keepa search)")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("ping", help="Check the Keepa key and remaining tokens")

    search = sub.add_parser("search", help="Search products by keyword")
    search.add_argument("keyword", help="Search term, e.g. 'silicone spatula'")
    search.add_argument("--min-price", type=int, default=None, help="Minimum buy-box price in cents")
    search.add_argument("--max-price", type=int, default=None, help="Maximum buy-box price in cents")
    search.add_argument("--max-results", type=int, default=10, help="Maximum number of results")
    search.add_argument("--save", type=int, nargs="*", default=[],
                        help="1-based row numbers of results to save")

    history = sub.add_parser("history", help="Show recent searches and saved results")
    history.add_argument("--limit", type=int, default=10)

    watch = sub.add_parser("watch", help="Follow live updates of a collection")
    watch.add_argument("collection", choices=["searches", "results"])
    watch.add_argument("--limit", type=int, default=10)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", type=str, default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return p


def format_results(results: list[ProductSummary]) -> str:
    """Render search results as a plain-text table."""
    rows = [("#", "Title", "ASIN", "BuyBox", "Score")]
    for i, r in enumerate(results, start=1):
        rows.append((str(i), r.title[:60], r.asin, r.format_price(), f"{r.score}"))
    widths = [max(len(row[col]) for row in rows) for col in range(len(rows[0]))]
    return "\n".join(
        "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip()
        for row in rows
    )


async def cmd_ping(client: NicheScoutClient) -> None:
    info = await client.diagnostic_ping()
    print(f"Keepa OK. tokensLeft={info.get('tokensLeft', '?')}, refillIn={info.get('refillIn', '?')}s")


async def cmd_search(client: NicheScoutClient, args: argparse.Namespace) -> None:
    keyword = args.keyword.strip()
    if not keyword:
        print("Enter a keyword")
        return

    # Log the search intent before calling the function.
    await client.log_search(args.keyword)
    results = await client.search_products(
        args.keyword,
        min_price=args.min_price,
        max_price=args.max_price,
        max_results=args.max_results,
    )

    if not results:
        print("No results.")
        return
    print(format_results(results))

    for row in args.save:
        if not 1 <= row <= len(results):
            print(f"No result #{row}")
            continue
        item = results[row - 1]
        await client.save_result(item)
        print(f"Saved {item.asin}")


async def cmd_history(client: NicheScoutClient, limit: int) -> None:
    print("Recent Searches")
    searches = await client.recent_searches(limit)
    if not searches:
        print("  No searches yet.")
    for s in searches:
        when = f" - {s.created_at:%Y-%m-%d %H:%M:%S}" if s.created_at else ""
        print(f"  {s.keyword}{when}")

    print("\nSaved Results")
    saved = await client.saved_results(limit)
    if not saved:
        print("  No saved results yet.")
    for r in saved:
        price = f" ({r.format_price()})" if r.buy_box_price else ""
        print(f"  {r.title} - {r.asin}{price}")


async def cmd_watch(client: NicheScoutClient, collection: str, limit: int) -> None:
    async for snapshot in client.subscribe(collection, limit):
        print(f"\n{collection}: {len(snapshot)} records")
        for record in snapshot:
            if collection == "searches":
                print(f"  {record.keyword}")
            else:
                print(f"  {record.title} - {record.asin}")


async def run_client(
    args: argparse.Namespace,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    try:
        config = ClientConfig.from_env()
    except ConfigError as e:
        print(e)
        return 1

    async with NicheScoutClient(config, transport=transport) as client:
        try:
            if args.command == "ping":
                await cmd_ping(client)
            elif args.command == "search":
                await cmd_search(client, args)
            elif args.command == "history":
                await cmd_history(client, args.limit)
            elif args.command == "watch":
                await cmd_watch(client, args.collection, args.limit)
        except httpx.HTTPStatusError as e:
            logger.error("Store request failed: %s", e)
            print(f"Request failed: {e.response.status_code}")
            return 1
        except Exception as e:
            logger.debug("Call failed", exc_info=True)
            print(describe_error(e))
            return 1
    return 0


def run_server(host: str, port: int) -> None:
    import uvicorn

    from .api.main import create_app

    uvicorn.run(create_app(Settings.from_env()), host=host, port=port)


def run_cli(argv: Optional[list[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level or "WARNING")

    if args.command == "serve":
        run_server(args.host, args.port)
        return 0

    try:
        return asyncio.run(run_client(args))
    except KeyboardInterrupt:
        return 130
