# =============================================================================
# src/cli/ingest.py -- Knowledge-base management CLI
# =============================================================================
#
# Operator tool for the partitioned site knowledge base.  Usually run from
# cron after a deploy (sitemap) or after publishing a post (blog).
#
# Subcommands:
#
#   sitemap     -- ingest every URL listed in the site's sitemap.xml
#   urls        -- ingest explicit page URLs
#   blog        -- ingest blog posts by slug (<SITE_BASE_URL>/blog/<slug>)
#   reclassify  -- rebuild INTERNAL and CLIENT from ORIGINAL
#   purge       -- remove one URL from every partition
#   stats       -- per-partition chunk/URL counts
#   search      -- run a query against a partition
#
# Usage examples:
#   python -m src.cli.ingest sitemap
#   python -m src.cli.ingest blog my-new-post another-post
#   python -m src.cli.ingest search "enterprise AI development" --partition CLIENT
#   python -m src.cli.ingest purge --url https://example.com/old-page --yes
# =============================================================================

"""Command-line management of the site knowledge base.

Exit status is 0 when every URL succeeded, 2 when some URLs failed, and 1
on configuration or fatal errors.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from src.config.settings import Settings
from src.utils.errors import KnowledgeBaseError

_EXIT_OK = 0
_EXIT_ERROR = 1
_EXIT_PARTIAL = 2


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _print_summary(summary: Any) -> int:  # noqa: ANN401
    for outcome in summary.outcomes:
        if outcome.succeeded:
            print(
                f"  OK    {outcome.url}  "
                f"(chunks={outcome.chunks}, internal={outcome.internal_chunks}, "
                f"client={outcome.client_chunks})"
            )
        else:
            print(f"  {outcome.state.value:<5} {outcome.url}  ({outcome.reason})")
    print(f"\nSucceeded: {summary.succeeded}  Failed: {summary.failed}")
    return _EXIT_OK if summary.failed == 0 else _EXIT_PARTIAL


async def _handle_sitemap(args: argparse.Namespace, components: dict[str, Any]) -> int:
    source = args.source or components["settings"].resolved_sitemap()
    print(f"Reading sitemap {source}")
    summary = await components["coordinator"].ingest_sitemap(source)
    return _print_summary(summary)


async def _handle_urls(args: argparse.Namespace, components: dict[str, Any]) -> int:
    summary = await components["coordinator"].ingest(args.urls)
    return _print_summary(summary)


async def _handle_blog(args: argparse.Namespace, components: dict[str, Any]) -> int:
    summary = await components["coordinator"].ingest_blog_slugs(args.slugs)
    return _print_summary(summary)


async def _handle_reclassify(args: argparse.Namespace, components: dict[str, Any]) -> int:
    summary = await components["coordinator"].reclassify(args.url)
    print(
        f"Reclassified {summary.urls} URLs: original={summary.original_chunks} "
        f"internal={summary.internal_chunks} client={summary.client_chunks}"
    )
    return _EXIT_OK


async def _handle_purge(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Remove a URL from every partition.  Asks for confirmation unless --yes."""
    if not args.yes:
        confirm = input(f"  Delete every chunk for {args.url}? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return _EXIT_OK

    removed = await components["coordinator"].purge_url(args.url)
    for partition, count in removed.items():
        print(f"  {partition.value:<9} {count} rows removed")
    return _EXIT_OK


async def _handle_stats(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from src.models.knowledge import Partition

    store = components["store"]
    print("Knowledge Base Statistics")
    print("=" * 40)
    for partition in Partition:
        stats = await store.stats(partition, top_n=args.top)
        print(f"\n[{partition.value}] {partition.table}")
        print(f"  Total chunks:  {stats.total_chunks}")
        print(f"  Total URLs:    {stats.total_urls}")
        print(f"  Last updated:  {stats.last_updated or '-'}")
        for key, count in sorted(stats.by_category_quality.items()):
            print(f"    {key:<20} {count}")
        if stats.top_urls:
            print("  Top URLs:")
            for url, count in stats.top_urls:
                print(f"    {count:>5}  {url}")
    return _EXIT_OK


async def _handle_search(args: argparse.Namespace, components: dict[str, Any]) -> int:
    from src.models.knowledge import Partition, SearchOptions

    options = SearchOptions(
        top_k=args.top_k or components["settings"].search_default_top_k,
        url_filter=args.url_filter,
        blog_only=args.blog_only,
        min_relevance_score=args.min_score,
        partition=Partition(args.partition),
    )
    hits = await components["ranker"].search(args.query, options)
    if not hits:
        print("No results.")
        return _EXIT_OK
    for rank, hit in enumerate(hits, start=1):
        print(
            f"{rank:>2}. [{hit.source_type}] {hit.title}  "
            f"(distance={hit.distance:.4f}, keywords={hit.keyword_score:.1f})"
        )
        print(f"    {hit.url}")
        snippet = hit.text.replace("\n", " ")
        print(f"    {snippet[:200]}{'...' if len(snippet) > 200 else ''}")
    return _EXIT_OK


_HANDLERS = {
    "sitemap": _handle_sitemap,
    "urls": _handle_urls,
    "blog": _handle_blog,
    "reclassify": _handle_reclassify,
    "purge": _handle_purge,
    "stats": _handle_stats,
    "search": _handle_search,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Manage the partitioned site knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Knowledge-base commands")

    sitemap_parser = subparsers.add_parser("sitemap", help="Ingest every URL in a sitemap")
    sitemap_parser.add_argument(
        "--source", default=None, help="Sitemap file or URL (default: <SITE_BASE_URL>/sitemap.xml)"
    )

    urls_parser = subparsers.add_parser("urls", help="Ingest explicit page URLs")
    urls_parser.add_argument("urls", nargs="+", help="Page URLs")

    blog_parser = subparsers.add_parser("blog", help="Ingest blog posts by slug")
    blog_parser.add_argument("slugs", nargs="+", help="Post slugs")

    reclassify_parser = subparsers.add_parser(
        "reclassify", help="Rebuild INTERNAL and CLIENT from ORIGINAL"
    )
    reclassify_parser.add_argument("--url", default=None, help="Limit to one URL")

    purge_parser = subparsers.add_parser("purge", help="Remove a URL from every partition")
    purge_parser.add_argument("--url", required=True, help="URL to purge")
    purge_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    stats_parser = subparsers.add_parser("stats", help="Show partition statistics")
    stats_parser.add_argument("--top", type=int, default=10, help="Top URLs to list per partition")

    search_parser = subparsers.add_parser("search", help="Query a partition")
    search_parser.add_argument("query", help="Free-text query")
    search_parser.add_argument(
        "--partition",
        choices=["ORIGINAL", "INTERNAL", "CLIENT"],
        default="INTERNAL",
        help="Partition to search (default: INTERNAL)",
    )
    search_parser.add_argument("--top-k", type=int, default=None, dest="top_k")
    search_parser.add_argument("--url-filter", default=None, dest="url_filter")
    search_parser.add_argument("--blog-only", action="store_true", dest="blog_only")
    search_parser.add_argument("--min-score", type=float, default=None, dest="min_score")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred so `--help` does not import the provider stack.
    from src.bootstrap import build_components, close_components

    components = await build_components(app_settings)
    try:
        return await _HANDLERS[args.command](args, components)
    finally:
        await close_components(components)


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, build components, and dispatch to the handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(_EXIT_ERROR)

    app_settings = Settings()

    from src.utils.logging import configure_logging

    configure_logging(log_level=app_settings.log_level, app_env=app_settings.app_env)

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except KnowledgeBaseError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = _EXIT_ERROR

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
