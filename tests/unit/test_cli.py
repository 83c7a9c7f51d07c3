"""Unit tests for the knowledge-base management CLI (src.cli.ingest)."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.cli.ingest import _build_parser, main
from src.config.settings import Settings
from src.models.ingestion import IngestionState, IngestionSummary, ReclassifySummary, UrlOutcome
from src.models.knowledge import Partition, PartitionStats
from src.utils.errors import ConfigurationError

# ======================================================================
# Shared helpers
# ======================================================================


def _summary(*states: IngestionState) -> IngestionSummary:
    outcomes = [
        UrlOutcome(url=f"https://example.com/p{i}", state=state, chunks=2)
        for i, state in enumerate(states)
    ]
    return IngestionSummary.from_outcomes(outcomes)


def _components(**overrides: Any) -> dict[str, Any]:
    coordinator = MagicMock()
    coordinator.ingest = AsyncMock(return_value=_summary(IngestionState.DONE))
    coordinator.ingest_sitemap = AsyncMock(return_value=_summary(IngestionState.DONE))
    coordinator.ingest_blog_slugs = AsyncMock(return_value=_summary(IngestionState.DONE))
    coordinator.reclassify = AsyncMock(
        return_value=ReclassifySummary(urls=1, original_chunks=2, internal_chunks=2, client_chunks=1)
    )
    coordinator.purge_url = AsyncMock(return_value={p: 1 for p in Partition})

    store = MagicMock()
    store.stats = AsyncMock(
        side_effect=lambda partition, top_n=10: PartitionStats(
            partition=partition,
            total_chunks=4,
            total_urls=2,
            by_category_quality={"general/good": 4},
            top_urls=[("https://example.com/", 3)],
        )
    )

    ranker = MagicMock()
    ranker.search = AsyncMock(return_value=[])

    components = {
        "settings": Settings(site_base_url="https://example.com"),
        "coordinator": coordinator,
        "store": store,
        "ranker": ranker,
    }
    components.update(overrides)
    return components


def _run_main(argv: list[str], components: dict[str, Any]) -> int:
    with (
        patch("src.bootstrap.build_components", AsyncMock(return_value=components)),
        patch("src.bootstrap.close_components", AsyncMock()),
        pytest.raises(SystemExit) as exc_info,
    ):
        main(argv)
    return exc_info.value.code


# ======================================================================
# Parser
# ======================================================================


class TestParser:
    def test_search_defaults(self) -> None:
        args = _build_parser().parse_args(["search", "what do you build"])
        assert args.partition == "INTERNAL"
        assert args.top_k is None
        assert args.blog_only is False

    def test_purge_requires_url(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["purge"])

    def test_partition_choices_enforced(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["search", "q", "--partition", "knowledge_base_chunks"])


# ======================================================================
# Dispatch and exit codes
# ======================================================================


class TestMain:
    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_urls_all_succeeded(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        code = _run_main(["urls", "https://example.com/p0"], components)

        assert code == 0
        components["coordinator"].ingest.assert_awaited_once_with(["https://example.com/p0"])
        assert "Succeeded: 1" in capsys.readouterr().out

    def test_partial_failure_exit_code(self) -> None:
        components = _components()
        components["coordinator"].ingest_blog_slugs = AsyncMock(
            return_value=_summary(IngestionState.DONE, IngestionState.SKIPPED)
        )
        assert _run_main(["blog", "a", "b"], components) == 2

    def test_sitemap_defaults_to_site_sitemap(self) -> None:
        components = _components()
        _run_main(["sitemap"], components)
        components["coordinator"].ingest_sitemap.assert_awaited_once_with(
            "https://example.com/sitemap.xml"
        )

    def test_reclassify_single_url(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        code = _run_main(["reclassify", "--url", "https://example.com/"], components)

        assert code == 0
        components["coordinator"].reclassify.assert_awaited_once_with("https://example.com/")
        assert "client=1" in capsys.readouterr().out

    def test_purge_with_yes(self) -> None:
        components = _components()
        _run_main(["purge", "--url", "https://example.com/old", "--yes"], components)
        components["coordinator"].purge_url.assert_awaited_once_with("https://example.com/old")

    def test_purge_declined(self) -> None:
        components = _components()
        with patch("builtins.input", return_value="n"):
            code = _run_main(["purge", "--url", "https://example.com/old"], components)
        assert code == 0
        components["coordinator"].purge_url.assert_not_awaited()

    def test_stats_covers_every_partition(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        _run_main(["stats"], components)

        out = capsys.readouterr().out
        for partition in Partition:
            assert partition.table in out
        assert "general/good" in out

    def test_search_passes_options(self, capsys: pytest.CaptureFixture[str]) -> None:
        components = _components()
        _run_main(["search", "enterprise ai", "--partition", "CLIENT", "--top-k", "2"], components)

        query, options = components["ranker"].search.await_args.args
        assert query == "enterprise ai"
        assert options.partition is Partition.CLIENT
        assert options.top_k == 2
        assert "No results." in capsys.readouterr().out

    def test_knowledge_base_error_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        failing = AsyncMock(side_effect=ConfigurationError("Unknown embedding provider"))
        with (
            patch("src.bootstrap.build_components", failing),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["stats"])

        assert exc_info.value.code == 1
        assert "Unknown embedding provider" in capsys.readouterr().err
