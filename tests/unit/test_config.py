"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

from src.config.loader import load_config
from src.config.settings import Settings
from src.services.ingestion.classifier import ClassifierRules


class TestSettings:
    def test_sitemap_defaults_to_site_root(self) -> None:
        settings = Settings(site_base_url="https://example.com/", sitemap_path="")
        assert settings.resolved_sitemap() == "https://example.com/sitemap.xml"

    def test_explicit_sitemap_wins(self) -> None:
        settings = Settings(sitemap_path="/srv/site/sitemap.xml")
        assert settings.resolved_sitemap() == "/srv/site/sitemap.xml"


class TestLoadConfig:
    def test_env_settings_override_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "chunking:\n  max_chunk_size: 50\n  extra: kept\nclassifier:\n  min_words: 3\n",
            encoding="utf-8",
        )
        settings = Settings(chunk_max_size=800, site_name="Acme")

        config = load_config(str(path), settings=settings)

        assert config["chunking"]["max_chunk_size"] == 800
        assert config["chunking"]["extra"] == "kept"
        assert config["classifier"]["min_words"] == 3
        assert config["site"]["name"] == "Acme"

    def test_missing_file_yields_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings())
        assert "classifier" not in config
        assert config["embedding"]["dimension"] == 1536

    def test_repository_config_builds_classifier_rules(self, project_root: Path) -> None:
        config = load_config(str(project_root / "config" / "config.yaml"), settings=Settings())
        rules = ClassifierRules.from_config(config)
        assert "/admin/" in rules.admin_paths
        assert rules.min_words == 10
        assert config["search"]["blog_path"] == "/blog/"
