"""Tests for verdocs.publish.pages: redirect, landing and data rendering."""

from __future__ import annotations

from pathlib import Path

import yaml

from verdocs.publish.pages import PageRenderer
from verdocs.publish.version import VersionLabel


class TestRedirect:
    def test_targets_sibling_directory(self):
        html = PageRenderer().render_redirect(VersionLabel(1, 2, 0))
        assert 'content="0; url=../v1.2.0/"' in html
        assert 'href="../v1.2.0/"' in html
        assert 'window.location.href = "../v1.2.0/"' in html

    def test_prerelease_target(self):
        html = PageRenderer().render_redirect(VersionLabel(2, 0, 0, "rc.1"))
        assert "../v2.0.0-rc.1/" in html


class TestLanding:
    def test_lists_versions_in_given_order(self):
        versions = [VersionLabel(2, 0, 0, "rc.1"), VersionLabel(1, 2, 0), VersionLabel(1, 0, 0)]
        text = PageRenderer().render_landing("API Documentation", versions)
        assert text == (
            "# API Documentation\n"
            "\n"
            "- [v2.0.0-rc.1](v2.0.0-rc.1/)\n"
            "- [v1.2.0](v1.2.0/)\n"
            "- [v1.0.0](v1.0.0/)\n"
        )

    def test_no_versions(self):
        assert PageRenderer().render_landing("Docs", []).startswith("# Docs\n")


class TestSiteConfig:
    def test_includes_underscore_paths(self):
        data = yaml.safe_load(PageRenderer().render_site_config())
        assert data == {"include": ["_*"]}


class TestVersionsData:
    def test_numbers_without_prefix(self):
        text = PageRenderer.render_versions_data([VersionLabel(1, 2, 0), VersionLabel(1, 0, 0)])
        assert yaml.safe_load(text) == ["1.2.0", "1.0.0"]


class TestTemplateOverride:
    def test_custom_template_dir(self, tmp_path: Path):
        (tmp_path / "redirect.html").write_text("go to {{ target }}")
        renderer = PageRenderer(template_dir=tmp_path)
        assert renderer.render_redirect(VersionLabel(3, 1, 4)) == "go to v3.1.4"
