"""Generated root artifacts of the publish branch.

Stability: stable
Since: 0.1.0
Dependencies: jinja2, pyyaml
Doc-Types: API_REFERENCE
Tags: templates, jinja2, landing-page, redirect

Renders the small files verdocs writes itself: the ``latest`` redirect,
the synthesized landing page, the static-host configuration seeded into a
new branch and the optional versions data file. Templates live next to
this module in ``templates/`` and can be overridden by pointing
``template_dir`` at another directory with the same file names.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import yaml
from jinja2 import Environment, FileSystemLoader, select_autoescape

from verdocs.publish.version import VersionLabel

REDIRECT_TEMPLATE = "redirect.html"
LANDING_TEMPLATE = "landing.md"
SITE_CONFIG_TEMPLATE = "site_config.yml"


class PageRenderer:
    """Render verdocs-owned files from Jinja2 templates.

    Examples:
        >>> renderer = PageRenderer()
        >>> "../v1.2.3/" in renderer.render_redirect(VersionLabel(1, 2, 3))
        True
    """

    def __init__(self, template_dir: Path | None = None):
        if template_dir is None:
            template_dir = Path(__file__).parent / "templates"
        self.template_dir = Path(template_dir)

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render_redirect(self, target: VersionLabel) -> str:
        """HTML page redirecting ``latest/`` to ``../<target>/``."""
        return self.env.get_template(REDIRECT_TEMPLATE).render(target=str(target))

    def render_landing(self, title: str, versions: Sequence[VersionLabel]) -> str:
        """Markdown list of ``versions`` in the order given."""
        return self.env.get_template(LANDING_TEMPLATE).render(
            title=title,
            versions=[str(v) for v in versions],
        )

    def render_site_config(self) -> str:
        return self.env.get_template(SITE_CONFIG_TEMPLATE).render()

    @staticmethod
    def render_versions_data(versions: Sequence[VersionLabel]) -> str:
        """YAML list of version numbers without the ``v`` prefix."""
        return yaml.safe_dump([v.number for v in versions], default_flow_style=False)


__all__ = ["PageRenderer"]
