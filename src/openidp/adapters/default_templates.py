"""ABOUTME: Default page templates shipped on disk, used when a client has no themed template
ABOUTME: Maps each page to its default layout and compiles both with Jinja2"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2
import structlog

from openidp.config import InvalidConfig
from openidp.domain.themes import render_in_layout
from openidp.service_layer.exceptions import DefaultTemplateNotConfigured

logger = structlog.get_logger(__name__)

# page name -> layout file under templates/layout/
DEFAULT_LAYOUTS: Mapping[str, str] = {
    "login": "default.html",
    "register": "default.html",
    "forgot-password": "default.html",
    "forgot-password-success": "default.html",
    "reset-password": "default.html",
    "reset-password-success": "default.html",
    "change-password": "portal.html",
    "user-profile": "portal.html",
}


@dataclass(frozen=True, slots=True)
class DefaultPage:
    name: str
    page_path: Path
    layout_path: Path


class DefaultTemplateCatalog:
    """Typed lookup table of default pages, with their compiled templates cached by page name.

    The files are static, so nothing is ever evicted from the cache.
    """

    def __init__(
        self,
        templates_dir: Path,
        layouts: Mapping[str, str] = DEFAULT_LAYOUTS,
        cache_compiled: bool = True,
    ) -> None:
        self.templates_dir = templates_dir
        self.pages = {
            page: DefaultPage(
                name=page,
                page_path=templates_dir / f"{page}.html",
                layout_path=templates_dir / "layout" / layout,
            )
            for page, layout in layouts.items()
        }
        self.cache_compiled = cache_compiled
        # the loader only serves {% include %} from inside default pages
        self._env = jinja2.Environment(loader=jinja2.FileSystemLoader(templates_dir), autoescape=True)
        self._compiled: dict[str, tuple[jinja2.Template, jinja2.Template]] = {}

    def lookup(self, page: str) -> DefaultPage:
        try:
            return self.pages[page]
        except KeyError:
            raise DefaultTemplateNotConfigured(f"No default layout configured for page '{page}'") from None

    def validate(self) -> None:
        """Check every configured file exists. Called once at application startup."""
        missing = [
            str(path)
            for default_page in self.pages.values()
            for path in (default_page.page_path, default_page.layout_path)
            if not path.is_file()
        ]
        if missing:
            raise InvalidConfig(f"Missing default templates: {', '.join(sorted(set(missing)))}")

    def compile(self, page: str) -> tuple[jinja2.Template, jinja2.Template]:
        """Return the compiled (page, layout) pair. A missing file raises FileNotFoundError."""
        if page in self._compiled:
            return self._compiled[page]

        default_page = self.lookup(page)
        layout_template = self._env.from_string(default_page.layout_path.read_text(encoding="utf-8"))
        page_template = self._env.from_string(default_page.page_path.read_text(encoding="utf-8"))
        logger.debug("compiled default template", page=page, layout=default_page.layout_path.name)

        if self.cache_compiled:
            self._compiled[page] = (page_template, layout_template)
        return page_template, layout_template

    def render(self, page: str, context: Mapping[str, Any]) -> str:
        page_template, layout_template = self.compile(page)
        return render_in_layout(page_template, layout_template, context)
