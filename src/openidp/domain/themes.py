"""ABOUTME: Theme, Layout and Template domain models for per-client page customisation
ABOUTME: A themed Template renders its own Jinja2 code inside its Layout"""

import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import jinja2
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup

# Theme code is stored in the database, so it never gets the full Jinja2 environment
_sandbox = SandboxedEnvironment(autoescape=True)


def render_in_layout(page_template: jinja2.Template, layout_template: jinja2.Template, context: Mapping[str, Any]) -> str:
    """Render the page with the context, then the layout with the context plus the page as `content`."""
    content = Markup(page_template.render(context))
    return str(layout_template.render({**context, "content": content}))


class Theme:
    """A client-specific visual customisation containing zero or more templates."""

    def __init__(
        self,
        name: str,
        theme_id: uuid.UUID | None = None,
        created_at: datetime | None = None,
    ):
        if not name or not name.strip():
            raise ValueError("Theme name cannot be empty")

        self.id = theme_id or uuid.uuid4()
        self.name = name.strip()
        self.created_at = created_at or datetime.now(UTC)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Theme):  # pragma: no cover
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class Layout:
    """Outer HTML wrapper; page content is injected through the `content` variable."""

    def __init__(
        self,
        theme_id: uuid.UUID,
        name: str,
        code: str,
        layout_id: uuid.UUID | None = None,
        created_at: datetime | None = None,
    ):
        if not name:
            raise ValueError("Layout name cannot be empty")

        self.id = layout_id or uuid.uuid4()
        self.theme_id = theme_id
        self.name = name
        self.code = code
        self.created_at = created_at or datetime.now(UTC)

    def compile(self) -> jinja2.Template:
        return _sandbox.from_string(self.code)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Layout):  # pragma: no cover
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def create_detached_copy(self) -> "Layout":
        return Layout(
            theme_id=self.theme_id,
            name=self.name,
            code=self.code,
            layout_id=self.id,
            created_at=self.created_at,
        )


class Template:
    """A named, themed override of one page, wrapped in its layout."""

    def __init__(
        self,
        theme_id: uuid.UUID,
        name: str,
        code: str,
        layout: Layout,
        template_id: uuid.UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        if not name:
            raise ValueError("Template name cannot be empty")
        if layout.theme_id != theme_id:
            raise ValueError("Template layout must belong to the same theme")

        now = datetime.now(UTC)
        self.id = template_id or uuid.uuid4()
        self.theme_id = theme_id
        self.name = name
        self.code = code
        self.layout_id = layout.id
        self.layout = layout
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    def render(self, page: str, context: Mapping[str, Any]) -> str:
        if page != self.name:
            raise ValueError(f"Template '{self.name}' cannot render page '{page}'")
        return render_in_layout(_sandbox.from_string(self.code), self.layout.compile(), context)

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Template):  # pragma: no cover
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Template(name={self.name!r}, theme_id={self.theme_id!r})"

    def create_detached_copy(self) -> "Template":
        """Create a detached copy, including the layout, for use outside SQLAlchemy sessions"""
        return Template(
            theme_id=self.theme_id,
            name=self.name,
            code=self.code,
            layout=self.layout.create_detached_copy(),
            template_id=self.id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
