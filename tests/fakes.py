"""ABOUTME: Fake repository and adapter implementations for testing
ABOUTME: In-memory versions that implement the same interfaces as the real ones"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, BinaryIO

from openidp.adapters.email import EmailAdapter
from openidp.adapters.image_storage import ImageStorage
from openidp.adapters.template_renderer import TemplateRenderer
from openidp.adapters.url_generator import URLGenerator
from openidp.domain.clients import Client
from openidp.domain.password_reset import PasswordResetToken
from openidp.domain.themes import Layout, Template, Theme
from openidp.domain.users import User
from openidp.domain.value_objects import normalise_email
from openidp.service_layer.repositories import (
    AbstractRepository,
    ClientRepository,
    LayoutRepository,
    PasswordResetTokenRepository,
    TemplateRepository,
    ThemeRepository,
    UserRepository,
)
from openidp.service_layer.unit_of_work import AbstractUnitOfWork


class FakeRepository(AbstractRepository):
    """Base fake repository with in-memory storage."""

    def __init__(self, items: list[Any] | None = None):
        self._items = list(items) if items else []

    def add(self, item: Any) -> None:
        self._items.append(item)

    def get(self, item_id: Any) -> Any | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def all(self) -> Iterable[Any]:
        return list(self._items)


class FakeUserRepository(FakeRepository, UserRepository):
    def get_by_email(self, email: str) -> User | None:
        email = normalise_email(email)
        for user in self._items:
            if user.email == email:
                return user
        return None


class FakeClientRepository(FakeRepository, ClientRepository):
    def get(self, item_id: str) -> Client | None:
        for client in self._items:
            if client.client_id == item_id:
                return client
        return None


class FakeThemeRepository(FakeRepository, ThemeRepository):
    def get_by_name(self, name: str) -> Theme | None:
        for theme in self._items:
            if theme.name == name:
                return theme
        return None


class FakeLayoutRepository(FakeRepository, LayoutRepository):
    def get_by_theme_and_name(self, theme_id: uuid.UUID, name: str) -> Layout | None:
        for layout in self._items:
            if layout.theme_id == theme_id and layout.name == name:
                return layout
        return None


class FakeTemplateRepository(FakeRepository, TemplateRepository):
    def __init__(self, items: list[Any] | None = None):
        super().__init__(items)
        self.lookups: list[tuple[uuid.UUID, str]] = []

    def get_by_theme_and_name(self, theme_id: uuid.UUID, name: str) -> Template | None:
        self.lookups.append((theme_id, name))
        for template in self._items:
            if template.theme_id == theme_id and template.name == name:
                return template
        return None

    def get_for_theme(self, theme_id: uuid.UUID) -> Iterable[Template]:
        return [template for template in self._items if template.theme_id == theme_id]


class FakePasswordResetTokenRepository(FakeRepository, PasswordResetTokenRepository):
    def get_by_token(self, token: str) -> PasswordResetToken | None:
        for reset_token in self._items:
            if reset_token.token == token:
                return reset_token
        return None

    def count_recent_requests(self, user_id: uuid.UUID, since: datetime) -> int:
        return sum(1 for token in self._items if token.user_id == user_id and token.created_at >= since)

    def invalidate_user_tokens(self, user_id: uuid.UUID) -> int:
        count = 0
        for token in self._items:
            if token.user_id == user_id and token.is_valid():
                token.used_at = datetime.now(UTC)
                count += 1
        return count


class FakeUnitOfWork(AbstractUnitOfWork):
    """Fake Unit of Work implementation for testing."""

    def __init__(self) -> None:
        self.users = self.fake_users = FakeUserRepository()
        self.clients = self.fake_clients = FakeClientRepository()
        self.themes = self.fake_themes = FakeThemeRepository()
        self.layouts = self.fake_layouts = FakeLayoutRepository()
        self.templates = self.fake_templates = FakeTemplateRepository()
        self.password_reset_tokens = self.fake_password_reset_tokens = FakePasswordResetTokenRepository()
        self.committed = False
        self.entered = 0

    def __enter__(self) -> AbstractUnitOfWork:
        self.entered += 1
        return self

    def __exit__(self, *args) -> None:
        pass

    def commit(self) -> None:
        """Mark as committed."""
        self.committed = True

    def rollback(self) -> None:
        self.committed = False


class FakeEmailAdapter(EmailAdapter):
    """Records sent emails instead of sending them."""

    def __init__(self, succeed: bool = True) -> None:
        self.sent_emails: list[dict[str, Any]] = []
        self.succeed = succeed

    def send_email(self, to: list[str], subject: str, text_body: str, html_body: str | None = None) -> bool:
        self.sent_emails.append({"to": to, "subject": subject, "text_body": text_body, "html_body": html_body})
        return self.succeed


class FakeImageStorage(ImageStorage):
    def __init__(self, base_url: str = "https://images.example.com") -> None:
        self.base_url = base_url
        self.images: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def upload_image_stream(self, stream: BinaryIO, key: str, content_type: str) -> str:
        self.images[key] = stream.read()
        return f"{self.base_url}/{key}"

    def delete_image(self, key: str) -> None:
        self.deleted.append(key)
        self.images.pop(key, None)


class FakeTemplateRenderer(TemplateRenderer):
    def __init__(self) -> None:
        self.rendered: list[tuple[str, dict[str, Any]]] = []

    def render_template(self, template_name: str, **context: Any) -> str:
        self.rendered.append((template_name, context))
        return f"{template_name}: " + ", ".join(f"{key}={value}" for key, value in sorted(context.items()))


class FakeURLGenerator(URLGenerator):
    def __init__(self, base_url: str = "https://idp.example.com") -> None:
        self.base_url = base_url

    def generate_url(self, endpoint: str, _external: bool = False, **values: Any) -> str:
        path = "/" + endpoint.replace(".", "/").replace("_", "-")
        return f"{self.base_url}{path}" if _external else path
