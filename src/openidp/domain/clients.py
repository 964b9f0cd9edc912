"""ABOUTME: Client domain model for relying parties registered with the identity provider
ABOUTME: A client optionally points at a theme used to render its account pages"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime


class Client:
    """An OIDC relying party. Provisioned by administrators, read by the account pages."""

    def __init__(
        self,
        client_id: str,
        client_name: str = "",
        theme_id: uuid.UUID | None = None,
        redirect_uris: Iterable[str] = (),
        post_logout_redirect_uris: Iterable[str] = (),
        created_at: datetime | None = None,
    ):
        if not client_id:
            raise ValueError("Client must have a client_id")

        self.client_id = client_id
        self.client_name = client_name or client_id
        self.theme_id = theme_id
        self.redirect_uris = list(redirect_uris)
        self.post_logout_redirect_uris = list(post_logout_redirect_uris)
        self.created_at = created_at or datetime.now(UTC)

    @property
    def has_theme(self) -> bool:
        return self.theme_id is not None

    def allows_redirect(self, uri: str | None) -> bool:
        return bool(uri) and uri in self.redirect_uris

    def allows_post_logout_redirect(self, uri: str | None) -> bool:
        return bool(uri) and uri in self.post_logout_redirect_uris

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Client):  # pragma: no cover
            return False
        return self.client_id == other.client_id

    def __hash__(self) -> int:
        return hash(self.client_id)

    def __repr__(self) -> str:
        return f"Client(client_id={self.client_id!r}, theme_id={self.theme_id!r})"

    def create_detached_copy(self) -> "Client":
        return Client(
            client_id=self.client_id,
            client_name=self.client_name,
            theme_id=self.theme_id,
            redirect_uris=self.redirect_uris,
            post_logout_redirect_uris=self.post_logout_redirect_uris,
            created_at=self.created_at,
        )
