"""ABOUTME: Read-only client lookups used by the account pages
ABOUTME: Resolves the requesting client and checks its registered redirect targets"""

from openidp.domain.clients import Client

from .exceptions import ClientIdRequired, ClientNotFoundError
from .unit_of_work import AbstractUnitOfWork


def get_client(uow: AbstractUnitOfWork, client_id: str | None) -> Client:
    """
    Raises:
        ClientIdRequired: client_id is empty
        ClientNotFoundError: no client with that id
    """
    if not client_id:
        raise ClientIdRequired("get_client")
    with uow:
        client = uow.clients.get(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client.create_detached_copy()


def find_client(uow: AbstractUnitOfWork, client_id: str | None) -> Client | None:
    """Like get_client, but returns None instead of raising."""
    if not client_id:
        return None
    with uow:
        client = uow.clients.get(client_id)
        return client.create_detached_copy() if client else None
