"""ABOUTME: URL generation adapter so services can build links in emails without importing Flask
ABOUTME: Provides abstract interface and concrete Flask-based implementation"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask import Flask


class URLGenerator(ABC):
    """Abstract interface for generating URLs."""

    @abstractmethod
    def generate_url(self, endpoint: str, _external: bool = False, **values: Any) -> str:
        """Generate a URL for an endpoint name such as "user.reset_password"."""


class FlaskURLGenerator(URLGenerator):
    """Flask-based URL generator using the app's url_for."""

    def __init__(self, app: "Flask") -> None:
        self.app = app

    def generate_url(self, endpoint: str, _external: bool = False, **values: Any) -> str:
        return self.app.url_for(endpoint, _external=_external, **values)
