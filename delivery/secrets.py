"""Lookup of the delivery API credentials."""

from __future__ import annotations

import os
from collections.abc import Mapping

from delivery.errors import ConfigurationError


class SecretProvider:
    """Resolve secrets from one or more mappings, first non-empty value wins.

    Order of precedence is the order the sources are given in, e.g.
    ``SecretProvider(app.config, os.environ)`` prefers the Flask config.
    """

    def __init__(self, *sources: Mapping):
        self.sources = sources

    @classmethod
    def from_env(cls) -> "SecretProvider":
        return cls(os.environ)

    def get_required_secret(self, name: str) -> str:
        for source in self.sources:
            value = source.get(name)
            if value:
                return value
        raise ConfigurationError(name)

    def is_configured(self, *names: str) -> bool:
        return all(any(source.get(name) for source in self.sources) for name in names)
