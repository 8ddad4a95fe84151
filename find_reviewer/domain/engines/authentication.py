"""
Authentication - static token -> identity lookup.

The matching engine only ever sees resolved identities; tokens stay here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

import yaml

from find_reviewer.domain.types import (
    IdentityRequest,
    IdentityResponse,
    KnownIdentity,
    LoadIdentity,
    SendIdentity,
    UnknownIdentity,
)
from find_reviewer.service.errors import UserDatabaseError
from find_reviewer.service.logging import Loggers

logger = Loggers.authentication()


class Authentication:
    """Maps session tokens to coder identities."""

    def __init__(self, database: Optional[Mapping[str, str]] = None):
        self._database: dict[str, str] = dict(database or {})

    @classmethod
    def from_file(cls, path: Path | str) -> Authentication:
        """
        Load the user database from a YAML mapping of ``token: identity``.

        A missing file gives an empty database, so nobody can log in until
        users are added.

        Raises:
            UserDatabaseError: if the file is unreadable or malformed
        """
        path = Path(path)
        if not path.exists():
            logger.warning(
                "User database not found, no identities known",
                event_type="users_missing",
                path=str(path),
            )
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise UserDatabaseError(str(path), str(e)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise UserDatabaseError(str(path), "expected a mapping of token: identity")

        for token, identity in data.items():
            if not isinstance(token, str) or not isinstance(identity, str):
                raise UserDatabaseError(
                    str(path), f"token and identity must be strings, got {token!r}: {identity!r}"
                )

        logger.info(
            "User database loaded",
            event_type="users_loaded",
            path=str(path),
            users=len(data),
        )
        return cls(data)

    def __len__(self) -> int:
        return len(self._database)

    def identify(self, token: Optional[str]) -> IdentityResponse:
        """Resolve ``token``; a missing token is unknown."""
        if token is not None and token in self._database:
            return KnownIdentity(username=self._database[token])
        return UnknownIdentity()

    def process(self, request: IdentityRequest, session_token: Optional[str]) -> IdentityResponse:
        """
        Answer an identity request.

        ``LoadIdentity`` resolves the current session, ``SendIdentity``
        resolves the token the client is logging in with.
        """
        if isinstance(request, SendIdentity):
            response = self.identify(request.token)
            logger.info(
                "Login attempt",
                event_type="login",
                known=isinstance(response, KnownIdentity),
            )
            return response
        if isinstance(request, LoadIdentity):
            return self.identify(session_token)
        raise TypeError(f"not an identity request: {request!r}")
