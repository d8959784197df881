"""Credential strategies for remote transfers.

A strategy is resolved once per provider from its ``Auth`` and materialized
right before a clone or fetch. Materializing turns it into the environment and
``git -c`` options for that single git invocation; nothing is captured or
cached between calls.

Every strategy disables interactive prompts and inherited credential helpers,
so a remote that asks for credentials the strategy cannot give fails fast
instead of hanging.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from glone.core.config import Auth, PublicAuth, SshAuth, TokenAuth
from glone.core.errors import SyncError
from glone.core.result import Err, Ok, Result

__all__ = [
    "AnonymousStrategy",
    "CredentialStrategy",
    "SshKeyStrategy",
    "TransportAuth",
    "UserPassStrategy",
    "resolve_strategy",
]

logger = logging.getLogger(__name__)

# Variables the credential helper reads the resolved values from
_USERNAME_VAR = "GLONE_GIT_USERNAME"
_PASSWORD_VAR = "GLONE_GIT_PASSWORD"

_HELPER = (
    f'!f() {{ test "$1" = get || exit 0; '
    f'echo "username=${{{_USERNAME_VAR}}}"; echo "password=${{{_PASSWORD_VAR}}}"; }}; f'
)


def _base_env() -> dict[str, str]:
    return {
        "GIT_TERMINAL_PROMPT": "0",
        "GIT_ASKPASS": "",
        # Messages are matched to classify auth failures
        "LC_ALL": "C",
    }


@dataclass(frozen=True, slots=True)
class TransportAuth:
    """What a git transfer needs to authenticate.

    Attributes:
        env: Variables added to the git process environment
        config: ``key=value`` pairs passed as ``git -c`` options
    """

    env: dict[str, str] = field(default_factory=_base_env)
    config: tuple[str, ...] = ("credential.helper=",)

    def git_options(self) -> list[str]:
        options: list[str] = []
        for item in self.config:
            options.extend(["-c", item])
        return options


class CredentialStrategy(Protocol):
    """Supplies credentials to the remote transport."""

    @property
    def anonymous(self) -> bool:
        """True if the remote gets no credentials at all."""
        ...

    def materialize(self, environ: Mapping[str, str]) -> Result[TransportAuth, SyncError]:
        """Build the transport auth, failing before any network call."""
        ...


class AnonymousStrategy:
    """No credentials; an auth challenge becomes ``auth_required``."""

    @property
    def anonymous(self) -> bool:
        return True

    def materialize(self, environ: Mapping[str, str]) -> Result[TransportAuth, SyncError]:
        return Ok(TransportAuth())


class UserPassStrategy:
    """Username and password taken from two environment variables."""

    def __init__(self, auth: TokenAuth) -> None:
        self._auth = auth

    @property
    def anonymous(self) -> bool:
        return False

    def materialize(self, environ: Mapping[str, str]) -> Result[TransportAuth, SyncError]:
        values: list[str] = []
        for var in (self._auth.username, self._auth.password):
            value = environ.get(var)
            if value is None:
                return Err(
                    SyncError(
                        "credential_missing",
                        f"environment variable {var} is not set",
                        hint=f"export {var}=...",
                    )
                )
            values.append(value)

        env = _base_env()
        env[_USERNAME_VAR] = values[0]
        env[_PASSWORD_VAR] = values[1]
        config = ("credential.helper=", f"credential.helper={_HELPER}")
        return Ok(TransportAuth(env=env, config=config))


class SshKeyStrategy:
    """Private key auth; the user name comes from the URL."""

    def __init__(self, auth: SshAuth) -> None:
        self._auth = auth

    @property
    def anonymous(self) -> bool:
        return False

    def materialize(self, environ: Mapping[str, str]) -> Result[TransportAuth, SyncError]:
        key = self._auth.path
        if not key.is_file() or not os.access(key, os.R_OK):
            return Err(
                SyncError(
                    "auth_rejected",
                    f"ssh key is missing or unreadable: {key}",
                    hint="Check the 'path' of the provider's ssh auth",
                )
            )

        env = _base_env()
        env["GIT_SSH_COMMAND"] = " ".join(
            [
                "ssh",
                "-i",
                shlex.quote(str(key)),
                "-o",
                "IdentitiesOnly=yes",
                "-o",
                "BatchMode=yes",
            ]
        )
        return Ok(TransportAuth(env=env))


def resolve_strategy(auth: Auth) -> CredentialStrategy:
    """Pick the credential strategy for a provider's auth policy.

    Token auth whose variable names lack the sentinel prefix gets no
    credentials and the environment is never consulted.
    """
    match auth:
        case TokenAuth():
            if auth.is_valid_cred():
                return UserPassStrategy(auth)
            logger.warning(
                "Token auth variable names must start with '_' (%s, %s); using anonymous transport",
                auth.username,
                auth.password,
            )
            return AnonymousStrategy()
        case SshAuth():
            return SshKeyStrategy(auth)
        case PublicAuth():
            return AnonymousStrategy()
