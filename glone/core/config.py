"""Typed configuration loading.

The provider list lives in ``<user config dir>/glone/config.toml``:

    [[providers]]
    name = "dotfiles"
    url = "https://github.com/me/dotfiles.git"
    branch = "main"
    sync_dir = "~/src/dotfiles"
    auth = { type = "token", username = "_GH_USER", password = "_GH_TOKEN" }

``auth.type`` is one of ``token``, ``ssh`` (with ``path``) or ``public``.
Token auth stores environment variable *names*; values are only read when a
transfer is prepared (see ``glone.git.credentials``).
"""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from glone.platform.paths import user_config_dir

from .result import Err, Ok, Result
from .structured import StrDict, as_obj_list, as_str_dict, get_str, get_table

__all__ = [
    "CRED_PREFIX",
    "AppPaths",
    "Auth",
    "Config",
    "ConfigError",
    "Provider",
    "PublicAuth",
    "SshAuth",
    "TokenAuth",
    "bootstrap",
    "load_config",
]

logger = logging.getLogger(__name__)

# Token auth variable names must start with this prefix
CRED_PREFIX = "_"

CONFIG_FILE = "config.toml"
LOG_FILE = "app.log"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TokenAuth:
    """Username/password read from two environment variables.

    Attributes:
        username: Name of the variable holding the user name
        password: Name of the variable holding the password or token
    """

    username: str
    password: str

    def is_valid_cred(self) -> bool:
        """True if both variable names carry the sentinel prefix."""
        return self.username.startswith(CRED_PREFIX) and self.password.startswith(CRED_PREFIX)


@dataclass(frozen=True, slots=True)
class SshAuth:
    """Private key authentication.

    Attributes:
        path: Path to the private key file
    """

    path: Path


@dataclass(frozen=True, slots=True)
class PublicAuth:
    """Anonymous transport."""


Auth = TokenAuth | SshAuth | PublicAuth


@dataclass(frozen=True, slots=True)
class Provider:
    """One synchronization target.

    Attributes:
        name: Display label, unique within a config
        url: Remote address
        branch: Tracked branch name
        sync_dir: Local checkout path
        auth: Credential policy
    """

    name: str
    url: str
    branch: str
    sync_dir: Path
    auth: Auth = field(default_factory=PublicAuth)


@dataclass(frozen=True, slots=True)
class Config:
    """Parsed config file."""

    providers: tuple[Provider, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Result[Config, str]:
        """Create Config from a mapping (parsed TOML)."""
        raw_obj = data.get("providers")
        if raw_obj is None:
            return Ok(cls())

        raw = as_obj_list(raw_obj)
        if raw is None:
            return Err("'providers' must be an array of tables")

        providers: list[Provider] = []
        names: set[str] = set()
        dirs: set[Path] = set()
        for index, item in enumerate(raw):
            table = as_str_dict(item)
            if table is None:
                return Err(f"providers[{index}] must be a table")

            parsed = _parse_provider(table)
            if isinstance(parsed, Err):
                return Err(f"providers[{index}]: {parsed.error}")
            provider = parsed.value

            if provider.name in names:
                return Err(f"duplicate provider name: {provider.name}")
            if provider.sync_dir in dirs:
                return Err(f"sync_dir used by more than one provider: {provider.sync_dir}")
            names.add(provider.name)
            dirs.add(provider.sync_dir)
            providers.append(provider)

        return Ok(cls(providers=tuple(providers)))


def _parse_auth(table: StrDict | None) -> Result[Auth, str]:
    if table is None:
        return Err("missing 'auth' table")

    kind = get_str(table, "type")
    match kind:
        case "token":
            username = get_str(table, "username")
            password = get_str(table, "password")
            if username is None or password is None:
                return Err("token auth requires 'username' and 'password' variable names")
            return Ok(TokenAuth(username=username, password=password))
        case "ssh":
            path = get_str(table, "path")
            if path is None:
                return Err("ssh auth requires 'path'")
            return Ok(SshAuth(path=Path(path).expanduser()))
        case "public":
            return Ok(PublicAuth())
        case None:
            return Err("auth 'type' is required")
        case _:
            return Err(f"unknown auth type: {kind}")


def _parse_provider(table: StrDict) -> Result[Provider, str]:
    missing = [key for key in ("name", "url", "branch", "sync_dir") if get_str(table, key) is None]
    if missing:
        return Err(f"missing required key(s): {', '.join(missing)}")

    auth = _parse_auth(get_table(table, "auth"))
    if isinstance(auth, Err):
        return auth

    return Ok(
        Provider(
            name=get_str(table, "name") or "",
            url=get_str(table, "url") or "",
            branch=get_str(table, "branch") or "",
            sync_dir=Path(get_str(table, "sync_dir") or "").expanduser(),
            auth=auth.value,
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate the provider list.

    Args:
        path: Path to config.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    match Config.from_dict(result.value):
        case Ok(config):
            return Ok(config)
        case Err(message):
            return Err(ConfigError(f"Invalid config: {message}", path=path))


# -----------------------------------------------------------------------------
# App paths
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AppPaths:
    """Locations of the glone config directory and its files."""

    config_dir: Path

    @classmethod
    def default(cls) -> AppPaths:
        return cls(config_dir=user_config_dir())

    @property
    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILE

    @property
    def log_path(self) -> Path:
        return self.config_dir / LOG_FILE


def bootstrap(paths: AppPaths) -> Result[None, ConfigError]:
    """Create the config directory and an empty config file if missing."""
    logger.info("Your config should be located at: %s", paths.config_dir)

    if not paths.config_dir.exists():
        try:
            paths.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            message = f"Could not create {paths.config_dir}: {e}"
            return Err(ConfigError(message, path=paths.config_dir))
        logger.info("Created the app config folder.")

    if not paths.config_path.exists():
        try:
            paths.config_path.touch()
        except OSError as e:
            message = f"Could not create {paths.config_path}: {e}"
            return Err(ConfigError(message, path=paths.config_path))
        logger.info("Created an empty config file: %s", paths.config_path)

    return Ok(None)
