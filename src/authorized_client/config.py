"""Settings loading with file + environment precedence.

The client itself only consumes an immutable
:class:`~authorized_client.models.Settings`. This module is the convenience
layer for building one:

* **Settings file** -- a JSON object with the :class:`Settings` fields.
  Instead of an inline ``client_secret`` it may name a
  ``client_secret_source`` (``env:VAR`` or ``file:/path``).
* **Environment** -- ``AUTHORIZED_CLIENT_*`` variables override the file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets from
  env vars or files.

Precedence (highest first): environment, settings file.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from authorized_client.exceptions import ConfigError
from authorized_client.models import Settings

ENV_PREFIX = "AUTHORIZED_CLIENT_"

_ENV_FIELDS = ("client_id", "client_secret", "token_url", "scopes", "auth_method")


def resolve_credential(source: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Args:
        source: The source descriptor string.
        environ: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        The resolved credential string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    env = os.environ if environ is None else environ

    if source.startswith("env:"):
        var_name = source[4:]
        value = env.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")


def _split_scopes(value: str) -> list[str]:
    return [scope for scope in re.split(r"[\s,]+", value) if scope]


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid settings file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid settings file {path}: expected a JSON object")
    return data


def load_settings(
    path: Optional[Path | str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build :class:`Settings` from a JSON file and ``AUTHORIZED_CLIENT_*`` variables.

    Args:
        path: Optional settings file. Without one, every field must come
            from the environment.
        environ: Environment mapping; defaults to :data:`os.environ`.

    Returns:
        The validated settings.

    Raises:
        ConfigError: If the file is missing or not JSON, a secret source
            cannot be resolved, or the merged values fail validation.

    Example::

        # settings.json: {"client_id": "svc", "client_secret_source": "env:SVC_SECRET",
        #                 "token_url": "https://auth.example.com/token"}
        settings = load_settings("settings.json")
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = _read_settings_file(Path(path)) if path is not None else {}

    secret_source = data.pop("client_secret_source", None)

    for field in _ENV_FIELDS:
        value = env.get(f"{ENV_PREFIX}{field.upper()}")
        if value is None:
            continue
        data[field] = _split_scopes(value) if field == "scopes" else value

    # Only consulted when neither the environment nor the file has a secret.
    if secret_source is not None and "client_secret" not in data:
        data["client_secret"] = resolve_credential(secret_source, env)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        where = f" from {path}" if path is not None else ""
        raise ConfigError(f"Invalid settings{where}: {exc}") from exc
