"""Request builders and response extraction for protected endpoint calls.

Requests are described by zero-argument builders returning a fresh
:class:`httpx.Request`, so the retry loop can rebuild the request before
every attempt. Responses are turned into results by :func:`extract_response`,
selected by a :class:`~authorized_client.models.ResponseKind`.

JSON goes through pydantic: request bodies may be pydantic models,
dataclasses or plain containers, and response bodies can be validated into
any type pydantic understands.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from authorized_client.exceptions import SerializationError
from authorized_client.models import ResponseKind

_ANY_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def build_get_request(url: httpx.URL) -> httpx.Request:
    """Build a bare ``GET`` request."""
    return httpx.Request("GET", url)


def encode_json_body(body: Any) -> bytes:
    """Serialise *body* to JSON bytes.

    Raises:
        SerializationError: If pydantic cannot serialise the value.
    """
    try:
        return _ANY_ADAPTER.dump_json(body)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to serialize body: {exc}") from exc


def build_post_request(url: httpx.URL, content: bytes) -> httpx.Request:
    """Build a ``POST`` request carrying already encoded JSON *content*."""
    return httpx.Request(
        "POST",
        url,
        headers={"Content-Type": "application/json"},
        content=content,
    )


def extract_response(
    response: httpx.Response,
    kind: ResponseKind,
    model: Optional[Any] = None,
) -> Any:
    """Turn a successful response into the caller's result.

    Args:
        response: A ``200`` response whose body has been read.
        kind: ``JSON`` decodes (and validates into *model* when given),
            ``TEXT`` returns the raw body text, ``IGNORE`` returns ``None``.
        model: Optional target type for ``JSON`` responses, e.g. a pydantic
            model or ``list[int]``.

    Returns:
        The decoded value, the body text, or ``None``.

    Raises:
        SerializationError: If the body is not valid JSON or does not match
            *model*.
    """
    if kind is ResponseKind.IGNORE:
        return None
    if kind is ResponseKind.TEXT:
        return response.text

    adapter = _ANY_ADAPTER if model is None else TypeAdapter(model)
    try:
        return adapter.validate_json(response.content)
    except ValidationError as exc:
        raise SerializationError(f"Failed to decode response body: {exc}") from exc
