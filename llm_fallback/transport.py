"""
A single upstream POST, with transport failures mapped to typed errors.
"""
import json
import logging
from typing import Any

import httpx

from .errors import UpstreamHTTPError, UpstreamTimeoutError

logger = logging.getLogger(__name__)


def error_message(response: httpx.Response) -> str:
    """Best human-readable error detail from an upstream error response."""
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return text or f"HTTP {response.status_code}"

    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        error = data.get("error")
        if error:
            if isinstance(error, str):
                return error
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"]
            return json.dumps(error)
        if isinstance(data.get("message"), str):
            return data["message"]
    return json.dumps(data)


async def post_json(
    client: httpx.AsyncClient,
    provider_name: str,
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
) -> Any:
    """
    POST a JSON payload and return the decoded body.

    A 2xx body that is not JSON is returned as text; adapters decide what
    to make of it.

    Raises:
        UpstreamTimeoutError: the call exceeded `timeout` seconds
        UpstreamHTTPError: non-2xx status, or the request could not be sent
    """
    try:
        response = await client.post(url, json=payload, headers=headers, timeout=timeout)
    except httpx.TimeoutException:
        raise UpstreamTimeoutError(
            provider_name, f"{provider_name} timed out after {timeout:g}s"
        ) from None
    except httpx.RequestError as e:
        raise UpstreamHTTPError(
            provider_name, f"{provider_name} request failed: {type(e).__name__}: {e}"
        ) from e

    if not response.is_success:
        detail = error_message(response)
        logger.debug("%s answered HTTP %d: %s", provider_name, response.status_code, detail[:200])
        raise UpstreamHTTPError(
            provider_name,
            f"HTTP {response.status_code}: {detail}",
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError:
        return response.text
