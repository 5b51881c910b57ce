import json
from typing import Any, Dict, Optional, Union

import httpx

from core.contracts.provider import LLMProvider, ProviderAdapter
from utils.errors import EmptyResponseError, ProviderDispatchError
from utils.logger import logger

MAX_OUTPUT_TOKENS = 4000
DEFAULT_TIMEOUT_SEC = 30


def require_text(text: Any, display_name: str) -> str:
    """
    Raises:
        EmptyResponseError: If ``text`` is missing or blank.
    """
    if not isinstance(text, str) or not text.strip():
        raise EmptyResponseError(f"No content received from {display_name} API")
    return text


def dig(data: Any, *path: Union[str, int]) -> Any:
    """
    Follows ``path`` through nested dicts and lists. Returns None as soon as a
    step does not match the shape of the data.
    """
    for step in path:
        if isinstance(step, int):
            if not isinstance(data, list) or len(data) <= step:
                return None
        elif not isinstance(data, dict):
            return None
        data = data[step] if isinstance(step, int) else data.get(step)
    return data


def status_error_message(display_name: str, status_code: int, detail: str) -> str:
    """Maps an HTTP error status to the message shown to the user."""
    if status_code == 401:
        return f"Authentication failed for {display_name}. Please check your API key."
    if status_code == 429:
        return f"Rate limit exceeded for {display_name}. Please try again later."
    if status_code >= 500:
        return f"{display_name} API server error. Please try again later."
    return f"{display_name} API error: {detail}"


def _error_detail(response: httpx.Response) -> str:
    try:
        error = response.json().get("error", {})
    except (ValueError, AttributeError):
        return response.text
    if isinstance(error, dict):
        return error.get("message", response.text)
    return str(error) or response.text


class HTTPTransport(LLMProvider):
    """
    Sends prompts to one provider over HTTPS, shaping requests and reading
    answers through that provider's adapter.
    """

    def __init__(self, adapter: ProviderAdapter, base_url: Optional[str] = None, timeout_sec: int = DEFAULT_TIMEOUT_SEC):
        self.adapter = adapter
        self._client = httpx.AsyncClient(
            base_url=base_url or adapter.default_base_url,
            headers={"Content-Type": "application/json", **adapter.headers()},
            timeout=timeout_sec,
        )

    async def _request(self, payload: Dict[str, Any]) -> Any:
        """
        Sends one HTTP request to the provider API.

        Raises:
            ProviderDispatchError: On timeouts, network failures, error statuses
                or a body that is not JSON.
        """
        name = self.adapter.display_name
        try:
            response = await self._client.post(self.adapter.endpoint(), json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise ProviderDispatchError(f"{name} API timeout") from e
        except httpx.HTTPStatusError as e:
            message = status_error_message(name, e.response.status_code, _error_detail(e.response))
            raise ProviderDispatchError(message) from e
        except httpx.RequestError as e:
            raise ProviderDispatchError(f"Network error while contacting {name}: {e}") from e
        except json.JSONDecodeError as e:
            raise ProviderDispatchError(f"{name} API returned a malformed response") from e

    async def generate(self, prompt: str) -> str:
        logger.debug(f"Sending {len(prompt)} prompt characters to {self.adapter.display_name} ({self.adapter.model})")
        data = await self._request(self.adapter.build_request(prompt))
        return self.adapter.extract_text(data)

    async def aclose(self) -> None:
        await self._client.aclose()
