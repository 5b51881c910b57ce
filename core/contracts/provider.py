from typing import Any, Dict, Protocol


class ProviderAdapter(Protocol):
    """
    What one AI provider's API looks like: where to send a prompt, how to
    wrap it and where the generated text sits in the answer.
    """

    display_name: str
    default_base_url: str
    model: str

    def headers(self) -> Dict[str, str]:
        ...

    def endpoint(self) -> str:
        ...

    def build_request(self, prompt: str) -> Dict[str, Any]:
        """Builds the JSON request envelope for a single user prompt."""
        ...

    def extract_text(self, data: Any) -> str:
        """
        Reads the generated text out of a decoded response envelope.

        Raises:
            EmptyResponseError: If the envelope carries no text.
        """
        ...


class LLMProvider(Protocol):
    """A protocol for LLM providers."""

    async def generate(self, prompt: str) -> str:
        """
        Sends one prompt and returns the generated text.

        Raises:
            ProviderDispatchError: If the request fails or the answer is empty.
        """
        ...

    async def aclose(self) -> None:
        ...
