from typing import Any, Dict

from core.llm.transport import MAX_OUTPUT_TOKENS, dig, require_text
from core.registry import provider_registry


@provider_registry.register("claude")
class ClaudeAdapter:
    """The Anthropic Messages API."""

    display_name = "Claude"
    default_base_url = "https://api.anthropic.com"

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model

    def headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
        }

    def endpoint(self) -> str:
        return "/v1/messages"

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: Any) -> str:
        return require_text(dig(data, "content", 0, "text"), self.display_name)
