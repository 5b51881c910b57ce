from typing import Any, Dict

from core.llm.transport import MAX_OUTPUT_TOKENS, dig, require_text
from core.registry import provider_registry


@provider_registry.register("gemini")
class GeminiAdapter:
    """The Google Gemini generateContent API."""

    display_name = "Gemini"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model

    def headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    def endpoint(self) -> str:
        return f"/models/{self.model}:generateContent"

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": MAX_OUTPUT_TOKENS},
        }

    def extract_text(self, data: Any) -> str:
        text = dig(data, "candidates", 0, "content", "parts", 0, "text")
        return require_text(text, self.display_name)
