from typing import Any, Dict

from core.llm.transport import MAX_OUTPUT_TOKENS, dig, require_text
from core.registry import provider_registry


def chat_completion_request(model: str, prompt: str) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": MAX_OUTPUT_TOKENS,
    }


def chat_completion_text(data: Any) -> Any:
    """Reads ``choices[0].message.content`` from a chat-completions envelope."""
    return dig(data, "choices", 0, "message", "content")


@provider_registry.register("chatgpt")
class ChatGPTAdapter:
    """The OpenAI chat completions API."""

    display_name = "ChatGPT"
    default_base_url = "https://api.openai.com/v1"

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model

    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def endpoint(self) -> str:
        return "/chat/completions"

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return chat_completion_request(self.model, prompt)

    def extract_text(self, data: Any) -> str:
        return require_text(chat_completion_text(data), self.display_name)
