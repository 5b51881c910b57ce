from typing import Any, Dict

from core.llm.providers.chatgpt import chat_completion_request, chat_completion_text
from core.llm.transport import require_text
from core.registry import provider_registry


@provider_registry.register("copilot")
class CopilotAdapter:
    """The GitHub Copilot chat completions API, OpenAI-compatible."""

    display_name = "Copilot"
    default_base_url = "https://api.githubcopilot.com"

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model

    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "User-Agent": "aipr",
        }

    def endpoint(self) -> str:
        return "/chat/completions"

    def build_request(self, prompt: str) -> Dict[str, Any]:
        return chat_completion_request(self.model, prompt)

    def extract_text(self, data: Any) -> str:
        return require_text(chat_completion_text(data), self.display_name)
