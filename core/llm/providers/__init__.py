# Importing the adapters registers them in provider_registry.
from core.llm.providers import chatgpt, claude, copilot, gemini  # noqa: F401
