import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import core.llm.providers  # noqa: F401  registers the adapters
from config.models import Config, ProviderSettings
from core.contracts.provider import LLMProvider
from core.llm.transport import HTTPTransport
from core.registry import Registry, provider_registry
from utils.errors import NoProviderConfiguredError, ProviderError
from utils.logger import logger

PREFERENCE_ORDER = ["claude", "chatgpt", "gemini", "copilot"]

DEFAULT_MODELS = {
    "claude": "claude-3-5-sonnet-20241022",
    "chatgpt": "gpt-4o",
    "gemini": "gemini-1.5-pro",
    "copilot": "gpt-4o",
}

MODEL_ENV_VARS = {
    "claude": "CLAUDE_MODEL",
    "chatgpt": "OPENAI_MODEL",
    "gemini": "GEMINI_MODEL",
    "copilot": "COPILOT_MODEL",
}

# Provider identity -> section under ``providers`` in the config file.
CONFIG_SECTIONS = {
    "claude": "claude",
    "chatgpt": "openai",
    "gemini": "gemini",
    "copilot": "copilot",
}

Chooser = Callable[[List[str], str], str]


class GatewayState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    PROVIDER_SELECTED = "provider_selected"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CredentialLookup:
    """One step of a credential chain: a fixed value or an environment variable."""

    source: str
    resolve: Callable[[], Optional[str]]

    @classmethod
    def from_value(cls, value: Optional[str], source: str = "config") -> "CredentialLookup":
        return cls(source, lambda: value)

    @classmethod
    def from_env(cls, name: str) -> "CredentialLookup":
        return cls(f"env:{name}", lambda: os.getenv(name))


def resolve_credential(chain: Sequence[CredentialLookup]) -> Optional[str]:
    """Returns the first non-empty value in ``chain``, trying lookups in order."""
    for lookup in chain:
        value = lookup.resolve()
        if value and value.strip():
            return value.strip()
    return None


def default_credential_chains(config: Config) -> Dict[str, List[CredentialLookup]]:
    providers = config.providers
    return {
        "claude": [
            CredentialLookup.from_value(providers.claude.api_key),
            CredentialLookup.from_env("ANTHROPIC_API_KEY"),
            CredentialLookup.from_env("CLAUDE_API_KEY"),
        ],
        "chatgpt": [
            CredentialLookup.from_value(providers.openai.api_key),
            CredentialLookup.from_env("OPENAI_API_KEY"),
            CredentialLookup.from_env("CHATGPT_API_KEY"),
        ],
        "gemini": [
            CredentialLookup.from_value(providers.gemini.api_key),
            CredentialLookup.from_env("GEMINI_API_KEY"),
            CredentialLookup.from_env("GOOGLE_API_KEY"),
        ],
        "copilot": [
            CredentialLookup.from_value(providers.copilot.api_key),
            CredentialLookup.from_value(config.github.token, source="config:github"),
            CredentialLookup.from_env("GITHUB_TOKEN"),
        ],
    }


def resolve_model(config: Config, identity: str) -> str:
    """Model precedence: config value, then the provider's env var, then the built-in default."""
    settings = getattr(config.providers, CONFIG_SECTIONS[identity])
    return settings.model or os.getenv(MODEL_ENV_VARS[identity]) or DEFAULT_MODELS[identity]


class ProviderGateway:
    """
    Picks one configured AI provider and dispatches prompts to it.

    Selection is deterministic: a single configured provider is used as is,
    otherwise the first one in PREFERENCE_ORDER wins. Only identities outside
    that order are handed to the chooser. Each generate() call is one HTTP
    request with no retry and no failover.
    """

    def __init__(
        self,
        config: Config,
        credential_chains: Optional[Mapping[str, Sequence[CredentialLookup]]] = None,
        chooser: Optional[Chooser] = None,
        registry: Registry = provider_registry,
    ):
        self.config = config
        self.credential_chains = credential_chains if credential_chains is not None else default_credential_chains(config)
        self.chooser = chooser
        self.registry = registry
        self.state = GatewayState.UNINITIALIZED
        self._credentials: Dict[str, str] = {}
        self._providers: Dict[str, LLMProvider] = {}
        self._selected: Optional[str] = None

    def initialize(self) -> List[str]:
        """Resolves credentials once. Returns the configured identities."""
        if self.state != GatewayState.UNINITIALIZED:
            return self.available()
        for identity, chain in self.credential_chains.items():
            credential = resolve_credential(chain)
            if credential:
                self._credentials[identity] = credential
        logger.debug(f"Configured AI providers: {self.available()}")
        self.state = GatewayState.CONFIGURED
        return self.available()

    def available(self) -> List[str]:
        known = [identity for identity in PREFERENCE_ORDER if identity in self._credentials]
        return known + [identity for identity in self._credentials if identity not in PREFERENCE_ORDER]

    @property
    def selected(self) -> Optional[str]:
        return self._selected

    def select_provider(self, preferred: Optional[str] = None) -> str:
        """
        Chooses the provider for this run. The choice is kept for later calls.

        Args:
            preferred: Forces an identity, which must have a credential.

        Raises:
            NoProviderConfiguredError: If no provider has a credential.
            ProviderError: If ``preferred`` is not configured.
        """
        self.initialize()
        if self._selected:
            return self._selected

        available = self.available()
        if not available:
            self.state = GatewayState.FAILED
            raise NoProviderConfiguredError(
                "No AI providers configured. Set one of ANTHROPIC_API_KEY, OPENAI_API_KEY, "
                "GEMINI_API_KEY or GITHUB_TOKEN, or add an api_key to your config."
            )

        if preferred:
            if preferred not in available:
                raise ProviderError(f"Provider '{preferred}' is not configured. Available: {', '.join(available)}")
            choice = preferred
        elif len(available) == 1:
            choice = available[0]
        else:
            choice = next((identity for identity in PREFERENCE_ORDER if identity in available), None)
            if choice is None:
                default = available[0]
                choice = self.chooser(available, default) if self.chooser else default
                if choice not in available:
                    raise ProviderError(f"Unknown provider '{choice}'. Available: {', '.join(available)}")

        self._selected = choice
        self.state = GatewayState.PROVIDER_SELECTED
        logger.info(f"Using AI provider: {choice}")
        return choice

    def _provider(self, identity: str) -> LLMProvider:
        if identity in self._providers:
            return self._providers[identity]

        section = CONFIG_SECTIONS.get(identity)
        settings = getattr(self.config.providers, section) if section else ProviderSettings()
        model = resolve_model(self.config, identity) if section else settings.model or ""
        try:
            adapter = self.registry.create(identity, api_key=self._credentials[identity], model=model)
        except KeyError as e:
            raise ProviderError(f"No adapter registered for provider '{identity}'.") from e

        transport = HTTPTransport(adapter, base_url=settings.base_url, timeout_sec=settings.timeout_sec)
        self._providers[identity] = transport
        return transport

    async def generate(self, prompt: str) -> str:
        """
        Sends one prompt to the selected provider.

        Raises:
            NoProviderConfiguredError: If no provider has a credential.
            ProviderDispatchError: If the request fails or the answer is empty.
        """
        identity = self.select_provider()
        provider = self._provider(identity)
        self.state = GatewayState.DISPATCHING
        try:
            text = await provider.generate(prompt)
        except ProviderError:
            self.state = GatewayState.FAILED
            raise
        self.state = GatewayState.COMPLETED
        return text

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()
        self._providers.clear()
