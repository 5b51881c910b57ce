"""
Defines custom exception classes for the application.
"""

class AIPRException(Exception):
    """Base exception class for aipr application."""
    pass

class ConfigError(AIPRException):
    """Raised when there is a configuration error."""
    pass

class CollectorError(AIPRException):
    """Raised when ticket or template data cannot be collected."""
    pass

class FormatterError(AIPRException):
    """Raised when an error occurs while rendering fallback content."""
    pass

class GitError(AIPRException):
    """Raised when a git command fails."""
    pass

class ComparisonError(GitError):
    """Raised when the base branch is the branch currently checked out."""
    pass

class PartialDiffFetchError(GitError):
    """Raised when the isolated diff of a single file cannot be read."""
    pass

class ProviderError(AIPRException):
    """Raised when an error occurs with an LLM provider."""
    pass

class NoProviderConfiguredError(ProviderError):
    """Raised when no AI provider has a usable credential."""
    pass

class ProviderDispatchError(ProviderError):
    """Raised when a request to the selected provider fails."""
    pass

class EmptyResponseError(ProviderDispatchError):
    """Raised when a provider answers without any text content."""
    pass

class GitHubError(AIPRException):
    """Raised when the GitHub API rejects a pull-request operation."""
    pass
