from typing import Optional, Protocol

from core.contracts.models import PRTemplate, Ticket


class TicketSource(Protocol):
    """A protocol for classes that look up tracker tickets."""

    def collect(self, key: str) -> Ticket:
        """
        Raises:
            CollectorError: If the ticket cannot be fetched.
        """
        ...


class TemplateSource(Protocol):
    """A protocol for classes that find a pull-request template."""

    def collect(self) -> Optional[PRTemplate]:
        """Returns the template, or None when the repository has none."""
        ...
