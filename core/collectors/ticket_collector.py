import re
from typing import Any, List, Mapping, Optional

import httpx

from core.contracts.models import Ticket
from utils.errors import CollectorError
from utils.logger import logger

TICKET_KEY = re.compile(r"^[A-Z][A-Z0-9]*-\d+$")
TICKET_KEY_IN_BRANCH = re.compile(r"(?:^|[/\-_])([A-Z][A-Z0-9]*-\d+)(?:[/\-_]|$)", re.IGNORECASE)

ISSUE_FIELDS = "summary,description,issuetype,status,assignee,reporter,parent"


def is_valid_ticket_key(key: str) -> bool:
    return bool(TICKET_KEY.match(key))


def extract_ticket_key(branch_name: str) -> Optional[str]:
    """Extracts a ticket key from a branch name (e.g., feature/proj-123-login -> PROJ-123)."""
    match = TICKET_KEY_IN_BRANCH.search(branch_name)
    return match.group(1).upper() if match else None


def flatten_document(node: Any) -> str:
    """
    Converts an Atlassian document-format description to plain text.
    Block nodes are separated by newlines. Plain strings pass through.
    """
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if not isinstance(node, Mapping):
        return ""
    if node.get("type") == "text":
        return node.get("text", "")
    if node.get("type") == "hardBreak":
        return "\n"

    children: List[str] = [flatten_document(child) for child in node.get("content") or []]
    inline = node.get("type") in ("paragraph", "heading")
    text = "".join(children) if inline else "\n".join(child for child in children if child)
    if node.get("type") == "listItem":
        text = f"- {text}"
    return text


def _name(field: Any, attribute: str = "name") -> Optional[str]:
    return field.get(attribute) if isinstance(field, Mapping) else None


class TicketCollector:
    """
    Fetches ticket details from the Jira Cloud REST API.
    """

    def __init__(self, base_url: Optional[str], email: Optional[str], api_token: Optional[str]):
        if not base_url or not email or not api_token:
            raise CollectorError(
                "Missing Jira configuration. Set jira.base_url, jira.email and jira.api_token in your config."
            )
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=f"{self.base_url}/rest/api/3",
            auth=(email, api_token),
            headers={"Accept": "application/json"},
            timeout=30,
        )

    def _get_issue(self, key: str) -> Mapping[str, Any]:
        try:
            response = self.client.get(f"/issue/{key}", params={"fields": ISSUE_FIELDS})
            response.raise_for_status()
            return response.json()
        except httpx.RequestError as e:
            raise CollectorError(f"Failed to request Jira API: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise CollectorError(f"Ticket not found: '{key}'. Please check the ticket key.") from e
            if status == 401:
                raise CollectorError("Authentication failed. Please check your Jira credentials.") from e
            if status == 403:
                raise CollectorError("Access denied. Please check your Jira permissions.") from e
            raise CollectorError(f"Jira API returned error: {status} {e.response.text}") from e

    def collect(self, key: str) -> Ticket:
        """
        Fetches one ticket.

        Args:
            key: A ticket key such as ``PROJ-123``.

        Raises:
            CollectorError: If the key is malformed or the request fails.
        """
        key = key.upper()
        if not is_valid_ticket_key(key):
            raise CollectorError(f"Invalid ticket key '{key}'. Expected a key like PROJ-123.")

        logger.info(f"Fetching Jira ticket {key}")
        issue = self._get_issue(key)
        fields = issue.get("fields") or {}
        parent = fields.get("parent") or {}
        return Ticket(
            key=issue.get("key", key),
            summary=fields.get("summary") or "",
            description=flatten_document(fields.get("description")) or None,
            issue_type=_name(fields.get("issuetype")) or "Task",
            status=_name(fields.get("status")) or "Unknown",
            assignee=_name(fields.get("assignee"), "displayName"),
            reporter=_name(fields.get("reporter"), "displayName"),
            parent_key=parent.get("key"),
            parent_summary=(parent.get("fields") or {}).get("summary"),
        )

    def close(self) -> None:
        self.client.close()
