from pathlib import Path
from typing import Optional, Union

from core.contracts.models import PRTemplate
from utils.logger import logger

TEMPLATE_PATHS = [
    ".github/pull_request_template.md",
    ".github/PULL_REQUEST_TEMPLATE.md",
    "pull_request_template.md",
    "PULL_REQUEST_TEMPLATE.md",
    ".github/PULL_REQUEST_TEMPLATE/default.md",
]


class TemplateCollector:
    """
    Reads the repository's pull-request template, if it has one.
    """

    def __init__(self, root: Union[str, Path] = "."):
        self.root = Path(root)

    def collect(self) -> Optional[PRTemplate]:
        """
        Returns the first template found in TEMPLATE_PATHS order, or None.

        An unreadable candidate is logged and the next one is tried.
        """
        for relative in TEMPLATE_PATHS:
            path = self.root / relative
            if not path.is_file():
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Could not read PR template {relative}: {e}")
                continue
            logger.info(f"Using PR template: {relative}")
            return PRTemplate(name=relative, content=content)
        logger.debug("No PR template found.")
        return None
