"""Project context discovery.

A project is identified by ``workspaceId`` + ``projectSlug`` and read from an
``i18n.config.json`` file located in the scanned root directory. Only the root
itself is consulted; parent directories are never searched so a nested project
cannot silently pick up the configuration of an enclosing workspace.

Example file::

    {
      "workspaceId": "acme",
      "projectSlug": "dashboard",
      "defaultLocale": "en",
      "cdnBaseUrl": "https://cdn.example.com",
      "lint": {"include": ["src"], "exclude": ["src/legacy"]}
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from config import settings

__all__ = ["ProjectContext", "ProjectConfigError", "detect_project_context"]

_logger = logging.getLogger(__name__)


class ProjectConfigError(ValueError):
    """Raised when a project configuration file exists but is unusable."""


@dataclass(slots=True)
class ProjectContext:
    workspace_id: str
    project_slug: str
    default_locale: str = settings.DEFAULT_LOCALE
    cdn_base_url: str = settings.DEFAULT_CDN_BASE_URL
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.workspace_id}/{self.project_slug}"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProjectContext":
        workspace = data.get("workspaceId")
        slug = data.get("projectSlug")
        if not isinstance(workspace, str) or not workspace:
            raise ProjectConfigError("workspaceId must be a non-empty string")
        if not isinstance(slug, str) or not slug:
            raise ProjectConfigError("projectSlug must be a non-empty string")
        lint = data.get("lint") or {}
        return cls(
            workspace_id=workspace,
            project_slug=slug,
            default_locale=data.get("defaultLocale") or settings.DEFAULT_LOCALE,
            cdn_base_url=(data.get("cdnBaseUrl") or settings.DEFAULT_CDN_BASE_URL).rstrip("/"),
            include=list(lint.get("include") or []),
            exclude=list(lint.get("exclude") or []),
        )


def detect_project_context(root_dir: str | Path) -> Optional[ProjectContext]:
    """Load the project context from ``root_dir`` if a config file is present.

    Returns None when no file exists. A file that is not valid JSON, or lacks
    the project identifiers, raises :class:`ProjectConfigError`.
    """
    path = Path(root_dir) / settings.PROJECT_CONFIG_FILENAME
    if not path.is_file():
        _logger.debug("No %s in %s", settings.PROJECT_CONFIG_FILENAME, root_dir)
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ProjectConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ProjectConfigError(f"{path} must contain a JSON object")
    return ProjectContext.from_mapping(data)
