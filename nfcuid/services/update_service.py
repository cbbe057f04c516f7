"""
UpdateService - Checks GitHub for a newer release.

Only announces updates; downloading and installing is left to the user.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING

import requests

from .. import GITHUB_OWNER, GITHUB_REPO, __version__
from ..models.errors import ErrorCategory, UpdateCheckError

if TYPE_CHECKING:
    from .notification_service import NotificationService

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


@dataclass
class ReleaseInfo:
    tag_name: str
    name: str = ""
    html_url: str = ""
    draft: bool = False
    prerelease: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ReleaseInfo":
        return cls(
            tag_name=data.get("tag_name", ""),
            name=data.get("name") or "",
            html_url=data.get("html_url") or "",
            draft=bool(data.get("draft", False)),
            prerelease=bool(data.get("prerelease", False)),
        )


def _version_parts(version: str, label: str) -> List[int]:
    parts = version.strip().lstrip("v").split(".")
    while len(parts) < 3:
        parts.append("0")
    try:
        return [int(part) for part in parts[:3]]
    except ValueError:
        raise UpdateCheckError(f"invalid {label} version: {version}")


def is_newer_version(remote: str, current: str) -> bool:
    """
    Compare major.minor.patch numerically, ignoring a leading 'v'.

    Raises:
        UpdateCheckError: a version part is not a number
    """
    return _version_parts(remote, "remote") > _version_parts(current, "current")


class UpdateService:
    """
    Looks up the latest GitHub release of this application.

    Args:
        notifications: Where update news and failures are reported
        current_version: Running version, defaults to the package version
        session: requests session (or module) used for HTTP
    """

    def __init__(
        self,
        notifications: Optional["NotificationService"] = None,
        current_version: str = __version__,
        owner: str = GITHUB_OWNER,
        repo: str = GITHUB_REPO,
        session=None,
    ):
        self._notifications = notifications
        self.current_version = current_version
        self._owner = owner
        self._repo = repo
        self._http = session or requests

    @property
    def api_url(self) -> str:
        return f"https://api.github.com/repos/{self._owner}/{self._repo}/releases/latest"

    def fetch_latest_release(self) -> ReleaseInfo:
        """
        Raises:
            UpdateCheckError: request failed or returned unusable data
        """
        try:
            response = self._http.get(self.api_url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise UpdateCheckError(f"failed to check for updates: {e}") from e
        except ValueError as e:
            raise UpdateCheckError(f"failed to parse release data: {e}") from e

        if not isinstance(data, dict) or not data.get("tag_name"):
            raise UpdateCheckError("release data has no tag name")
        return ReleaseInfo.from_dict(data)

    def check(self) -> Optional[ReleaseInfo]:
        """
        Look for a newer stable release.

        Returns:
            The newer release, or None when up to date or the latest
            release is a draft or prerelease
        """
        logger.info("Checking for updates...")
        release = self.fetch_latest_release()

        if release.draft or release.prerelease:
            logger.info(f"Latest release {release.tag_name} is draft/prerelease, skipping")
            return None

        if not is_newer_version(release.tag_name, self.current_version):
            logger.info("No updates available")
            return None

        logger.info(f"Update available: {self.current_version} -> {release.tag_name}")
        return release

    def perform_check(self) -> Optional[ReleaseInfo]:
        """Run check() and report the outcome through notifications."""
        try:
            release = self.check()
        except UpdateCheckError as e:
            logger.warning(f"Failed to check for updates: {e}")
            if self._notifications is not None:
                self._notifications.notify_error_throttled(
                    ErrorCategory.UPDATE, f"Failed to check for updates: {e}"
                )
            return None

        if release is not None and self._notifications is not None:
            self._notifications.notify_info(
                "Update Available", f"New version {release.tag_name} is available"
            )
        return release
