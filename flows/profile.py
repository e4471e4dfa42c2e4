"""
Profile and history controllers
"""

from typing import Any, Dict, List, Optional

from api.models import HistoryActionType, HistoryEntry, ProfileUpdate, User
from config import SEARCH_CONFIG
from core.logging_config import get_logger
from ui.alerts import AlertType
from ui.context import AppContext
from .scan import ImageSource

logger = get_logger(__name__)

USER_MENU = ["profile", "history", "settings", "help", "about", "privacy", "logout"]
ADMIN_MENU = ["admin_profile", "user_management", "medicine_management"]


class ProfileController:
    """Holds the signed-in user's profile"""

    def __init__(self, context: AppContext):
        self.context = context
        self.api = context.api
        self.user: Optional[User] = None
        self.is_loading = False

    @property
    def image_url(self) -> Optional[str]:
        if self.user is None:
            return None
        return self.api.profile_image_url(self.user.image)

    def menu_items(self) -> List[str]:
        """Menu entries for the current role; admin panels only for admins"""
        if self.user is not None and self.user.is_admin:
            return ADMIN_MENU + USER_MENU
        return list(USER_MENU)

    async def load(self) -> Optional[User]:
        self.is_loading = True
        try:
            response = await self.api.get_profile()
        finally:
            self.is_loading = False

        if response.superseded:
            return self.user

        if not response.ok:
            self.context.alerts.show_error(response, self.context.language.t("error"))
            return None

        if isinstance(response.data, User):
            self.user = response.data
        return self.user

    async def update(self, **fields) -> bool:
        """Send changed fields; e.g. ``update(name="Rahim", date_of_birth="1990-01-01")``"""
        t = self.context.language.t
        update = ProfileUpdate(**fields)
        if update.is_empty():
            self.context.alerts.show_alert(t("notice"), t("nothingToUpdate"), AlertType.INFO)
            return False

        response = await self.api.update_profile(update)
        if not response.ok:
            self.context.alerts.show_error(response, t("error"))
            return False

        self._apply(response.data)
        self.context.alerts.show_alert(t("success"), t("profileUpdated"), AlertType.SUCCESS)
        return True

    async def upload_image(self, source: ImageSource) -> bool:
        """Replace the profile picture; on failure the previous picture stays"""
        t = self.context.language.t
        try:
            image = await source.acquire()
        except OSError as e:
            logger.error(f"Could not read profile image from {source.name}: {e}")
            self.context.alerts.show_alert(t("error"), t("imageUnavailable"), AlertType.ERROR)
            return False

        if image is None:
            return False

        response = await self.api.upload_profile_image(image)
        if not response.ok:
            self.context.alerts.show_error(response, t("error"))
            return False

        self._apply(response.data)
        self.context.alerts.show_alert(t("success"), t("profileImageUpdated"), AlertType.SUCCESS)
        return True

    async def remove_image(self) -> bool:
        t = self.context.language.t
        response = await self.api.remove_profile_image()
        if not response.ok:
            self.context.alerts.show_error(response, t("error"))
            return False

        if isinstance(response.data, User):
            self.user = response.data
        elif self.user is not None:
            self.user.image = None
        self.context.alerts.show_alert(t("success"), t("profileImageRemoved"), AlertType.SUCCESS)
        return True

    def _apply(self, data: Any):
        """Take the server's view of the user, or merge a partial body into it"""
        if isinstance(data, User):
            self.user = data
        elif isinstance(data, dict) and self.user is not None:
            if "image" in data:
                self.user.image = data["image"]
            merged = {**self.user.to_dict(), **{k: v for k, v in data.items() if k != "image"}}
            merged["image"] = self.user.image
            self.user = User.from_dict(merged)


class HistoryController:
    """The user's scan/upload/view history"""

    def __init__(self, context: AppContext):
        self.context = context
        self.api = context.api
        self.entries: List[HistoryEntry] = []
        self.is_loading = False

    async def load(self, limit: int = SEARCH_CONFIG["history_limit"]) -> List[HistoryEntry]:
        self.is_loading = True
        try:
            response = await self.api.get_history(limit)
        finally:
            self.is_loading = False

        if response.superseded:
            return self.entries

        if not response.ok:
            self.context.alerts.show_error(response, self.context.language.t("error"))
            return self.entries

        self.entries = response.data or []
        return self.entries

    def recent_scans(self) -> List[HistoryEntry]:
        """Successful scans and uploads that produced at least one medicine"""
        return [
            entry for entry in self.entries
            if entry.is_successful
            and entry.action_type in (HistoryActionType.SCAN, HistoryActionType.UPLOAD)
            and entry.top_result is not None
        ]

    def stats(self) -> Dict[str, int]:
        successful = sum(1 for entry in self.entries if entry.is_successful)
        return {
            "total": len(self.entries),
            "successful": successful,
            "failed": len(self.entries) - successful,
        }
