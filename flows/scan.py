"""
Image capture and image-based medicine search
"""

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional, Union

from api.models import ImageFile, MedicineResult
from config import UI_CONFIG
from core.logging_config import get_logger
from events import event_bus, EventTypes
from ui.alerts import AlertAction, AlertType, ActionStyle
from ui.context import AppContext

logger = get_logger(__name__)


class ImageSource(ABC):
    """Where an image comes from: camera capture or gallery pick"""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def acquire(self) -> Optional[ImageFile]:
        """
        Acquire an image

        Returns:
            The image, or None when the user cancelled
        """
        pass


class FileImageSource(ImageSource):
    """Picks an image file from disk"""

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return f"file:{self.path.name}"

    async def acquire(self) -> Optional[ImageFile]:
        return ImageFile.from_path(self.path)


class ImageSearchFlow:
    """Acquire an image, search by it and route to results or details"""

    def __init__(self,
                 context: AppContext,
                 on_results: Optional[Callable[[List[MedicineResult]], None]] = None,
                 on_detail: Optional[Callable[[MedicineResult], None]] = None,
                 open_single_result: bool = UI_CONFIG["open_single_result"]):
        self.context = context
        self.api = context.api
        self.on_results = on_results
        self.on_detail = on_detail
        self.open_single_result = open_single_result

        self.is_processing = False
        self.last_results: List[MedicineResult] = []
        self.retry_task: Optional[asyncio.Future] = None

    async def scan(self, source: ImageSource) -> List[MedicineResult]:
        """Acquire from the source, then search; cancelled acquisition sends nothing"""
        language = self.context.language
        try:
            image = await source.acquire()
        except OSError as e:
            logger.error(f"Could not acquire image from {source.name}: {e}")
            self.context.alerts.show_alert(language.t("error"), language.t("imageUnavailable"), AlertType.ERROR)
            return []

        if image is None:
            logger.debug(f"Image acquisition from {source.name} cancelled")
            return []

        return await self.search_image(image, source)

    async def search_image(self, image: ImageFile, source: Optional[ImageSource] = None) -> List[MedicineResult]:
        language = self.context.language
        alerts = self.context.alerts

        logger.info(f"Searching by image {image.filename} ({image.size} bytes)")
        self.is_processing = True
        try:
            response = await self.api.search_by_image(image)
        finally:
            self.is_processing = False

        if response.superseded:
            return []

        if not response.ok:
            actions = None
            if source is not None:
                actions = [
                    AlertAction(language.t("retry"), on_press=lambda: self._schedule_retry(source)),
                    AlertAction(language.t("cancel"), style=ActionStyle.CANCEL),
                ]
            alerts.show_error(response, language.t("error"), actions)
            return []

        results = response.data or []
        event_bus.emit(EventTypes.SCAN_RESULTS, {"filename": image.filename, "count": len(results)}, source="scan")

        if not results:
            alerts.show_alert(language.t("notice"), language.t("noMedicinesFound"), AlertType.INFO)
            return []

        self.last_results = results

        if self.open_single_result and len(results) == 1 and self.on_detail:
            self.on_detail(results[0])
        elif self.on_results:
            self.on_results(results)
        return results

    def _schedule_retry(self, source: ImageSource):
        self.retry_task = asyncio.ensure_future(self.scan(source))
