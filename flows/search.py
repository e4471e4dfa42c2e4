"""
Medicine search with debounced suggestions
"""

import asyncio
from typing import Callable, List, Optional, Set

from api.models import MedicineResult
from config import SEARCH_CONFIG
from core.logging_config import get_logger
from events import event_bus, EventTypes
from ui.alerts import AlertType
from ui.context import AppContext

logger = get_logger(__name__)


class MedicineSearchController:
    """
    Search box state: the query, its suggestions and the submitted search.

    Keystrokes restart a debounce timer; only the timer firing sends a
    suggestion request. Cancelling the timer never touches a request that is
    already in flight; stale answers are dropped when they come back.
    """

    def __init__(self,
                 context: AppContext,
                 on_select: Optional[Callable[[MedicineResult], None]] = None,
                 on_results: Optional[Callable[[List[MedicineResult]], None]] = None,
                 debounce_ms: int = SEARCH_CONFIG["debounce_ms"],
                 max_suggestions: int = SEARCH_CONFIG["max_suggestions"]):
        self.context = context
        self.api = context.api
        self.on_select = on_select
        self.on_results = on_results
        self.debounce_seconds = debounce_ms / 1000.0
        self.max_suggestions = max_suggestions

        self.query = ""
        self.suggestions: List[MedicineResult] = []
        self.show_suggestions = False
        self.is_searching = False
        self.selected: Optional[MedicineResult] = None

        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight: Set[asyncio.Task] = set()

    def on_text_change(self, text: str):
        """Handle a keystroke in the search box"""
        if self.selected is not None and text == self.selected.name:
            # Echo of a picked suggestion being written into the box
            return

        self.selected = None
        self.query = text
        self._cancel_timer()

        if not text.strip():
            self.suggestions = []
            self.show_suggestions = False
            return

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire, text)

    def _fire(self, text: str):
        self._timer = None
        task = asyncio.ensure_future(self._fetch_suggestions(text))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _fetch_suggestions(self, text: str):
        term = text.strip()
        logger.debug(f"Fetching suggestions for {term!r}")
        response = await self.api.search_medicines(term)

        if response.superseded or text != self.query or self.selected is not None:
            logger.debug(f"Dropping suggestions for stale query {term!r}")
            return

        if not response.ok:
            logger.warning(f"Suggestion search failed for {term!r}: {response.error}")
            self.suggestions = []
            self.show_suggestions = False
            return

        self.suggestions = (response.data or [])[:self.max_suggestions]
        self.show_suggestions = bool(self.suggestions)
        event_bus.emit(EventTypes.SEARCH_SUGGESTIONS, {
            "query": term,
            "count": len(self.suggestions)
        }, source="search")

    def select_suggestion(self, index: int) -> MedicineResult:
        """Pick a suggestion; no further search is triggered by the pick"""
        if not 0 <= index < len(self.suggestions):
            raise IndexError(f"No suggestion at position {index}")

        medicine = self.suggestions[index]
        self._cancel_timer()
        self.selected = medicine
        self.query = medicine.name
        self.suggestions = []
        self.show_suggestions = False

        if self.on_select:
            self.on_select(medicine)
        return medicine

    async def submit(self) -> List[MedicineResult]:
        """Full search for the current query, independent of the suggestions"""
        term = self.query.strip()
        if not term:
            return []

        self._cancel_timer()
        self.show_suggestions = False
        language = self.context.language
        self.is_searching = True
        try:
            response = await self.api.search_medicines(term, guard_key=SEARCH_CONFIG["guard_keys"]["full_search"])
        finally:
            self.is_searching = False

        if response.superseded:
            return []

        if not response.ok:
            self.context.alerts.show_error(response, language.t("error"))
            return []

        results = response.data or []
        event_bus.emit(EventTypes.SEARCH_RESULTS, {"query": term, "count": len(results)}, source="search")

        if not results:
            self.context.alerts.show_alert(language.t("notice"), language.t("noMedicinesFoundFor", query=term),
                                           AlertType.INFO)
            return []

        if self.on_results:
            self.on_results(results)
        return results

    async def wait_idle(self):
        """Wait for the pending timer to fire and every suggestion request to finish"""
        while self._timer is not None or self._in_flight:
            if self._in_flight:
                await asyncio.gather(*list(self._in_flight), return_exceptions=True)
            else:
                await asyncio.sleep(self.debounce_seconds / 4 or 0.01)

    def clear(self):
        self._cancel_timer()
        self.query = ""
        self.selected = None
        self.suggestions = []
        self.show_suggestions = False

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
