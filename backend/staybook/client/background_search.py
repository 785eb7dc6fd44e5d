"""Debounced background rate search while the search form is still open.

A search is prefetched once the user stops changing the form, so the
results page can reuse it. A result is only kept while it still matches the
params the form currently shows.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from staybook.search.results_query import ResultsQueryParams, background_search_signature

logger = logging.getLogger(__name__)

DEBOUNCE_LOCATION_SECONDS = 0.5
DEBOUNCE_DATE_OR_OCCUPANCY_SECONDS = 1.5

SearchFn = Callable[[ResultsQueryParams], Awaitable[dict]]


class Trigger(str, Enum):
    LOCATION = "location"
    DATE_OR_OCCUPANCY = "date_or_occupancy"


class SearchState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    PENDING = "pending"
    CACHED = "cached"


class BackgroundSearchScheduler:
    def __init__(
        self,
        search: SearchFn,
        location_delay: float = DEBOUNCE_LOCATION_SECONDS,
        date_delay: float = DEBOUNCE_DATE_OR_OCCUPANCY_SECONDS,
    ):
        self._search = search
        self._delays = {
            Trigger.LOCATION: location_delay,
            Trigger.DATE_OR_OCCUPANCY: date_delay,
        }
        self.state = SearchState.IDLE
        self._pending_params: ResultsQueryParams | None = None
        self._current_params: ResultsQueryParams | None = None
        self._last_signature: str | None = None
        self._cached: tuple[str, dict] | None = None
        self._timer: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None

    def schedule(self, params: ResultsQueryParams, trigger: Trigger | str):
        """(Re)start the debounce window for ``params``."""
        self._cancel_timer()
        self._pending_params = params
        self._current_params = params
        self.state = SearchState.DEBOUNCING
        self._timer = asyncio.create_task(self._fire_after(self._delays[Trigger(trigger)]))

    def update_params(self, params: ResultsQueryParams):
        """Record what the form shows now without scheduling a search."""
        self._current_params = params

    async def _fire_after(self, delay: float):
        await asyncio.sleep(delay)
        self._timer = None
        params = self._pending_params
        self._pending_params = None
        if params is None:
            return

        signature = background_search_signature(params)
        if signature == self._last_signature:
            if self._matches(signature):
                self.state = SearchState.CACHED
            else:
                self.state = SearchState.PENDING if self._inflight else SearchState.IDLE
            return

        self._cancel_inflight()
        self._last_signature = signature
        self._current_params = params
        self.state = SearchState.PENDING
        self._inflight = asyncio.create_task(self._run(params, signature))

    async def _run(self, params: ResultsQueryParams, signature: str):
        task = asyncio.current_task()
        try:
            data = await self._search(params)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # prefetch is best effort
            logger.warning(f"Background rate search failed: {e}")
            data = None
        finally:
            if self._inflight is task:
                self._inflight = None

        if self._inflight is not None:
            return
        if not data or data.get("error"):
            if self.state is SearchState.PENDING:
                self.state = SearchState.IDLE
            return
        if self._current_params is not None and background_search_signature(self._current_params) == signature:
            self._cached = (signature, data)
            self.state = SearchState.CACHED
        elif self.state is SearchState.PENDING:
            self.state = SearchState.IDLE

    def _matches(self, signature: str) -> bool:
        return self._cached is not None and self._cached[0] == signature

    def get_result_for_params(self, params: ResultsQueryParams) -> dict | None:
        if self._cached is None:
            return None
        signature, data = self._cached
        return data if background_search_signature(params) == signature else None

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending_params = None

    def _cancel_inflight(self):
        if self._inflight is not None:
            self._inflight.cancel()
            self._inflight = None

    def cancel(self):
        """Drop the pending timer and abort any in-flight search."""
        self._cancel_timer()
        self._cancel_inflight()
        self._last_signature = None
        self.state = SearchState.IDLE

    async def wait(self):
        """Wait for the pending timer and the search it starts."""
        if self._timer is not None:
            await asyncio.wait([self._timer])
        if self._inflight is not None:
            await asyncio.wait([self._inflight])
