"""
Suggestion Presenter

The engine never talks to UI directly. It hands a SuggestionRequest to a
presenter and awaits one SuggestionResponse. PendingSuggestions implements
that with correlation ids: the request is parked until the host reports the
user's answer (or the timeout passes).
"""

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Tuple

from ..common.schemas import SuggestionKind, SuggestionRequest, SuggestionResponse

logger = logging.getLogger("codedraft.proactive.presenter")


class SuggestionPresenter(Protocol):
    """Show a suggestion and await the user's response"""

    async def present(self, request: SuggestionRequest) -> SuggestionResponse:
        ...


class PendingSuggestions:
    """
    Presenter backed by a table of pending requests.

    Workflow:
    1. Engine calls present(request); a future is parked under request.id
    2. Host polls pending() and shows the suggestion
    3. Host calls resolve(id, response) when the user answers
    4. present() returns that response (NONE on timeout or shutdown)
    """

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout
        self._pending: Dict[str, Tuple[SuggestionRequest, asyncio.Future]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    async def present(self, request: SuggestionRequest) -> SuggestionResponse:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending[request.id] = (request, future)
        logger.info("Suggestion %s pending (%s): %s", request.id, request.kind.value, request.message)
        try:
            if self._timeout:
                return await asyncio.wait_for(future, timeout=self._timeout)
            return await future
        except asyncio.TimeoutError:
            logger.info("Suggestion %s timed out without a response", request.id)
            return SuggestionResponse.NONE
        finally:
            self._pending.pop(request.id, None)

    def pending(self) -> List[SuggestionRequest]:
        """Requests waiting for a response, oldest first"""
        return [request for request, future in self._pending.values() if not future.done()]

    def get(self, request_id: str) -> Optional[SuggestionRequest]:
        entry = self._pending.get(request_id)
        return entry[0] if entry else None

    def resolve(self, request_id: str, response: SuggestionResponse) -> Optional[SuggestionRequest]:
        """Complete a pending request; returns it, or None if unknown"""
        entry = self._pending.get(request_id)
        if not entry:
            return None
        request, future = entry
        if future.done():
            return None
        future.set_result(response)
        return request

    def resolve_kind(self, kind: SuggestionKind, response: SuggestionResponse) -> Optional[SuggestionRequest]:
        """Complete the oldest pending request of a kind"""
        for request in self.pending():
            if request.kind == kind:
                return self.resolve(request.id, response)
        return None

    def cancel_all(self) -> int:
        """Resolve everything to NONE (shutdown)"""
        cancelled = 0
        for request_id in list(self._pending):
            if self.resolve(request_id, SuggestionResponse.NONE):
                cancelled += 1
        return cancelled
