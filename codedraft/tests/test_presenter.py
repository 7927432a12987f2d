"""
Tests for PendingSuggestions

Correlation of responses to requests, timeouts and shutdown.
"""

import asyncio

import pytest


def make_request(kind=None, message="hello"):
    from codedraft.common.schemas import SuggestionKind, SuggestionRequest
    return SuggestionRequest(kind=kind or SuggestionKind.CAPTURE, message=message)


async def wait_until_pending(presenter, count=1):
    for _ in range(100):
        if len(presenter.pending()) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError("suggestion never became pending")


class TestPendingSuggestions:
    @pytest.mark.asyncio
    async def test_resolve_by_id(self):
        from codedraft.common.schemas import SuggestionResponse
        from codedraft.proactive.presenter import PendingSuggestions

        presenter = PendingSuggestions()
        request = make_request()
        task = asyncio.create_task(presenter.present(request))
        await wait_until_pending(presenter)

        assert presenter.get(request.id) is request
        assert presenter.resolve(request.id, SuggestionResponse.ACCEPT) is request
        assert await task == SuggestionResponse.ACCEPT
        assert len(presenter) == 0

    @pytest.mark.asyncio
    async def test_unknown_id(self):
        from codedraft.common.schemas import SuggestionResponse
        from codedraft.proactive.presenter import PendingSuggestions
        assert PendingSuggestions().resolve("sgg_missing", SuggestionResponse.ACCEPT) is None

    @pytest.mark.asyncio
    async def test_resolve_kind_picks_oldest(self):
        from codedraft.common.schemas import SuggestionKind, SuggestionResponse
        from codedraft.proactive.presenter import PendingSuggestions

        presenter = PendingSuggestions()
        first = make_request(message="first")
        second = make_request(message="second")
        tip = make_request(kind=SuggestionKind.TIP)
        tasks = [asyncio.create_task(presenter.present(r)) for r in (first, second, tip)]
        await wait_until_pending(presenter, 3)

        assert presenter.resolve_kind(SuggestionKind.CAPTURE, SuggestionResponse.DISMISS) is first
        assert await tasks[0] == SuggestionResponse.DISMISS
        assert [r.id for r in presenter.pending()] == [second.id, tip.id]

        presenter.cancel_all()
        assert await tasks[1] == SuggestionResponse.NONE
        assert await tasks[2] == SuggestionResponse.NONE

    @pytest.mark.asyncio
    async def test_resolve_kind_without_match(self):
        from codedraft.common.schemas import SuggestionKind, SuggestionResponse
        from codedraft.proactive.presenter import PendingSuggestions
        presenter = PendingSuggestions()
        assert presenter.resolve_kind(SuggestionKind.DRAFT, SuggestionResponse.ACCEPT) is None

    @pytest.mark.asyncio
    async def test_timeout_resolves_to_none(self):
        from codedraft.common.schemas import SuggestionResponse
        from codedraft.proactive.presenter import PendingSuggestions

        presenter = PendingSuggestions(timeout=0.01)
        assert await presenter.present(make_request()) == SuggestionResponse.NONE
        assert len(presenter) == 0

    @pytest.mark.asyncio
    async def test_second_resolve_is_ignored(self):
        from codedraft.common.schemas import SuggestionResponse
        from codedraft.proactive.presenter import PendingSuggestions

        presenter = PendingSuggestions()
        request = make_request()
        task = asyncio.create_task(presenter.present(request))
        await wait_until_pending(presenter)

        presenter.resolve(request.id, SuggestionResponse.ACCEPT)
        assert presenter.resolve(request.id, SuggestionResponse.DISMISS) is None
        assert await task == SuggestionResponse.ACCEPT
