"""Tests for the project/chapter store."""

import asyncio
from dataclasses import replace

import pytest

from conftest import make_chapters, words
from config.exceptions import (
    BackendResponseError,
    BackendUnavailableError,
    ChapterNotFoundError,
    NoActiveProjectError,
)
from models.chapter import Chapter
from models.enums import ChapterStatus, LifecycleEvent, LifecycleState, Pov


class TestInitialize:
    @pytest.mark.asyncio
    async def test_initialize_yields_contiguous_empty_chapters(self, store, mock_backend):
        chapters = await store.initialize("p1")
        assert [c.number for c in chapters] == [1, 2, 3]
        assert all(c.status == ChapterStatus.EMPTY for c in chapters)
        assert all(store.lifecycle(n).state == LifecycleState.EMPTY for n in (1, 2, 3))
        mock_backend.init_chapters.assert_awaited_once_with("p1")

    @pytest.mark.asyncio
    async def test_order_of_response_does_not_matter(self, store, mock_backend):
        mock_backend.init_chapters.side_effect = None
        mock_backend.init_chapters.return_value = list(reversed(make_chapters(3)))
        chapters = await store.initialize("p1")
        assert [c.number for c in chapters] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_lifecycle_seeded_from_status(self, store, mock_backend):
        mock_backend.init_chapters.side_effect = None
        mock_backend.init_chapters.return_value = [
            Chapter(1, content="a", status=ChapterStatus.GENERATED),
            Chapter(2, content="b", status=ChapterStatus.DRAFT),
            Chapter(3),
        ]
        await store.initialize("p1")
        assert store.lifecycle(1).state == LifecycleState.GENERATED
        assert store.lifecycle(2).state == LifecycleState.DRAFT
        assert store.lifecycle(3).state == LifecycleState.EMPTY

    @pytest.mark.asyncio
    async def test_failure_leaves_previous_state(self, store, mock_backend):
        await store.initialize("p1")
        before = store.chapters
        mock_backend.init_chapters.side_effect = BackendUnavailableError("down")
        with pytest.raises(BackendUnavailableError):
            await store.initialize("p1")
        assert store.chapters == before

    @pytest.mark.asyncio
    async def test_non_contiguous_set_rejected(self, store, mock_backend):
        mock_backend.init_chapters.side_effect = None
        mock_backend.init_chapters.return_value = [Chapter(1), Chapter(2), Chapter(4)]
        with pytest.raises(BackendResponseError):
            await store.initialize("p1")
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_wrong_project_rejected(self, store):
        with pytest.raises(NoActiveProjectError):
            await store.initialize("other")

    @pytest.mark.asyncio
    async def test_refresh_uses_list_endpoint(self, store, mock_backend):
        await store.refresh("p1")
        mock_backend.list_chapters.assert_awaited_once_with("p1")
        mock_backend.init_chapters.assert_not_awaited()
        assert store.numbers == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_refresh_keeps_busy_lifecycles(self, store, mock_backend):
        await store.initialize("p1")
        store.lifecycle(1).fire(LifecycleEvent.GENERATE)
        store.lifecycle(2).fire(LifecycleEvent.EDIT)
        mock_backend.list_chapters.side_effect = None
        mock_backend.list_chapters.return_value = [
            Chapter(1), Chapter(2), Chapter(3, content="x", status=ChapterStatus.DRAFT),
        ]
        await store.refresh("p1")
        assert store.lifecycle(1).state == LifecycleState.GENERATING
        assert store.lifecycle(2).state == LifecycleState.EDITING
        assert store.lifecycle(3).state == LifecycleState.DRAFT


class TestApplyUpdate:
    @pytest.mark.asyncio
    async def test_only_target_chapter_changes(self, store, mock_backend):
        mock_backend.init_chapters.side_effect = None
        mock_backend.init_chapters.return_value = [
            Chapter(1, title="One", content="alpha"),
            Chapter(2, title="Two", content="beta"),
            Chapter(3, title="Three", content="gamma", pov=Pov.MALE),
        ]
        await store.initialize("p1")
        before = {c.number: c for c in store.chapters}
        mock_backend.update_chapter.return_value = replace(before[3], title="X")

        result = await store.apply_update(3, {"title": "X"})

        mock_backend.update_chapter.assert_awaited_once_with("p1", 3, {"title": "X"})
        assert result.title == "X"
        assert store.get(3).content == "gamma"
        assert store.get(3).pov == Pov.MALE
        assert store.get(1) == before[1]
        assert store.get(2) == before[2]

    @pytest.mark.asyncio
    async def test_failed_update_changes_nothing(self, store, mock_backend):
        await store.initialize("p1")
        before = store.chapters
        mock_backend.update_chapter.side_effect = BackendResponseError("bad", status_code=422)
        with pytest.raises(BackendResponseError):
            await store.apply_update(2, {"title": "Y"})
        assert store.chapters == before
        assert store.registry.in_flight(2) is None

    @pytest.mark.asyncio
    async def test_unknown_chapter_raises(self, store):
        await store.initialize("p1")
        with pytest.raises(ChapterNotFoundError):
            await store.apply_update(9, {"title": "nope"})

    @pytest.mark.asyncio
    async def test_response_after_reset_is_discarded(self, store, mock_backend, dual_project):
        await store.initialize("p1")

        async def reset_mid_flight(project_id, number, patch):
            store.bind(dual_project)
            return Chapter(number, title="late")

        mock_backend.update_chapter.side_effect = reset_mid_flight
        assert await store.apply_update(1, {"title": "late"}) is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_update_queued_across_project_switch_is_dropped(self, store, mock_backend, male_project):
        await store.initialize("p1")
        started, release = asyncio.Event(), asyncio.Event()

        async def blocked(project_id, number, patch):
            started.set()
            await release.wait()
            return Chapter(number, title=patch["title"])

        mock_backend.update_chapter.side_effect = blocked
        first = asyncio.create_task(store.apply_update(1, {"title": "first"}))
        await started.wait()
        queued = asyncio.create_task(store.apply_update(1, {"title": "queued"}))
        await asyncio.sleep(0)

        store.bind(male_project)
        mock_backend.init_chapters.side_effect = lambda project_id: make_chapters(4)
        await store.initialize("p2")
        release.set()

        assert await first is None
        assert await queued is None
        assert mock_backend.update_chapter.await_count == 1
        assert store.get(1).title == ""
        assert store.registry.in_flight(1) is None

    @pytest.mark.asyncio
    async def test_cancelled_queued_update_leaves_first_in_flight(self, store, mock_backend):
        await store.initialize("p1")
        started, release = asyncio.Event(), asyncio.Event()

        async def blocked(project_id, number, patch):
            started.set()
            await release.wait()
            return Chapter(number, title=patch["title"])

        mock_backend.update_chapter.side_effect = blocked
        first = asyncio.create_task(store.apply_update(1, {"title": "first"}))
        await started.wait()
        queued = asyncio.create_task(store.apply_update(1, {"title": "queued"}))
        await asyncio.sleep(0)
        queued.cancel()
        with pytest.raises(asyncio.CancelledError):
            await queued

        assert store.registry.in_flight(1) == "update"
        release.set()
        assert (await first).title == "first"
        assert store.registry.in_flight(1) is None


class TestMerge:
    @pytest.mark.asyncio
    async def test_merge_is_keyed_by_number(self, store):
        await store.initialize("p1")
        store.merge(Chapter(2, title="Merged", content="text", status=ChapterStatus.GENERATED))
        assert store.get(2).title == "Merged"
        assert store.get(1).title == ""
        assert store.numbers == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_merge_unknown_number_raises(self, store):
        await store.initialize("p1")
        with pytest.raises(ChapterNotFoundError):
            store.merge(Chapter(7))

    @pytest.mark.asyncio
    async def test_stale_token_not_merged(self, store):
        await store.initialize("p1")
        old = store.registry.begin(1, "generate")
        store.registry.begin(1, "update")
        assert store.merge(Chapter(1, title="stale"), old) is None
        assert store.get(1).title == ""


class TestWordCount:
    @pytest.mark.parametrize("count,expected", [
        (1399, False), (1400, True), (1600, True), (1800, True), (1801, False), (0, False),
    ])
    def test_in_range_boundaries(self, store, count, expected):
        assert store.in_range(Chapter(1, content=words(count))) is expected

    @pytest.mark.asyncio
    async def test_summary_and_out_of_range(self, store):
        await store.initialize("p1")
        store.merge(Chapter(1, content=words(1500), status=ChapterStatus.GENERATED))
        store.merge(Chapter(2, content=words(900), status=ChapterStatus.DRAFT))
        assert [c.number for c in store.out_of_range()] == [2, 3]
        summary = store.summary()
        assert summary["total_words"] == 2400
        assert summary["in_range"] == 1
        assert summary["by_status"] == {"empty": 1, "draft": 1, "generated": 1}
