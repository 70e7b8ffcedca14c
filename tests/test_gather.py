from __future__ import annotations

from collections import Counter

from cosmic_notes.api.v1.schemas.note import NoteUpdate
from cosmic_notes.core.models.note import NoteCategory


async def test_gather_creates_clusters_and_clears_dirty(add_note, gather_service, tag_repo):
    await add_note("idea one", NoteCategory.SCRATCHPAD, tags=["project-x"])
    await add_note("idea two", NoteCategory.SCRATCHPAD, tags=["project-x"])
    await add_note("paper", NoteCategory.RESEARCH, tags=["project-x"])

    report = await gather_service.gather()

    assert report.tags_processed == 1
    assert report.tags_failed == 0
    assert report.categories_processed == 2
    assert {(c.tag, c.category, c.note_count) for c in report.clusters_created} == {
        ("project-x", NoteCategory.SCRATCHPAD, 2),
        ("project-x", NoteCategory.RESEARCH, 1),
    }
    assert not (await tag_repo.get_by_name("project-x")).dirty


async def test_gather_is_idempotent(add_note, gather_service, synthesizer):
    await add_note("a", NoteCategory.MEETING, tags=["weekly"])
    await add_note("b", NoteCategory.MEETING, tags=["weekly"])
    await gather_service.gather()
    calls = len(synthesizer.calls)

    report = await gather_service.gather()

    assert report.clusters_created == []
    assert report.clusters_updated == 0
    assert report.tags_skipped == report.tags_processed == 1
    assert len(synthesizer.calls) == calls


async def test_tags_below_threshold_are_not_clustered(add_note, gather_service, cluster_repo, family_repo):
    await add_note("lonely", NoteCategory.JOURNAL, tags=["solo"])

    report = await gather_service.gather()

    assert report.tags_processed == 0
    assert await cluster_repo.list() == []
    assert await family_repo.get_by_tag("solo") is None


async def test_gc_removes_cluster_after_note_deletion(add_note, note_service, gather_service, tag_repo, cluster_repo):
    first = await add_note("day one", NoteCategory.JOURNAL, tags=["temp"])
    second = await add_note("day two", NoteCategory.JOURNAL, tags=["temp"])
    await gather_service.gather()
    tag = await tag_repo.get_by_name("temp")
    [cluster] = await cluster_repo.list(tag_id=tag.id)
    assert cluster.note_count == 2

    await note_service.delete_note(second.id)
    report = await gather_service.gather()

    assert await cluster_repo.list(tag_id=tag.id) == []
    assert report.tag_families_deleted == 1

    await note_service.delete_note(first.id)
    assert await tag_repo.get(tag.id) is None


async def test_cleanup_obsolete_clusters_uses_live_counts(add_note, note_service, gather_service, collector, cluster_repo):
    await add_note("day one", NoteCategory.JOURNAL, tags=["temp"])
    second = await add_note("day two", NoteCategory.JOURNAL, tags=["temp"])
    await gather_service.gather()

    await note_service.delete_note(second.id)

    assert await collector.cleanup_obsolete_clusters() == 1
    assert await cluster_repo.list() == []


async def test_cluster_of_emptied_category_is_collected(add_note, note_service, gather_service, tag_repo, cluster_repo):
    await add_note("a", NoteCategory.SCRATCHPAD, tags=["mixed"])
    await add_note("b", NoteCategory.SCRATCHPAD, tags=["mixed"])
    journal = await add_note("c", NoteCategory.JOURNAL, tags=["mixed"])
    await gather_service.gather()

    await note_service.update_note(journal.id, NoteUpdate(category=NoteCategory.SCRATCHPAD))
    report = await gather_service.gather()

    tag = await tag_repo.get_by_name("mixed")
    assert report.clusters_deleted == 1
    assert [c.category for c in await cluster_repo.list(tag_id=tag.id)] == [NoteCategory.SCRATCHPAD]


async def test_one_failing_tag_does_not_block_others(add_note, gather_service, synthesizer, tag_repo, cluster_repo):
    await add_note("FAILME a", NoteCategory.SCRATCHPAD, tags=["bad"])
    await add_note("FAILME b", NoteCategory.SCRATCHPAD, tags=["bad"])
    await add_note("ok a", NoteCategory.SCRATCHPAD, tags=["good"])
    await add_note("ok b", NoteCategory.SCRATCHPAD, tags=["good"])
    synthesizer.fail_marker = "FAILME"

    report = await gather_service.gather()

    assert report.tags_failed == 1
    assert report.failures[0].tag == "bad"
    assert report.failures[0].error_type == "ProviderError"
    assert [c.tag for c in report.clusters_created] == ["good"]
    bad = await tag_repo.get_by_name("bad")
    assert bad.dirty
    assert await cluster_repo.list(tag_id=bad.id) == []
    assert not (await tag_repo.get_by_name("good")).dirty


async def test_failed_tag_is_retried_on_next_gather(add_note, gather_service, synthesizer):
    await add_note("FAILME a", NoteCategory.SCRATCHPAD, tags=["flaky"])
    await add_note("FAILME b", NoteCategory.SCRATCHPAD, tags=["flaky"])
    synthesizer.fail_marker = "FAILME"
    await gather_service.gather()

    synthesizer.fail_marker = None
    report = await gather_service.gather()

    assert [c.tag for c in report.clusters_created] == ["flaky"]


async def test_only_dirty_limits_gather_to_changed_tags(add_note, registry, gather_service):
    await add_note("a", NoteCategory.SCRATCHPAD, tags=["alpha"])
    await add_note("b", NoteCategory.SCRATCHPAD, tags=["alpha"])
    await add_note("c", NoteCategory.SCRATCHPAD, tags=["beta"])
    await add_note("d", NoteCategory.SCRATCHPAD, tags=["beta"])
    await gather_service.gather()

    extra = await add_note("e", NoteCategory.SCRATCHPAD)
    await registry.add_tags_to_note(extra.id, ["beta"])
    report = await gather_service.gather(only_dirty=True)

    assert [d.tag for d in report.details] == ["beta"]
    assert report.clusters_updated == 1


async def test_cluster_pairs_stay_unique(add_note, gather_service, engine, cluster_repo):
    for i in range(3):
        await add_note(f"note {i}", NoteCategory.FEEDBACK, tags=["review"])
    await gather_service.gather()
    await engine.process_tag_clustering("review", 3, force=True)
    await add_note("note 4", NoteCategory.FEEDBACK, tags=["review"])
    await gather_service.gather()

    pairs = Counter((c.tag, c.category) for c in await cluster_repo.list())
    assert all(count == 1 for count in pairs.values())
    [cluster] = await cluster_repo.list()
    assert cluster.note_count == 4


async def test_orphan_tags_are_removed(add_note, gather_service, tag_repo, db):
    note = await add_note("a", tags=["orphan"])
    tag = await tag_repo.get_by_name("orphan")
    db.links.discard((note.id, tag.id))

    report = await gather_service.gather()

    assert report.tags_deleted == 1
    assert await tag_repo.get(tag.id) is None


async def test_edited_tag_stays_dirty_when_gather_skips_it(add_note, note_service, gather_service, tag_repo, synthesizer):
    draft = await add_note("draft", NoteCategory.SCRATCHPAD, tags=["edits"])
    await add_note("other", NoteCategory.SCRATCHPAD, tags=["edits"])
    await gather_service.gather()
    calls = len(synthesizer.calls)

    await note_service.update_note(draft.id, NoteUpdate(content="rewritten"))
    report = await gather_service.gather(only_dirty=True)

    assert report.tags_skipped == 1
    assert len(synthesizer.calls) == calls
    assert (await tag_repo.get_by_name("edits")).dirty

    again = await gather_service.gather(only_dirty=True)
    assert [d.tag for d in again.details] == ["edits"]
