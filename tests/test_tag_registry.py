from __future__ import annotations

import logging

from cosmic_notes.api.v1.schemas.note import NoteUpdate
from cosmic_notes.core.models.cluster import Cluster
from cosmic_notes.core.models.note import NoteCategory


async def test_adding_same_tag_twice_keeps_one_association(add_note, registry, tag_repo, db):
    note = await add_note("kickoff notes", tags=["project-x"])
    tag = await tag_repo.get_by_name("project-x")

    await registry.add_tags_to_note(note.id, ["project-x"])
    await registry.add_tags_to_note(note.id, ["  Project-X "])

    assert db.links == {(note.id, tag.id)}
    assert len(db.tags) == 1


async def test_names_are_normalized_and_deduplicated(add_note, registry, tag_repo):
    note = await add_note("plain note")

    ids = await registry.add_tags_to_note(note.id, ["Alpha", "alpha ", "BETA"])

    assert len(ids) == 2
    assert {t.name for t in await tag_repo.list_all()} == {"alpha", "beta"}


async def test_existing_tag_ids_are_resolved_with_names(add_note, registry, tag_repo, db):
    first = await add_note("first", tags=["alpha"])
    second = await add_note("second")
    alpha = await tag_repo.get_by_name("alpha")

    ids = await registry.add_tags_to_note(second.id, ["beta"], existing_tag_ids=[alpha.id])

    beta = await tag_repo.get_by_name("beta")
    assert ids == [beta.id, alpha.id]
    assert (first.id, alpha.id) in db.links
    assert (second.id, alpha.id) in db.links


async def test_new_and_reused_tags_are_marked_dirty(add_note, registry, tag_repo):
    note = await add_note("first", tags=["alpha"])
    alpha = await tag_repo.get_by_name("alpha")
    await registry.clear_dirty([alpha.id])
    assert not (await tag_repo.get(alpha.id)).dirty

    await registry.add_tags_to_note(note.id, ["alpha"])

    assert (await tag_repo.get(alpha.id)).dirty


async def test_removing_last_association_deletes_tag(add_note, registry, tag_repo):
    note = await add_note("only note", tags=["temp"])
    tag = await tag_repo.get_by_name("temp")

    deleted = await registry.remove_tag_from_note(note.id, tag.id)

    assert deleted is True
    assert await tag_repo.get(tag.id) is None


async def test_removing_non_last_association_marks_dirty_and_keeps_others(add_note, registry, tag_repo, db):
    first = await add_note("first", tags=["shared"])
    second = await add_note("second", tags=["shared"])
    tag = await tag_repo.get_by_name("shared")
    await registry.clear_dirty([tag.id])

    deleted = await registry.remove_tag_from_note(first.id, tag.id)

    assert deleted is False
    assert (await tag_repo.get(tag.id)).dirty
    assert db.links == {(second.id, tag.id)}


async def test_association_change_marks_only_matching_category_cluster(add_note, registry, tag_repo, cluster_repo):
    await add_note("first", NoteCategory.SCRATCHPAD, tags=["x"])
    tag = await tag_repo.get_by_name("x")
    scratch = await cluster_repo.insert(Cluster(tag=tag.id, category=NoteCategory.SCRATCHPAD))
    journal = await cluster_repo.insert(Cluster(tag=tag.id, category=NoteCategory.JOURNAL))

    second = await add_note("second", NoteCategory.SCRATCHPAD)
    await registry.add_tags_to_note(second.id, ["x"])

    assert (await cluster_repo.get(scratch.id)).dirty
    assert not (await cluster_repo.get(journal.id)).dirty


async def test_note_edit_marks_every_cluster_of_its_tags(add_note, note_service, tag_repo, cluster_repo):
    note = await add_note("first", NoteCategory.SCRATCHPAD, tags=["x"])
    tag = await tag_repo.get_by_name("x")
    journal = await cluster_repo.insert(Cluster(tag=tag.id, category=NoteCategory.JOURNAL))

    await note_service.update_note(note.id, NoteUpdate(category=NoteCategory.JOURNAL))

    assert (await cluster_repo.get(journal.id)).dirty


async def test_hashtags_in_content_become_tags(add_note, tag_repo):
    await add_note("ship it #Release and ping #alice")

    assert {t.name for t in await tag_repo.list_all()} == {"release", "alice"}


async def test_note_save_survives_tag_failure(add_note, tag_repo, db, caplog):
    tag_repo.fail_writes = True

    with caplog.at_level(logging.ERROR):
        note = await add_note("still saved", tags=["broken"])

    assert note.id in db.notes
    assert db.links == set()
    assert "Failed to attach tags" in caplog.text


async def test_deleting_note_cascades_to_tags(add_note, note_service, tag_repo):
    keep = await add_note("keep", tags=["shared"])
    gone = await add_note("gone", tags=["shared", "solo"])

    assert await note_service.delete_note(gone.id)

    assert await tag_repo.get_by_name("solo") is None
    shared = await tag_repo.get_by_name("shared")
    assert await tag_repo.list_note_ids(shared.id) == [keep.id]


async def test_note_save_survives_tag_store_outage(add_note, tag_repo, db, monkeypatch, caplog):
    async def _network_down(*args, **kwargs):
        raise ConnectionError("network down")

    monkeypatch.setattr(tag_repo, "add_links", _network_down)

    with caplog.at_level(logging.ERROR):
        note = await add_note("still saved", tags=["x"])

    assert note.id in db.notes
    assert "Failed to attach tags" in caplog.text


async def test_note_edit_and_delete_survive_tag_store_outage(add_note, note_service, tag_repo, db, monkeypatch):
    note = await add_note("draft", tags=["x"])

    async def _network_down(*args, **kwargs):
        raise TimeoutError("read timed out")

    monkeypatch.setattr(tag_repo, "list_tag_ids_for_note", _network_down)

    updated = await note_service.update_note(note.id, NoteUpdate(content="rewritten"))
    assert updated.content == "rewritten"
    assert await note_service.delete_note(note.id)
    assert note.id not in db.notes
