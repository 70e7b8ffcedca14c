"""In-memory stand-ins for the Supabase repositories and the OpenAI providers."""

from __future__ import annotations

from collections import Counter
from types import SimpleNamespace

import pytest

from cosmic_notes.core.errors import PersistenceError, ProviderError
from cosmic_notes.core.models.base import utcnow
from cosmic_notes.core.models.cluster import Cluster, TagFamily, TodoItem
from cosmic_notes.core.models.note import Note, NoteCategory, NoteZone
from cosmic_notes.core.models.tag import Tag
from cosmic_notes.core.prompts.strategies import OutputKind
from cosmic_notes.core.repositories.cluster_repository import (
    ClusterRepository,
    TagFamilyRepository,
    TodoItemRepository,
)
from cosmic_notes.core.repositories.note_repository import NoteRepository
from cosmic_notes.core.repositories.tag_repository import TagRepository
from cosmic_notes.core.services.cluster_gc import ClusterGarbageCollector
from cosmic_notes.core.services.clustering_service import ClusteringEngine
from cosmic_notes.core.services.gather_service import GatherService
from cosmic_notes.core.services.note_service import NoteService
from cosmic_notes.core.services.tag_registry import DirtyFlagListener, TagRegistry


class FakeDatabase:
    """Shared tables so note deletion can cascade to the join table."""

    def __init__(self) -> None:
        self.notes: dict[int, Note] = {}
        self.tags: dict[int, Tag] = {}
        self.links: set[tuple[int, int]] = set()
        self.clusters: dict[int, Cluster] = {}
        self.families: dict[int, TagFamily] = {}
        self.todos: dict[int, TodoItem] = {}
        self._ids: Counter[str] = Counter()

    def next_id(self, table: str) -> int:
        self._ids[table] += 1
        return self._ids[table]


class FakeNoteRepository(NoteRepository):
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db

    async def create(self, note: Note) -> Note:
        stored = note.model_copy(update={"id": self.db.next_id("notes")})
        self.db.notes[stored.id] = stored
        return stored

    async def get(self, note_id: int) -> Note | None:
        return self.db.notes.get(note_id)

    async def list(self, *, limit: int = 50, offset: int = 0):
        ordered = sorted(self.db.notes.values(), key=lambda n: n.updated_at or n.created_at, reverse=True)
        return ordered[offset:offset + limit]

    async def list_by_ids(self, note_ids):
        return [self.db.notes[i] for i in dict.fromkeys(note_ids) if i in self.db.notes]

    async def list_by_category(self, category: NoteCategory):
        return [n for n in self.db.notes.values() if n.category is category]

    async def update_fields(self, note_id: int, changes: dict) -> Note | None:
        existing = self.db.notes.get(note_id)
        if existing is None:
            return None
        data = existing.model_dump()
        data.update(changes)
        data["updated_at"] = utcnow()
        updated = Note.model_validate(data)
        self.db.notes[note_id] = updated
        return updated

    async def delete(self, note_id: int) -> bool:
        if self.db.notes.pop(note_id, None) is None:
            return False
        self.db.links = {(n, t) for n, t in self.db.links if n != note_id}
        return True


class FakeTagRepository(TagRepository):
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db
        self.fail_writes = False

    def _check_writes(self) -> None:
        if self.fail_writes:
            raise PersistenceError("tag store unavailable")

    async def get(self, tag_id: int) -> Tag | None:
        return self.db.tags.get(tag_id)

    async def get_by_name(self, name: str) -> Tag | None:
        return next((t for t in self.db.tags.values() if t.name == name), None)

    async def get_by_names(self, names):
        wanted = set(names)
        return [t for t in self.db.tags.values() if t.name in wanted]

    async def list_all(self, *, only_dirty: bool = False):
        return [t for _, t in sorted(self.db.tags.items()) if t.dirty or not only_dirty]

    async def create_many(self, names):
        self._check_writes()
        created = []
        for name in names:
            if await self.get_by_name(name) is not None:
                raise PersistenceError(f"duplicate tag {name}")
            tag = Tag(id=self.db.next_id("tags"), name=name, dirty=True)
            self.db.tags[tag.id] = tag
            created.append(tag)
        return created

    async def delete(self, tag_id: int) -> None:
        self._check_writes()
        self.db.tags.pop(tag_id, None)
        self.db.links = {(n, t) for n, t in self.db.links if t != tag_id}

    async def set_dirty(self, tag_ids, dirty: bool = True) -> None:
        for tag_id in tag_ids:
            if tag_id in self.db.tags:
                self.db.tags[tag_id] = self.db.tags[tag_id].model_copy(update={"dirty": dirty})

    async def list_note_ids(self, tag_id: int):
        return sorted(n for n, t in self.db.links if t == tag_id)

    async def list_tag_ids_for_note(self, note_id: int):
        return sorted(t for n, t in self.db.links if n == note_id)

    async def add_links(self, note_id: int, tag_ids) -> None:
        self._check_writes()
        for tag_id in tag_ids:
            self.db.links.add((note_id, tag_id))

    async def remove_link(self, note_id: int, tag_id: int) -> None:
        self._check_writes()
        self.db.links.discard((note_id, tag_id))

    async def count_links(self, tag_id: int) -> int:
        return sum(1 for _, t in self.db.links if t == tag_id)

    async def count_links_by_tag(self) -> dict[int, int]:
        return dict(Counter(t for _, t in self.db.links))


class FakeClusterRepository(ClusterRepository):
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db

    async def get(self, cluster_id: int) -> Cluster | None:
        return self.db.clusters.get(cluster_id)

    async def get_for_tag_category(self, tag_id: int, category: NoteCategory) -> Cluster | None:
        return next(
            (c for c in self.db.clusters.values() if c.tag == tag_id and c.category is category),
            None,
        )

    async def list(self, *, tag_id: int | None = None, category: NoteCategory | None = None):
        return [
            c
            for _, c in sorted(self.db.clusters.items())
            if (tag_id is None or c.tag == tag_id) and (category is None or c.category is category)
        ]

    async def insert(self, cluster: Cluster) -> Cluster:
        existing = await self.get_for_tag_category(cluster.tag, cluster.category)
        cluster_id = existing.id if existing else self.db.next_id("clusters")
        stored = cluster.model_copy(update={"id": cluster_id})
        self.db.clusters[cluster_id] = stored
        return stored

    async def update_fields(self, cluster_id: int, changes: dict) -> Cluster | None:
        existing = self.db.clusters.get(cluster_id)
        if existing is None:
            return None
        updated = existing.model_copy(update={**changes, "updated_at": utcnow()})
        self.db.clusters[cluster_id] = updated
        return updated

    async def delete_many(self, cluster_ids) -> int:
        removed = 0
        for cluster_id in set(cluster_ids):
            if self.db.clusters.pop(cluster_id, None) is not None:
                removed += 1
        return removed

    async def delete_for_tag(self, tag_id: int) -> int:
        return await self.delete_many([c.id for c in self.db.clusters.values() if c.tag == tag_id])

    async def mark_dirty(self, tag_id: int, category: NoteCategory | None = None) -> None:
        for cluster in await self.list(tag_id=tag_id, category=category):
            self.db.clusters[cluster.id] = cluster.model_copy(update={"dirty": True})


class FakeTagFamilyRepository(TagFamilyRepository):
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db

    async def get_by_tag(self, tag_name: str) -> TagFamily | None:
        return next((f for f in self.db.families.values() if f.tag == tag_name), None)

    async def create(self, tag_name: str, tag_count: int = 0) -> TagFamily:
        existing = await self.get_by_tag(tag_name)
        family_id = existing.id if existing else self.db.next_id("families")
        family = TagFamily(id=family_id, tag=tag_name, tag_count=tag_count)
        self.db.families[family_id] = family
        return family

    async def update_count(self, family_id: int, tag_count: int) -> None:
        self.db.families[family_id] = self.db.families[family_id].model_copy(update={"tag_count": tag_count})

    async def list_all(self):
        return [f for _, f in sorted(self.db.families.items())]

    async def delete_many(self, family_ids) -> int:
        removed = 0
        for family_id in set(family_ids):
            if self.db.families.pop(family_id, None) is not None:
                removed += 1
        return removed


class FakeTodoItemRepository(TodoItemRepository):
    def __init__(self, db: FakeDatabase) -> None:
        self.db = db

    async def list_for_tag(self, tag_id: int):
        return [i for _, i in sorted(self.db.todos.items()) if i.tag == tag_id]

    async def create_many(self, tag_id: int, items):
        created = []
        for text in items:
            item = TodoItem(id=self.db.next_id("todos"), tag=tag_id, item=text)
            self.db.todos[item.id] = item
            created.append(item)
        return created

    async def set_done(self, item_id: int, done: bool) -> TodoItem | None:
        if item_id not in self.db.todos:
            return None
        self.db.todos[item_id] = self.db.todos[item_id].model_copy(update={"done": done})
        return self.db.todos[item_id]


class FakeEmbeddingProvider:
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail = False

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise ProviderError("embedding service down")
        return [0.1, 0.2, float(len(text) % 7)]


class FakeSynthesisProvider:
    """Records prompts; fails for prompts containing `fail_marker`."""

    def __init__(self) -> None:
        self.calls: list[tuple[NoteCategory, str]] = []
        self.todo_items: list[str] = []
        self.fail_marker: str | None = None

    def _record(self, strategy, prompt: str) -> None:
        self.calls.append((strategy.category, prompt))
        if self.fail_marker and self.fail_marker in prompt:
            raise ProviderError("synthesis refused")

    async def synthesize(self, strategy, prompt: str) -> str:
        assert strategy.output is OutputKind.SUMMARY
        self._record(strategy, prompt)
        return f"Organized {strategy.category.value} notes, see [1]"

    async def generate_items(self, strategy, prompt: str, existing_items) -> list[str]:
        assert strategy.output is OutputKind.ITEMS
        self._record(strategy, prompt)
        # Returns everything, including existing items, to exercise the post-filter
        return list(self.todo_items)


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def note_repo(db) -> FakeNoteRepository:
    return FakeNoteRepository(db)


@pytest.fixture
def tag_repo(db) -> FakeTagRepository:
    return FakeTagRepository(db)


@pytest.fixture
def cluster_repo(db) -> FakeClusterRepository:
    return FakeClusterRepository(db)


@pytest.fixture
def family_repo(db) -> FakeTagFamilyRepository:
    return FakeTagFamilyRepository(db)


@pytest.fixture
def todo_repo(db) -> FakeTodoItemRepository:
    return FakeTodoItemRepository(db)


@pytest.fixture
def embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def synthesizer() -> FakeSynthesisProvider:
    return FakeSynthesisProvider()


@pytest.fixture
def registry(tag_repo, cluster_repo, note_repo) -> TagRegistry:
    registry = TagRegistry(tag_repo)
    registry.subscribe(DirtyFlagListener(tags=tag_repo, clusters=cluster_repo, notes=note_repo))
    return registry


@pytest.fixture
def note_service(note_repo, registry) -> NoteService:
    return NoteService(note_repo, registry)


@pytest.fixture
def engine(tag_repo, note_repo, cluster_repo, family_repo, todo_repo, embedder, synthesizer) -> ClusteringEngine:
    return ClusteringEngine(
        tags=tag_repo,
        notes=note_repo,
        clusters=cluster_repo,
        families=family_repo,
        todos=todo_repo,
        embedder=embedder,
        synthesizer=synthesizer,
    )


@pytest.fixture
def collector(tag_repo, note_repo, cluster_repo, family_repo) -> ClusterGarbageCollector:
    return ClusterGarbageCollector(tags=tag_repo, notes=note_repo, clusters=cluster_repo, families=family_repo)


@pytest.fixture
def gather_service(tag_repo, registry, engine, collector) -> GatherService:
    return GatherService(tags=tag_repo, registry=registry, engine=engine, collector=collector, max_concurrency=4)


@pytest.fixture
def add_note(note_service):
    """Create a note through the service with an explicit category and tags."""

    async def _add(
        content: str,
        category: NoteCategory = NoteCategory.SCRATCHPAD,
        tags: list[str] | None = None,
        title: str | None = None,
    ) -> Note:
        payload = SimpleNamespace(
            title=title or content[:20],
            content=content,
            category=category,
            zone=NoteZone.WORK,
            tags=tags or [],
        )
        return await note_service.create_note(payload)

    return _add
