"""
Inheritance rules of the permission resolver, exercised against in-memory
entities so every branch runs without a database.
"""
import uuid
from dataclasses import dataclass
from collections.abc import Collection

import pytest

from forum_core.errors import ConfigurationError, NotFoundError
from forum_core.permissions import (
    OverrideRegistry,
    PermissionResolver,
    PermissionValue,
    Subject,
    default_registry,
)

ALLOW = PermissionValue.ALLOW
DENY = PermissionValue.DENY
UNSET = PermissionValue.UNSET

MEMBER = uuid.UUID(int=100)
MODERATOR = uuid.UUID(int=200)


@dataclass
class FakeEntity:
    id: uuid.UUID
    permission_kind: str
    parent: tuple[str, uuid.UUID] | None = None

    def parent_reference(self) -> tuple[str, uuid.UUID] | None:
        return self.parent


class FakeStore:
    def __init__(self) -> None:
        self.entities: dict[tuple[str, uuid.UUID], FakeEntity] = {}
        self.values: dict[tuple[str, uuid.UUID, str, uuid.UUID], PermissionValue] = {}
        self.lookups: list[tuple[str, uuid.UUID]] = []

    def add(self, kind: str, parent: FakeEntity | None = None) -> FakeEntity:
        entity = FakeEntity(
            id=uuid.uuid4(),
            permission_kind=kind,
            parent=(parent.permission_kind, parent.id) if parent is not None else None,
        )
        self.entities[(kind, entity.id)] = entity
        return entity

    def set(
        self,
        entity: FakeEntity,
        permission: str,
        value: PermissionValue,
        role_id: uuid.UUID = MEMBER,
    ) -> None:
        self.values[(entity.permission_kind, entity.id, permission, role_id)] = value

    async def find_by_id(self, kind: str, entity_id: uuid.UUID) -> FakeEntity:
        self.lookups.append((kind, entity_id))
        try:
            return self.entities[(kind, entity_id)]
        except KeyError:
            raise NotFoundError(f"{kind} not found") from None

    async def get_values(
        self,
        kind: str,
        entity_id: uuid.UUID,
        permission: str,
        role_ids: Collection[uuid.UUID],
    ) -> list[PermissionValue]:
        return [
            self.values[(kind, entity_id, permission, role_id)]
            for role_id in role_ids
            if (kind, entity_id, permission, role_id) in self.values
        ]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def member() -> Subject:
    return Subject(user_id=uuid.uuid4(), role_ids=frozenset({MEMBER}))


def make_resolver(store: FakeStore, registry: OverrideRegistry | None = None, **kwargs) -> PermissionResolver:
    return PermissionResolver(store, store, registry or default_registry(), **kwargs)


@pytest.mark.anyio
async def test_hidden_forum_hides_topic_marked_viewable(store, member) -> None:
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)
    store.set(forum, "viewable", DENY)
    store.set(topic, "viewable", ALLOW)

    assert await make_resolver(store).resolve(topic, "viewable", member) is DENY


@pytest.mark.anyio
async def test_child_value_wins_without_override_sets(store, member) -> None:
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)
    store.set(topic, "post", ALLOW)

    resolver = make_resolver(store, OverrideRegistry())

    assert await resolver.resolve(topic, "post", member) is ALLOW


@pytest.mark.anyio
async def test_child_deny_wins_over_parent_allow_without_override(store, member) -> None:
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)
    store.set(forum, "post", ALLOW)
    store.set(topic, "post", DENY)

    assert await make_resolver(store).resolve(topic, "post", member) is DENY


@pytest.mark.anyio
async def test_unset_child_inherits_parent_result(store, member) -> None:
    category = store.add("forum")
    forum = store.add("forum", parent=category)
    topic = store.add("topic", parent=forum)
    store.set(category, "reply", ALLOW)

    assert await make_resolver(store).resolve(topic, "reply", member) is ALLOW


@pytest.mark.anyio
async def test_positive_override_forces_allow(store, member) -> None:
    registry = OverrideRegistry()
    registry.register("topic", positive=["moderate"])
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)
    store.set(forum, "moderate", ALLOW)
    store.set(topic, "moderate", DENY)

    assert await make_resolver(store, registry).resolve(topic, "moderate", member) is ALLOW


@pytest.mark.anyio
async def test_positive_override_does_not_apply_to_parent_deny(store, member) -> None:
    registry = OverrideRegistry()
    registry.register("topic", positive=["moderate"])
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)
    store.set(forum, "moderate", DENY)
    store.set(topic, "moderate", ALLOW)

    assert await make_resolver(store, registry).resolve(topic, "moderate", member) is ALLOW


@pytest.mark.anyio
async def test_negative_override_keeps_child_deny_under_allowed_parent(store, member) -> None:
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)
    store.set(forum, "viewable", ALLOW)
    store.set(topic, "viewable", DENY)

    assert await make_resolver(store).resolve(topic, "viewable", member) is DENY


@pytest.mark.anyio
async def test_hidden_ancestor_propagates_through_every_level(store, member) -> None:
    category = store.add("forum")
    forum = store.add("forum", parent=category)
    topic = store.add("topic", parent=forum)
    store.set(category, "viewable", DENY)
    store.set(forum, "viewable", ALLOW)
    store.set(topic, "viewable", ALLOW)

    assert await make_resolver(store).resolve(topic, "viewable", member) is DENY


@pytest.mark.anyio
async def test_root_uses_own_value(store, member) -> None:
    forum = store.add("forum")
    store.set(forum, "post", ALLOW)

    assert await make_resolver(store).resolve(forum, "post", member) is ALLOW
    assert store.lookups == []


@pytest.mark.anyio
async def test_unset_everywhere_defaults_to_deny(store, member) -> None:
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)

    assert await make_resolver(store).resolve(topic, "post", member) is DENY


@pytest.mark.anyio
async def test_default_is_configurable(store, member) -> None:
    forum = store.add("forum")
    topic = store.add("topic", parent=forum)

    resolver = make_resolver(store, default=ALLOW)

    assert resolver.default is ALLOW
    assert await resolver.resolve(topic, "post", member) is ALLOW


def test_unset_default_is_rejected(store) -> None:
    with pytest.raises(ConfigurationError):
        make_resolver(store, default=UNSET)


@pytest.mark.anyio
async def test_guest_without_roles_gets_default(store) -> None:
    forum = store.add("forum")
    store.set(forum, "viewable", ALLOW)

    assert await make_resolver(store).resolve(forum, "viewable", Subject()) is DENY


@pytest.mark.anyio
async def test_any_role_grant_wins_over_other_role_denial(store) -> None:
    forum = store.add("forum")
    store.set(forum, "post", DENY, role_id=MEMBER)
    store.set(forum, "post", ALLOW, role_id=MODERATOR)
    subject = Subject(user_id=uuid.uuid4(), role_ids=frozenset({MEMBER, MODERATOR}))

    assert await make_resolver(store).resolve(forum, "post", subject) is ALLOW


@pytest.mark.anyio
async def test_is_allowed_reports_boolean(store, member) -> None:
    forum = store.add("forum")
    store.set(forum, "viewable", ALLOW)
    resolver = make_resolver(store)

    assert await resolver.is_allowed(forum, "viewable", member) is True
    assert await resolver.is_allowed(forum, "post", member) is False


@pytest.mark.anyio
@pytest.mark.parametrize("depth", [1, 2, 5, 10, 32])
async def test_chains_up_to_max_depth_terminate(store, member, depth: int) -> None:
    entity = store.add("forum")
    for _ in range(depth - 1):
        entity = store.add("forum", parent=entity)

    result = await make_resolver(store).resolve(entity, "viewable", member)

    assert result in (ALLOW, DENY)
    assert len(store.lookups) == depth - 1


@pytest.mark.anyio
async def test_chain_deeper_than_limit_is_rejected(store, member) -> None:
    entity = store.add("forum")
    for _ in range(3):
        entity = store.add("forum", parent=entity)

    with pytest.raises(ConfigurationError, match="maximum depth"):
        await make_resolver(store, max_depth=3).resolve(entity, "viewable", member)


@pytest.mark.anyio
async def test_self_parent_cycle_is_rejected(store, member) -> None:
    forum = store.add("forum")
    forum.parent = ("forum", forum.id)

    with pytest.raises(ConfigurationError, match="cycle"):
        await make_resolver(store).resolve(forum, "viewable", member)


@pytest.mark.anyio
async def test_two_node_cycle_is_rejected(store, member) -> None:
    first = store.add("forum")
    second = store.add("forum", parent=first)
    first.parent = ("forum", second.id)

    with pytest.raises(ConfigurationError):
        await make_resolver(store).resolve(second, "viewable", member)


@pytest.mark.anyio
async def test_missing_parent_raises_not_found(store, member) -> None:
    topic = FakeEntity(id=uuid.uuid4(), permission_kind="topic", parent=("forum", uuid.uuid4()))

    with pytest.raises(NotFoundError):
        await make_resolver(store).resolve(topic, "viewable", member)


def test_zero_max_depth_is_rejected(store) -> None:
    with pytest.raises(ConfigurationError):
        make_resolver(store, max_depth=0)
