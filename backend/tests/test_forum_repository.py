import uuid

import pytest
from sqlalchemy import func, select

from forum_core.crud.content_permission import ContentPermissionRepository
from forum_core.crud.forum import ForumRepository
from forum_core.crud.topic import TopicRepository
from forum_core.errors import ConflictError, NotFoundError, ValidationError
from forum_core.models import ContentPermission, Forum, Poll, PollVote, Post, Topic
from forum_core.permissions import PermissionValue
from tests.factories import (
    at,
    grant,
    make_forum,
    make_poll,
    make_post,
    make_role,
    make_topic,
    make_user,
)


async def count(session, model, *criteria) -> int:
    result = await session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar()


@pytest.mark.anyio
async def test_create_derives_slug_from_title(session) -> None:
    forum = await ForumRepository(session).create({"title": "Café & Bar!"})

    assert forum.slug == "cafe-bar"
    assert forum.parent_id is None


@pytest.mark.anyio
async def test_create_keeps_explicit_slug_and_checks_parent(session) -> None:
    repo = ForumRepository(session)
    parent = await repo.create({"title": "General"})

    child = await repo.create({"title": "Off topic", "slug": "ot", "parent_id": parent.id})

    assert child.slug == "ot"
    assert child.parent_id == parent.id
    with pytest.raises(NotFoundError):
        await repo.create({"title": "Orphan", "parent_id": uuid.uuid4()})


@pytest.mark.anyio
async def test_list_children_orders_by_sort_order(session) -> None:
    root = await make_forum(session, "Root")
    await make_forum(session, "Second", root, sort_order=2, created_at=at(0))
    await make_forum(session, "First", root, sort_order=1, created_at=at(1))
    await make_forum(session, "Also second", root, sort_order=2, created_at=at(2))
    repo = ForumRepository(session)

    children = await repo.list_children(root.id)
    roots = await repo.list_children()

    assert [forum.title for forum in children] == ["First", "Second", "Also second"]
    assert [forum.title for forum in roots] == ["Root"]


@pytest.mark.anyio
async def test_update_renames_and_reparents(session) -> None:
    first = await make_forum(session, "First")
    second = await make_forum(session, "Second")
    repo = ForumRepository(session)

    moved = await repo.update(second, {"title": "Second hand", "parent_id": first.id})

    assert moved.slug == "second-hand"
    assert moved.parent_id == first.id


@pytest.mark.anyio
async def test_update_refuses_to_move_forum_below_its_descendant(session) -> None:
    root = await make_forum(session, "Root")
    child = await make_forum(session, "Child", root)
    grandchild = await make_forum(session, "Grandchild", child)
    repo = ForumRepository(session)

    with pytest.raises(ValidationError):
        await repo.update(root, {"parent_id": grandchild.id})
    with pytest.raises(ValidationError):
        await repo.update(root, {"parent_id": root.id})


@pytest.mark.anyio
async def test_delete_non_empty_forum_conflicts(session) -> None:
    root = await make_forum(session, "Root")
    await make_forum(session, "Child", root)
    with_topic = await make_forum(session, "With topic")
    await make_topic(session, with_topic, "Hello")
    repo = ForumRepository(session)

    with pytest.raises(ConflictError):
        await repo.delete(root)
    with pytest.raises(ConflictError):
        await repo.delete(with_topic)


@pytest.mark.anyio
async def test_delete_empty_forum_drops_its_permissions(session) -> None:
    role = await make_role(session, "member")
    forum = await make_forum(session, "Empty")
    await grant(session, forum, role, "viewable", PermissionValue.DENY)
    await session.commit()
    forum_id = forum.id

    assert await ForumRepository(session).delete(forum) is True

    assert await session.get(Forum, forum_id) is None
    assert await count(session, ContentPermission, ContentPermission.content_id == forum_id) == 0


@pytest.mark.anyio
async def test_topic_create_records_author(session) -> None:
    forum = await make_forum(session, "General")
    author = await make_user(session, "alice")
    repo = TopicRepository(session)

    topic = await repo.create({"forum_id": forum.id, "title": "Hello world"}, author=author)
    guest_topic = await repo.create({"forum_id": forum.id, "title": "Anonymous"})

    assert (topic.user_id, topic.username, topic.slug) == (author.id, "alice", "hello-world")
    assert (guest_topic.user_id, guest_topic.username) == (None, "")
    with pytest.raises(NotFoundError):
        await repo.create({"forum_id": uuid.uuid4(), "title": "Lost"})


@pytest.mark.anyio
async def test_topic_update_and_listing(session) -> None:
    forum = await make_forum(session, "General")
    await make_topic(session, forum, "Older", created_at=at(0))
    newer = await make_topic(session, forum, "Newer", created_at=at(1))
    repo = TopicRepository(session)

    closed = await repo.update(newer, {"closed": True, "title": "Newer still"})
    page = await repo.list_for_forum(forum.id, sort_dir="desc", per_page=1)

    assert closed.closed is True
    assert closed.slug == "newer-still"
    assert [topic.title for topic in page.items] == ["Newer still"]
    assert page.total == 2


@pytest.mark.anyio
async def test_topic_delete_removes_posts_poll_and_permissions(session) -> None:
    role = await make_role(session, "member")
    author = await make_user(session, "alice")
    forum = await make_forum(session, "General")
    topic = await make_topic(session, forum, "Doomed", author=author)
    await make_post(session, topic, author, "one")
    await make_post(session, topic, author, "two")
    poll = await make_poll(session, topic, author, votes=2)
    await grant(session, topic, role, "viewable", PermissionValue.ALLOW)
    await session.commit()
    topic_id, poll_id = topic.id, poll.id

    assert await TopicRepository(session).delete(topic) is True

    assert await session.get(Topic, topic_id) is None
    assert await count(session, Post, Post.topic_id == topic_id) == 0
    assert await count(session, Poll, Poll.id == poll_id) == 0
    assert await count(session, PollVote, PollVote.poll_id == poll_id) == 0
    assert await count(session, ContentPermission, ContentPermission.content_id == topic_id) == 0
    assert await session.get(Forum, forum.id) is not None


@pytest.mark.anyio
@pytest.mark.parametrize("field", ["title", "slug", "sort_order"])
async def test_forum_update_rejects_null_for_required_fields(session, field) -> None:
    forum = await make_forum(session, "General")

    with pytest.raises(ValidationError):
        await ForumRepository(session).update(forum, {field: None})


@pytest.mark.anyio
async def test_forum_update_accepts_null_for_optional_fields(session) -> None:
    parent = await make_forum(session, "Parent")
    forum = await make_forum(session, "Child", parent, description="About")

    updated = await ForumRepository(session).update(
        forum, {"description": None, "parent_id": None}
    )

    assert (updated.description, updated.parent_id) == (None, None)


@pytest.mark.anyio
@pytest.mark.parametrize("field", ["title", "slug", "closed"])
async def test_topic_update_rejects_null_for_required_fields(session, field) -> None:
    forum = await make_forum(session, "General")
    topic = await make_topic(session, forum, "Hello")

    with pytest.raises(ValidationError):
        await TopicRepository(session).update(topic, {field: None})


@pytest.mark.anyio
async def test_titles_without_slug_characters_fall_back_to_id(session) -> None:
    forums = ForumRepository(session)
    topics = TopicRepository(session)

    forum = await forums.create({"title": "!!!"})
    topic = await topics.create({"forum_id": forum.id, "title": "日本語"})
    renamed = await forums.update(forum, {"title": "???"})

    assert forum.slug == forum.id.hex[:8]
    assert topic.slug == topic.id.hex[:8]
    assert renamed.slug == forum.id.hex[:8]
