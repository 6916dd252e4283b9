import uuid

import pytest

from forum_core.crud.content_permission import ContentPermissionRepository
from forum_core.crud.entity import EntityGateway
from forum_core.errors import NotFoundError, ValidationError
from forum_core.permissions import PermissionValue
from tests.factories import at, make_forum, make_role, make_topic


@pytest.mark.anyio
async def test_find_by_id_loads_each_kind(session) -> None:
    forum = await make_forum(session, "General")
    topic = await make_topic(session, forum, "Hello")
    gateway = EntityGateway(session)

    assert await gateway.find_by_id("forum", forum.id) is forum
    assert await gateway.find_by_id("topic", topic.id) is topic


@pytest.mark.anyio
async def test_find_by_id_missing_raises_not_found(session) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        await EntityGateway(session).find_by_id("forum", uuid.uuid4())

    assert exc_info.value.status_code == 404


@pytest.mark.anyio
async def test_unknown_kind_is_a_validation_error(session) -> None:
    with pytest.raises(ValidationError):
        await EntityGateway(session).find_by_id("conversation", uuid.uuid4())


@pytest.mark.anyio
async def test_find_children_of_orders_by_creation_time(session) -> None:
    root = await make_forum(session, "Root", created_at=at(0))
    later = await make_forum(session, "Later", parent=root, created_at=at(10))
    earlier = await make_forum(session, "Earlier", parent=root, created_at=at(5))
    topic = await make_topic(session, root, "Pinned")
    gateway = EntityGateway(session)

    assert await gateway.find_children_of("forum", root.id) == [earlier, later]
    assert await gateway.find_children_of("forum", None) == [root]
    assert await gateway.find_children_of("topic", root.id) == [topic]


@pytest.mark.anyio
async def test_parent_reference_points_at_container(session) -> None:
    root = await make_forum(session, "Root")
    child = await make_forum(session, "Child", parent=root)
    topic = await make_topic(session, child, "Question")

    assert root.parent_reference() is None
    assert child.parent_reference() == ("forum", root.id)
    assert topic.parent_reference() == ("forum", child.id)


@pytest.mark.anyio
async def test_content_permission_values_round_through_storage(session) -> None:
    forum = await make_forum(session, "General")
    member = await make_role(session, "member")
    guest = await make_role(session, "guest")
    repo = ContentPermissionRepository(session)

    await repo.set_value("forum", forum.id, member.id, "post", PermissionValue.ALLOW)
    await repo.set_value("forum", forum.id, guest.id, "post", PermissionValue.DENY)
    await repo.set_value("forum", forum.id, guest.id, "post", PermissionValue.ALLOW)

    values = await repo.get_values("forum", forum.id, "post", [member.id, guest.id])
    assert values == [PermissionValue.ALLOW, PermissionValue.ALLOW]
    assert len(await repo.list_for_entity("forum", forum.id)) == 2

    await repo.set_value("forum", forum.id, guest.id, "post", PermissionValue.UNSET)

    assert await repo.get_values("forum", forum.id, "post", [guest.id]) == []
    assert await repo.get_values("forum", forum.id, "post", []) == []
    assert await repo.clear_value("forum", forum.id, guest.id, "post") is False


@pytest.mark.anyio
async def test_content_permission_rejects_empty_name(session) -> None:
    forum = await make_forum(session, "General")
    role = await make_role(session, "member")

    with pytest.raises(ValidationError):
        await ContentPermissionRepository(session).set_value(
            "forum", forum.id, role.id, "", PermissionValue.ALLOW
        )
