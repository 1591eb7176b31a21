"""Tests for subject subscriptions."""

import pytest

from server.exceptions import InvalidInputError, UserNotFoundError
from server.repositories.ownership_repository import FileOwnership, OwnershipRepository
from server.repositories.subscription_repository import SubscriptionRepository
from server.services.subscription_service import SubscriptionService
from server.utils import utc_now


@pytest.fixture
def service(connections, catalog):
    return SubscriptionService(connections, catalog)


async def test_subscribe_many_joins_every_private_category(service, fake_store, user_id):
    result = await service.subscribe_many(user_id, ["Math"])

    assert result == {"Math": ["Main", "Theory", "Practical"]}
    assert sorted(fake_store.joined) == [-102, -101, -100]
    assert service.list_subjects(user_id) == ["Math"]


async def test_subscribe_is_idempotent(service, user_id):
    await service.subscribe(user_id, "Math", ["Main", "Theory"])
    await service.subscribe(user_id, "Math", ["Main", "Theory"])

    assert len(SubscriptionRepository.find_by_user(user_id)) == 2


async def test_failed_join_skips_that_category(service, fake_store, user_id):
    fake_store.failing_joins.add(-101)

    subscribed = await service.subscribe(user_id, "Math", ["Main", "Theory", "Practical"])

    assert subscribed == ["Main", "Practical"]
    categories = sorted(e.category for e in SubscriptionRepository.find_by_user(user_id))
    assert categories == ["Main", "Practical"]


async def test_unknown_subject_rejected(service, user_id):
    with pytest.raises(InvalidInputError):
        await service.subscribe(user_id, "Chemistry", ["Main"])


async def test_unknown_category_rejected_before_any_join(service, fake_store, user_id):
    with pytest.raises(InvalidInputError):
        await service.subscribe(user_id, "Math", ["Main", "Lab"])
    assert fake_store.joined == []


@pytest.mark.parametrize("subjects", [None, [], "Math", [1], ["Math", "Chemistry"]])
async def test_subscribe_many_validates_request(service, user_id, subjects):
    with pytest.raises(InvalidInputError):
        await service.subscribe_many(user_id, subjects)


async def test_subscribe_many_requires_existing_user(service, test_db):
    with pytest.raises(UserNotFoundError):
        await service.subscribe_many("ghost", ["Math"])


async def test_unsubscribe_requires_existing_user(service, fake_store, test_db):
    with pytest.raises(UserNotFoundError):
        await service.unsubscribe("ghost", "Math")
    assert fake_store.left == []


async def test_unsubscribe_survives_failed_leave(service, fake_store, user_id):
    await service.subscribe_many(user_id, ["Math"])
    fake_store.failing_leaves.add(-101)

    removed = await service.unsubscribe(user_id, "Math")

    assert removed == 3
    assert SubscriptionRepository.find_by_user(user_id) == []
    assert sorted(fake_store.left) == [-102, -100]


async def test_unsubscribe_removes_owned_files(service, user_id):
    await service.subscribe_many(user_id, ["Math"])
    OwnershipRepository.create(FileOwnership(
        location_id=-101, message_id=7, user_id=user_id, subject="Math",
        category="Theory", file_name="a.pdf", created_at=utc_now(),
    ))

    await service.unsubscribe(user_id, "Math")

    assert OwnershipRepository.get(user_id, "Math", "Theory", 7) is None


async def test_unsubscribe_leaves_other_subjects(service, user_id):
    await service.subscribe_many(user_id, ["Math", "Physics"])

    await service.unsubscribe(user_id, "Math")

    assert service.list_subjects(user_id) == ["Physics"]


async def test_list_directory_builds_records(service, user_id):
    await service.subscribe_many(user_id, ["Math"])

    records = service.list_directory(user_id)

    assert len(records) == 1
    record = records[0]
    assert record.subject == "Math"
    assert record.main_location == -100
    assert [(s.name, s.location) for s in record.sub_locations] == [
        ("Math-Practical", -102),
        ("Math-Theory", -101),
    ]
    theory = [s for s in record.sub_locations if s.name == "Math-Theory"][0]
    assert theory.share_link == "https://t.me/+math-theory"


async def test_subject_without_main_is_not_listed(service, fake_store, user_id):
    fake_store.failing_joins.add(-100)
    await service.subscribe(user_id, "Math", ["Main", "Theory"])

    assert service.list_subjects(user_id) == []
    assert service.list_directory(user_id) == []
