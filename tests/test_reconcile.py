from datetime import datetime, timezone

import pytest

from common.exceptions.base_exception import NotFoundException
from domain.followers.entities.follower_entity import FollowMarker
from domain.followers.services.list_follows import list_followers, list_following
from domain.followers.services.reconcile_counters import reconcile_user_counters
from domain.followers.services.toggle_follow import toggle_follow
from infrastructure.database.paths import follower_doc, user_doc


async def test_consistent_counters_are_left_alone(store, seed_user):
    await seed_user("ana")
    await seed_user("bob")
    await toggle_follow(store, "bob", "ana")
    version = store.version_of(user_doc("bob"))

    result = await reconcile_user_counters(store, "bob")

    assert result.changed is False
    assert result.followers.after == 1
    assert store.version_of(user_doc("bob")) == version


async def test_drifted_counters_are_rewritten(store, seed_user):
    await seed_user("ana", followers=12, following=-3)
    await seed_user("bob")
    await seed_user("cy")
    await toggle_follow(store, "ana", "bob")
    await toggle_follow(store, "cy", "ana")

    result = await reconcile_user_counters(store, "ana")

    assert result.changed is True
    assert result.followers.before == 13
    assert result.followers.after == 1
    assert result.following.before == 1
    assert result.following.after == 1
    doc = await store.get(user_doc("ana"))
    assert (doc["followers"], doc["following"]) == (1, 1)


async def test_corrupt_counter_values_are_rewritten(store, seed_user):
    await seed_user("ana", followers="lots")

    result = await reconcile_user_counters(store, "ana")

    assert result.changed is False
    assert (await store.get(user_doc("ana")))["followers"] == 0


async def test_reconcile_missing_user(store):
    with pytest.raises(NotFoundException):
        await reconcile_user_counters(store, "ghost")


async def test_listings_are_newest_first(store):
    earlier = datetime(2024, 5, 1, tzinfo=timezone.utc)
    later = datetime(2024, 6, 1, tzinfo=timezone.utc)
    await store.set(follower_doc("ana", "bob"), FollowMarker(target_user_id="ana", follower_user_id="bob", followed_at=earlier).to_document())
    await store.set(follower_doc("ana", "cy"), FollowMarker(target_user_id="ana", follower_user_id="cy", followed_at=later).to_document())
    await store.set(follower_doc("bob", "ana"), FollowMarker(target_user_id="bob", follower_user_id="ana").to_document())

    followers = await list_followers(store, "ana")
    assert [m.follower_user_id for m in followers] == ["cy", "bob"]
    assert followers[0].followed_at == later

    following = await list_following(store, "ana")
    assert [m.target_user_id for m in following] == ["bob"]
    assert following[0].followed_at is not None
    assert len(await list_followers(store, "ana", limit=1)) == 1
