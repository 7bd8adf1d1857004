import asyncio
from datetime import datetime

import pytest

from common.exceptions.base_exception import NotFoundException, TransactionConflictException
from infrastructure.database.document_store import SERVER_TIMESTAMP, DocumentRef, resolve_server_values
from infrastructure.database.memory.document_store import MemoryDocumentStore
from infrastructure.database.paths import FOLLOWERS_COLLECTION, USERS_COLLECTION, follower_doc, user_doc


class TestDocumentRef:
    def test_nested_path_maps_to_collection_and_key(self):
        ref = DocumentRef("users/bob/followers/alice")
        assert ref.collection == "users.followers"
        assert ref.key == "bob/alice"
        assert ref.id == "alice"
        assert str(ref) == "users/bob/followers/alice"

    def test_path_helpers(self):
        assert user_doc("bob") == DocumentRef("users/bob")
        assert follower_doc("bob", "alice").path == "users/bob/followers/alice"
        assert user_doc("bob").collection == USERS_COLLECTION
        assert follower_doc("bob", "alice").collection == FOLLOWERS_COLLECTION

    @pytest.mark.parametrize("path", ["users", "users/bob/followers", "users//x/y", "", "users/ "])
    def test_invalid_paths_rejected(self, path):
        with pytest.raises(ValueError):
            DocumentRef(path)

    @pytest.mark.parametrize("segments", [("users", ""), ("users", "a/b")])
    def test_invalid_segments_rejected(self, segments):
        with pytest.raises(ValueError):
            DocumentRef.of(*segments)


def test_server_timestamp_resolved_on_write():
    resolved = resolve_server_values({"a": 1, "at": SERVER_TIMESTAMP})
    assert resolved["a"] == 1
    assert isinstance(resolved["at"], datetime)
    assert resolved["at"].tzinfo is not None


async def test_crud_round_trip(store):
    ref = user_doc("ana")
    assert await store.get(ref) is None

    await store.set(ref, {"name": "Ana", "followers": 1, "created_at": SERVER_TIMESTAMP})
    doc = await store.get(ref)
    assert doc["id"] == "ana"
    assert doc["name"] == "Ana"
    assert isinstance(doc["created_at"], datetime)

    await store.update(ref, {"followers": 2})
    assert (await store.get(ref))["followers"] == 2
    assert (await store.get(ref))["name"] == "Ana"

    await store.delete(ref)
    assert await store.get(ref) is None


async def test_update_of_missing_document_raises(store):
    with pytest.raises(NotFoundException):
        await store.update(user_doc("ghost"), {"followers": 1})


async def test_transaction_writes_are_all_or_nothing(store, seed_user):
    await seed_user("ana", followers=1)

    async def _fn(txn):
        await txn.get(user_doc("ana"))
        txn.update(user_doc("ana"), {"followers": 5})
        txn.set(follower_doc("ana", "ben"), {"target_user_id": "ana"})
        txn.update(user_doc("ghost"), {"followers": 1})

    with pytest.raises(NotFoundException):
        await store.run_transaction(_fn)

    assert (await store.get(user_doc("ana")))["followers"] == 1
    assert await store.get(follower_doc("ana", "ben")) is None


async def test_read_after_write_is_rejected(store, seed_user):
    await seed_user("ana")

    async def _fn(txn):
        txn.update(user_doc("ana"), {"followers": 3})
        await txn.get(user_doc("ana"))

    with pytest.raises(RuntimeError):
        await store.run_transaction(_fn)

    assert (await store.get(user_doc("ana")))["followers"] == 0


async def test_concurrent_increments_are_serialized(store, seed_user):
    await seed_user("ana", followers=0)

    async def _increment(txn):
        doc = await txn.get(user_doc("ana"))
        txn.update(user_doc("ana"), {"followers": doc["followers"] + 1})

    await asyncio.gather(*(store.run_transaction(_increment) for _ in range(5)))

    assert (await store.get(user_doc("ana")))["followers"] == 5


async def test_retries_exhausted_raise_conflict():
    store = MemoryDocumentStore(max_attempts=2, retry_base_delay=0)
    await store.set(user_doc("ana"), {"followers": 0})
    attempts = []

    async def _always_loses(txn):
        attempts.append(1)
        await txn.get(user_doc("ana"))
        # Another writer lands between the read and the commit.
        await store.update(user_doc("ana"), {"touched": len(attempts)})
        txn.update(user_doc("ana"), {"followers": 99})

    with pytest.raises(TransactionConflictException) as exc_info:
        await store.run_transaction(_always_loses)

    assert exc_info.value.status_code == 409
    assert exc_info.value.headers["Retry-After"] == "1"
    assert len(attempts) == 2
    assert (await store.get(user_doc("ana")))["followers"] == 0


async def test_subscribe_notifies_until_unsubscribed(store):
    ref = follower_doc("bob", "ana")
    seen = []
    subscription = store.subscribe(ref, seen.append)

    await store.set(ref, {"follower_user_id": "ana"})
    await store.delete(ref)
    assert seen[0]["follower_user_id"] == "ana"
    assert seen[1] is None

    subscription.unsubscribe()
    assert subscription.active is False
    await store.set(ref, {"follower_user_id": "ana"})
    assert len(seen) == 2


async def test_unsubscribe_drops_empty_listener_lists(store):
    ref = follower_doc("bob", "ana")
    first = store.subscribe(ref, lambda snapshot: None)
    second = store.subscribe(ref, lambda snapshot: None)

    first.unsubscribe()
    assert len(store._listeners[ref.path]) == 1

    second.unsubscribe()
    assert ref.path not in store._listeners

    seen = []
    store.subscribe(ref, seen.append)
    await store.set(ref, {"follower_user_id": "ana"})
    assert len(seen) == 1


async def test_failing_listener_does_not_block_writes(store):
    ref = user_doc("ana")

    def _broken(_snapshot):
        raise RuntimeError("listener failure")

    store.subscribe(ref, _broken)
    await store.set(ref, {"name": "Ana"})
    assert (await store.get(ref))["name"] == "Ana"


async def test_find_filters_sorts_and_limits(store):
    await store.set(follower_doc("bob", "ana"), {"target_user_id": "bob", "follower_user_id": "ana", "followedAt": 1})
    await store.set(follower_doc("bob", "cy"), {"target_user_id": "bob", "follower_user_id": "cy", "followedAt": 3})
    await store.set(follower_doc("bob", "dee"), {"target_user_id": "bob", "follower_user_id": "dee"})
    await store.set(follower_doc("cy", "ana"), {"target_user_id": "cy", "follower_user_id": "ana", "followedAt": 2})
    await store.set(user_doc("bob"), {"target_user_id": "bob"})

    docs = await store.find(FOLLOWERS_COLLECTION, {"target_user_id": "bob"}, sort=("followedAt", -1))
    assert [doc["id"] for doc in docs] == ["cy", "ana", "dee"]

    limited = await store.find(FOLLOWERS_COLLECTION, {"target_user_id": "bob"}, limit=1, sort=("followedAt", -1))
    assert [doc["id"] for doc in limited] == ["cy"]

    assert len(await store.find(FOLLOWERS_COLLECTION, {"follower_user_id": "ana"})) == 2
    assert len(await store.find(USERS_COLLECTION)) == 1
