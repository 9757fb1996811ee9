"""
Tests for the in-memory record store.

Covers filtering, sorting, pagination, uniqueness and seeding.
"""

import pytest

from marketplace_api.storage import (AlreadyExistsError, DuplicateKind, Filter,
                                     MemoryStore, NotFoundError, Pagination,
                                     Query, Sort, Table)


@pytest.fixture
def store():
    """Fresh, unseeded store."""
    return MemoryStore()


@pytest.fixture
def nft_store(store):
    """Store with seven NFTs priced 10..70 in insertion order."""
    for i in range(7):
        store.create("nfts", {"name": f"NFT {i}", "price": (i + 1) * 10, "owner": "alice" if i % 2 else "bob"})
    return store


class TestCreate:
    """Test record creation."""

    def test_create_assigns_id_and_timestamps(self, store):
        record = store.create("nfts", {"name": "X"})

        assert record["id"].startswith("mock_")
        assert record["name"] == "X"
        assert record["created_at"] == record["updated_at"]

    def test_create_generates_unique_ids(self, store):
        ids = {store.create("nfts", {"name": str(i)})["id"] for i in range(50)}
        assert len(ids) == 50

    def test_create_ignores_caller_id(self, store):
        record = store.create("transactions", {"id": "chosen", "amount": 1})
        assert record["id"] != "chosen"

    def test_duplicate_email_rejected(self, store):
        store.create("users", {"email": "a@example.com", "username": "a"})

        with pytest.raises(AlreadyExistsError) as exc_info:
            store.create("users", {"email": "a@example.com", "username": "b"})

        assert exc_info.value.kind is DuplicateKind.EMAIL
        assert exc_info.value.code == "USER_EXISTS"

    def test_duplicate_username_rejected(self, store):
        store.create("users", {"email": "a@example.com", "username": "a"})

        with pytest.raises(AlreadyExistsError) as exc_info:
            store.create("users", {"email": "b@example.com", "username": "a"})

        assert exc_info.value.kind is DuplicateKind.USERNAME
        assert exc_info.value.code == "USERNAME_TAKEN"

    def test_email_checked_before_username(self, store):
        store.create("users", {"email": "a@example.com", "username": "a"})

        with pytest.raises(AlreadyExistsError) as exc_info:
            store.create("users", {"email": "a@example.com", "username": "a"})

        assert exc_info.value.kind is DuplicateKind.EMAIL

    def test_failed_create_stores_nothing(self, store):
        store.create("users", {"email": "a@example.com", "username": "a"})
        with pytest.raises(AlreadyExistsError):
            store.create("users", {"email": "a@example.com", "username": "z"})

        assert store.get_stats()["users"] == 1

    def test_uniqueness_only_applies_to_users(self, store):
        store.create("nfts", {"email": "same@example.com"})
        store.create("nfts", {"email": "same@example.com"})
        assert store.get_stats()["nfts"] == 2

    def test_create_unknown_table(self, store):
        with pytest.raises(NotFoundError):
            store.create("collections", {"name": "x"})

    def test_returned_record_is_a_copy(self, store):
        record = store.create("nfts", {"name": "X", "tags": ["a"]})
        record["tags"].append("b")
        record["name"] = "changed"

        stored = store.find_by_id("nfts", record["id"])
        assert stored["name"] == "X"
        assert stored["tags"] == ["a"]


class TestFind:
    """Test filtering, sorting and pagination."""

    def test_find_all_keeps_insertion_order(self, nft_store):
        result = nft_store.find("nfts")

        assert result.total == 7
        assert [r["name"] for r in result.data] == [f"NFT {i}" for i in range(7)]

    def test_equality_filter(self, nft_store):
        result = nft_store.find("nfts", Query(filters={"owner": "alice"}))

        assert result.total == 3
        assert all(r["owner"] == "alice" for r in result.data)

    def test_none_filter_ignored(self, nft_store):
        result = nft_store.find("nfts", Query(filters={"owner": None}))
        assert result.total == 7

    def test_missing_field_never_matches(self, nft_store):
        nft_store.create("nfts", {"name": "no owner"})

        result = nft_store.find("nfts", Query(filters={"owner": Filter("neq", "bob")}))

        assert "no owner" not in [r["name"] for r in result.data]
        assert result.total == 3

    def test_comparison_filter(self, nft_store):
        result = nft_store.find("nfts", Query(filters={"price": Filter("gte", 50)}))
        assert [r["price"] for r in result.data] == [50, 60, 70]

    def test_range_filter(self, nft_store):
        result = nft_store.find(
            "nfts", Query(filters={"price": [Filter("gt", 20), Filter("lte", 40)]})
        )
        assert [r["price"] for r in result.data] == [30, 40]

    def test_incomparable_filter_value_does_not_match(self, nft_store):
        result = nft_store.find("nfts", Query(filters={"price": Filter("gt", "abc")}))
        assert result.total == 0

    def test_unsupported_operator_rejected(self):
        with pytest.raises(ValueError):
            Filter("like", "%x%")

    def test_sort_descending(self, nft_store):
        result = nft_store.find("nfts", Query(sort=Sort("price", ascending=False)))
        assert [r["price"] for r in result.data] == [70, 60, 50, 40, 30, 20, 10]

    def test_sort_puts_missing_values_last(self, nft_store):
        nft_store.create("nfts", {"name": "unpriced"})

        result = nft_store.find("nfts", Query(sort=Sort("price")))

        assert result.data[0]["price"] == 10
        assert result.data[-1]["name"] == "unpriced"

    def test_sort_mixed_types(self, store):
        for price in (5, "6", 3, None, "2"):
            store.create("nfts", {"price": price})

        ascending = store.find("nfts", Query(sort=Sort("price"))).data
        descending = store.find("nfts", Query(sort=Sort("price", ascending=False))).data

        assert [r["price"] for r in ascending] == [3, 5, "2", "6", None]
        assert [r["price"] for r in descending] == ["6", "2", 5, 3, None]

    def test_explicit_offset(self, nft_store):
        result = nft_store.find("nfts", Query(pagination=Pagination.from_offset(5, 10)))

        assert [r["name"] for r in result.data] == ["NFT 5", "NFT 6"]
        assert result.total == 7

    def test_second_page_of_three(self, nft_store):
        result = nft_store.find("nfts", Query(pagination=Pagination(page=2, limit=3)))

        assert [r["name"] for r in result.data] == ["NFT 3", "NFT 4", "NFT 5"]
        assert result.total == 7

    def test_last_partial_page(self, nft_store):
        result = nft_store.find("nfts", Query(pagination=Pagination(page=3, limit=3)))
        assert [r["name"] for r in result.data] == ["NFT 6"]

    def test_page_past_end_is_empty(self, nft_store):
        result = nft_store.find("nfts", Query(pagination=Pagination(page=5, limit=3)))

        assert result.data == []
        assert result.total == 7

    def test_filter_then_paginate(self, nft_store):
        result = nft_store.find(
            "nfts",
            Query(filters={"owner": "bob"}, pagination=Pagination(page=2, limit=2)),
        )

        assert [r["name"] for r in result.data] == ["NFT 4", "NFT 6"]
        assert result.total == 4

    def test_unknown_table_is_empty(self, store):
        result = store.find("collections")

        assert result.data == []
        assert result.total == 0

    def test_accepts_table_enum(self, nft_store):
        assert nft_store.find(Table.NFTS).total == 7


class TestFindByIdUpdateDelete:
    """Test single-record operations."""

    def test_find_by_id_missing(self, store):
        with pytest.raises(NotFoundError):
            store.find_by_id("users", "nope")

    def test_find_by_id_unknown_table(self, store):
        with pytest.raises(NotFoundError):
            store.find_by_id("collections", "nope")

    def test_update_merges_fields(self, store):
        user = store.create("users", {"email": "a@example.com", "username": "a", "bio": "old"})

        updated = store.update("users", user["id"], {"bio": "x"})

        assert updated["bio"] == "x"
        assert updated["email"] == "a@example.com"
        assert updated["username"] == "a"
        assert updated["id"] == user["id"]
        assert updated["created_at"] == user["created_at"]
        assert updated["updated_at"] >= user["updated_at"]
        assert store.find_by_id("users", user["id"]) == updated

    def test_update_cannot_change_id(self, store):
        nft = store.create("nfts", {"name": "X"})
        updated = store.update("nfts", nft["id"], {"id": "other", "name": "Y"})

        assert updated["id"] == nft["id"]
        assert updated["name"] == "Y"

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update("nfts", "nope", {"name": "x"})

    def test_delete_then_find(self, store):
        nft = store.create("nfts", {"name": "X"})

        store.delete("nfts", nft["id"])

        with pytest.raises(NotFoundError):
            store.find_by_id("nfts", nft["id"])

    def test_delete_missing(self, store):
        with pytest.raises(NotFoundError):
            store.delete("transactions", "nope")

    def test_activity_logs_are_append_only(self, store):
        entry = store.create("activity_logs", {"type": "PAGE_VIEW"})

        with pytest.raises(NotFoundError):
            store.update("activity_logs", entry["id"], {"type": "ERROR"})
        with pytest.raises(NotFoundError):
            store.delete("activity_logs", entry["id"])

        assert store.find_by_id("activity_logs", entry["id"])["type"] == "PAGE_VIEW"


class TestSeedAndMaintenance:
    """Test seeding, clearing and stats."""

    def test_seed_creates_demo_user(self, store):
        assert store.seed_baseline() == 1

        users = store.find("users").data
        assert len(users) == 1
        assert users[0]["username"] == "demo_user"
        assert users[0]["email"] == "demo@example.com"

    def test_seed_twice_does_not_duplicate(self, store):
        store.seed_baseline()
        assert store.seed_baseline() == 0
        assert store.get_stats()["users"] == 1

    def test_clear_all(self, nft_store):
        nft_store.seed_baseline()
        nft_store.clear_all()

        assert nft_store.get_stats() == {
            "users": 0,
            "nfts": 0,
            "transactions": 0,
            "activity_logs": 0,
        }

    def test_is_connected(self, store):
        assert store.is_connected() is True
