"""Tests for usage-ranked eviction."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from foldercache.cache.eviction import evict, eviction_count, select_victims
from foldercache.cache.index import MetadataIndex
from foldercache.models import MetaEntry


def _entry(key: str, usage: int = 0, added_at: int = 0) -> MetaEntry:
    return MetaEntry(key=key, path=Path(f"/cache/{key}.json"), usage_count=usage, added_at=added_at)


class TestEvictionCount:
    @pytest.mark.parametrize(
        "total, size, trim, expected",
        [
            (5, 5, 40, 2),
            (10, 10, 10, 1),
            (3, 10, 10, 0),
            (2, 1, 10, 1),
            (600, 500, 10, 100),
            (501, 500, 10, 50),
            (8, 5, 10, 3),
            (0, 5, 100, 0),
        ],
    )
    def test_counts(self, total: int, size: int, trim: int, expected: int) -> None:
        assert eviction_count(total, size, trim) == expected


class TestSelectVictims:
    def test_least_used_first(self) -> None:
        entries = [_entry(k, u) for k, u in zip("abcde", [5, 2, 7, 1, 3])]
        victims = select_victims(entries, 2)
        assert [v.key for v in victims] == ["d", "b"]

    def test_older_first_on_usage_tie(self) -> None:
        entries = [_entry("new", 1, added_at=300), _entry("old", 1, added_at=100), _entry("hot", 9)]
        assert [v.key for v in select_victims(entries, 1)] == ["old"]

    def test_index_order_on_full_tie(self) -> None:
        entries = [_entry("first"), _entry("second")]
        assert [v.key for v in select_victims(entries, 1)] == ["first"]

    def test_protected_keys_skipped(self) -> None:
        entries = [_entry("fresh", 0, added_at=0), _entry("a", 3), _entry("b", 4)]
        assert [v.key for v in select_victims(entries, 1, protect=("fresh",))] == ["a"]

    def test_zero_count(self) -> None:
        assert select_victims([_entry("a")], 0) == []


class TestEvict:
    def _index(self, usages: dict[str, int]) -> MetadataIndex:
        index = MetadataIndex()
        for i, (key, usage) in enumerate(usages.items()):
            index.put(_entry(key, usage, added_at=i))
        return index

    def test_removes_two_least_used_of_five(self) -> None:
        index = self._index({"a": 5, "b": 2, "c": 7, "d": 1, "e": 3})
        removed_paths: list[Path] = []

        async def remove(path: Path) -> None:
            removed_paths.append(path)

        victims = asyncio.run(evict(index, size=5, trim=40, remove=remove))

        assert sorted(v.usage_count for v in victims) == [1, 2]
        assert sorted(index) == ["a", "c", "e"]
        assert sorted(p.name for p in removed_paths) == ["b.json", "d.json"]

    def test_index_updated_before_files_removed(self) -> None:
        index = self._index({"a": 0, "b": 1})
        seen_sizes: list[int] = []

        async def remove(path: Path) -> None:
            seen_sizes.append(len(index))

        asyncio.run(evict(index, size=1, trim=10, remove=remove))
        assert seen_sizes == [1]

    def test_nothing_to_do(self) -> None:
        index = self._index({"a": 0, "b": 0})

        async def remove(path: Path) -> None:
            raise AssertionError("should not remove anything")

        assert asyncio.run(evict(index, size=10, trim=10, remove=remove)) == []
        assert len(index) == 2

    def test_shared_file_kept_for_surviving_key(self) -> None:
        index = MetadataIndex()
        shared = Path("/cache/a-b.json")
        index.put(MetaEntry(key="a/b", path=shared, usage_count=0, added_at=0))
        index.put(MetaEntry(key="a-b", path=shared, usage_count=0, added_at=1))
        removed_paths: list[Path] = []

        async def remove(path: Path) -> None:
            removed_paths.append(path)

        victims = asyncio.run(evict(index, size=1, trim=10, remove=remove, protect=("a-b",)))

        assert [v.key for v in victims] == ["a/b"]
        assert list(index) == ["a-b"]
        assert removed_paths == []
