"""참조 데이터 저장소 / TTL 캐시 / 데이터 모델 테스트."""

import threading

import pytest

from cbc_docgen.curriculum.cache import TTLCache
from cbc_docgen.curriculum.models import parse_week_number
from cbc_docgen.curriculum.repository import CachedCurriculumRepository, JsonCurriculumRepository


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTTLCache:
    def test_get_set(self):
        cache = TTLCache(10, clock=Clock())
        assert cache.get("k") is None
        cache.set("k", "v")
        assert cache.get("k") == "v"
        assert len(cache) == 1

    def test_expiry(self):
        clock = Clock()
        cache = TTLCache(10, clock=clock)
        cache.set("k", "v")
        clock.now = 9.9
        assert cache.get("k") == "v"
        clock.now = 10.0
        assert cache.get("k") is None

    def test_set_prunes_expired(self):
        clock = Clock()
        cache = TTLCache(5, clock=clock)
        cache.set("old", 1)
        clock.now = 6
        cache.set("new", 2)
        assert len(cache) == 1
        assert cache.get("old") is None

    def test_clear(self):
        cache = TTLCache(10, clock=Clock())
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_concurrent_writers(self):
        cache = TTLCache(60)

        def write(prefix):
            for i in range(200):
                cache.set(f"{prefix}-{i}", i)

        threads = [threading.Thread(target=write, args=(p,)) for p in "abcd"]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(cache) == 800


class TestJsonCurriculumRepository:
    def test_find_entry_normalizes_keys(self, repository):
        entry = repository.find_entry(" grade 4 ", "SCIENCE AND TECHNOLOGY", "living things", "animals")
        assert entry is not None
        assert entry.substrand == "Animals"
        assert entry.no_of_lessons == 6
        assert len(entry.assessment) == 1

    def test_missing_entry(self, repository):
        assert repository.find_entry("Grade 4", "Science and Technology", "Living Things", "Plants") is None

    def test_generation_config(self, repository):
        config = repository.generation_config("Grade 4", "Science and Technology")
        assert config.lessons_per_week == 3
        assert config.weeks_per_term == 10
        assert repository.generation_config("Grade 9", "Art") is None

    def test_bundled_sample_loads(self):
        repository = JsonCurriculumRepository()
        assert len(repository.entries) >= 3
        assert repository.find_entry("Grade 7", "Mathematics", "Geometry", "Angles") is not None


class TestCachedRepository:
    def test_read_through(self, repository):
        calls = []

        class Counting(JsonCurriculumRepository):
            def find_entry(self, *args):
                calls.append(args)
                return super().find_entry(*args)

        inner = Counting(repository._path)
        cached = CachedCurriculumRepository(inner, TTLCache(60))
        key = ("Grade 4", "Science and Technology", "Living Things", "Animals")
        first = cached.find_entry(*key)
        second = cached.find_entry(*key)
        assert first is second
        assert len(calls) == 1

    def test_misses_not_cached(self, repository):
        cached = CachedCurriculumRepository(repository, TTLCache(60))
        assert cached.find_entry("Grade 1", "x", "y", "z") is None
        assert len(cached.cache) == 0


@pytest.mark.parametrize("text, number", [
    ("Week 2", 2), ("WK 3", 3), ("w4", 4), ("12", 12), ("week. 5", 5), ("Term 1", None), ("", None),
])
def test_parse_week_number(text, number):
    assert parse_week_number(text) == number
