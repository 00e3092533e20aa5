from monorepo_deps.cache import TTLCache


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def test_entries_expire():
    clock = FakeClock()
    cache = TTLCache(ttl=10, clock=clock)
    cache.set("structure", {"packageCount": 2})

    clock.now = 9.9
    assert cache.get("structure") == {"packageCount": 2}
    assert "structure" in cache

    clock.now = 10.0
    assert cache.get("structure") is None
    assert "structure" not in cache
    assert len(cache) == 0


def test_get_or_compute_reuses_value_until_expiry():
    clock = FakeClock()
    cache = TTLCache(ttl=5, clock=clock)
    calls = []

    def compute():
        calls.append(clock.now)
        return len(calls)

    assert cache.get_or_compute("circular", compute) == 1
    assert cache.get_or_compute("circular", compute) == 1
    clock.now = 6
    assert cache.get_or_compute("circular", compute) == 2
    assert calls == [0.0, 6]


def test_cached_falsy_values_are_hits():
    cache = TTLCache(clock=FakeClock())
    calls = []

    for _ in range(2):
        cache.get_or_compute("cycles", lambda: calls.append(1) or [])

    assert calls == [1]


def test_invalidate_one_key():
    cache = TTLCache(clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    cache.invalidate("missing")

    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_invalidate_all():
    cache = TTLCache(clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate()

    assert len(cache) == 0
    assert cache.get("b", "default") == "default"
