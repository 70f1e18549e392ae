from roamly.cache import TTLCache, fingerprint


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = _Clock()
    cache = TTLCache(60, clock=clock)
    cache.put("a", 1)
    clock.now += 59
    assert cache.get("a") == 1
    clock.now += 2
    assert cache.get("a") is None
    assert len(cache) == 0


def test_zero_ttl_disables_cache():
    cache = TTLCache(0)
    cache.put("a", 1)
    assert cache.get("a") is None


def test_oldest_entry_evicted_when_full():
    cache = TTLCache(60, clock=_Clock(), max_entries=2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("c", 3)
    assert cache.get("a") is None
    assert (cache.get("b"), cache.get("c")) == (2, 3)


def test_fingerprint_normalises_url():
    assert fingerprint("HTTPS://Example.com/Path/#frag") == "https://example.com/Path"
    assert fingerprint("https://example.com") == "https://example.com/"
    assert fingerprint("https://example.com/a?b=1") != fingerprint("https://example.com/a?b=2")
