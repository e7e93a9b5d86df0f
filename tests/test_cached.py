from ggdiff.github.cached import GC_INTERVAL, GC_TIME, STALE_TIME, CachedClient, TtlCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class FakeClient:
    def __init__(self):
        self.fetches = 0
        self.calls = []

    def review_comments(self, owner, repo, number):
        self.fetches += 1
        return [f"{owner}/{repo}/{number}#{self.fetches}"]

    def create_review_comment(self, owner, repo, number, body, commit_id, path, line, side):
        self.calls.append(("create", body, commit_id, path, line, side))
        return body

    def reply_to_comment(self, owner, repo, number, comment_id, body):
        self.calls.append(("reply", comment_id, body))
        return body

    def pull_request_by_branch(self, owner, repo, branch):
        self.calls.append(("pr", branch))
        return None

    def authenticated_user(self):
        return "me"


def test_cache_get_fresh_and_stale():
    clock = FakeClock()
    cache = TtlCache(clock)
    cache.set("k", [1])
    assert cache.get("k") == [1]
    clock.now += STALE_TIME
    assert cache.get("k") is None


def test_cache_invalidate_and_clear():
    cache = TtlCache(FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)
    cache.invalidate("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2
    cache.clear()
    assert len(cache) == 0


def test_cache_gc_keeps_recently_accessed():
    clock = FakeClock()
    cache = TtlCache(clock)
    cache.set("old", 1)
    clock.now += STALE_TIME / 2
    cache.set("new", 2)
    clock.now += GC_TIME - STALE_TIME / 4
    cache.gc()
    assert len(cache) == 1
    clock.now += GC_TIME
    cache.gc()
    assert len(cache) == 0


def test_review_comments_cached_until_stale():
    clock = FakeClock()
    inner = FakeClient()
    client = CachedClient(inner, clock)
    first = client.review_comments("o", "r", 1)
    second = client.review_comments("o", "r", 1)
    assert first == second
    assert inner.fetches == 1
    clock.now += STALE_TIME + 1
    third = client.review_comments("o", "r", 1)
    assert inner.fetches == 2
    assert third != first


def test_separate_pulls_cached_separately():
    inner = FakeClient()
    client = CachedClient(inner, FakeClock())
    client.review_comments("o", "r", 1)
    client.review_comments("o", "r", 2)
    assert inner.fetches == 2


def test_create_review_comment_invalidates():
    inner = FakeClient()
    client = CachedClient(inner, FakeClock())
    client.review_comments("o", "r", 1)
    result = client.create_review_comment("o", "r", 1, "hi", "abc", "a.rs", 3, "RIGHT")
    assert result == "hi"
    client.review_comments("o", "r", 1)
    assert inner.fetches == 2
    assert inner.calls[0] == ("create", "hi", "abc", "a.rs", 3, "RIGHT")


def test_reply_invalidates():
    inner = FakeClient()
    client = CachedClient(inner, FakeClock())
    client.review_comments("o", "r", 1)
    client.reply_to_comment("o", "r", 1, 5, "yes")
    client.review_comments("o", "r", 1)
    assert inner.fetches == 2
    assert inner.calls == [("reply", 5, "yes")]


def test_invalidate_all_and_gc_interval():
    inner = FakeClient()
    client = CachedClient(inner, FakeClock())
    client.review_comments("o", "r", 1)
    client.invalidate_all()
    client.review_comments("o", "r", 1)
    assert inner.fetches == 2
    assert client.gc_interval() == GC_INTERVAL


def test_gc_evicts_through_client():
    clock = FakeClock()
    inner = FakeClient()
    client = CachedClient(inner, clock)
    client.review_comments("o", "r", 1)
    clock.now += GC_TIME
    client.gc()
    clock.now -= GC_TIME
    client.review_comments("o", "r", 1)
    assert inner.fetches == 2


def test_passthrough_calls():
    inner = FakeClient()
    client = CachedClient(inner, FakeClock())
    assert client.pull_request_by_branch("o", "r", "feature") is None
    assert inner.calls == [("pr", "feature")]
    assert client.authenticated_user() == "me"