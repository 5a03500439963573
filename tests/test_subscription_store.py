from garden_alerts.services.subscription_store import TOKEN_BYTES


def test_issue_token_rotates(store):
    first = store.issue_token("a@x.com")
    second = store.issue_token("a@x.com")

    assert len(first.token) == TOKEN_BYTES * 2
    assert first.token != second.token
    assert store.pending_for("a@x.com") == second
    assert not store.confirm("a@x.com", first.token)
    assert store.confirm("a@x.com", second.token)


def test_token_is_single_use(store):
    pending = store.issue_token("a@x.com")

    assert store.confirm("a@x.com", pending.token)
    assert store.is_verified("a@x.com")
    assert store.pending_for("a@x.com") is None
    assert not store.confirm("a@x.com", pending.token)


def test_wrong_token_keeps_pending(store):
    pending = store.issue_token("a@x.com")

    assert not store.confirm("a@x.com", "nope")
    assert not store.confirm("b@x.com", pending.token)
    assert store.pending_for("a@x.com") == pending
    assert not store.is_verified("a@x.com")


def test_token_valid_just_before_expiry(store, clock):
    pending = store.issue_token("a@x.com")
    clock.advance(hours=23, minutes=59)

    assert store.confirm("a@x.com", pending.token)


def test_token_rejected_after_expiry(store, clock):
    pending = store.issue_token("a@x.com")
    clock.advance(hours=24, minutes=1)

    assert not store.confirm("a@x.com", pending.token)
    assert store.pending_for("a@x.com") is None
    assert not store.is_verified("a@x.com")


def test_purge_expired(store, clock):
    store.issue_token("old@x.com")
    clock.advance(hours=20)
    store.issue_token("new@x.com")
    clock.advance(hours=5)

    assert store.purge_expired() == ["old@x.com"]
    assert store.pending_count == 1
    assert store.pending_for("new@x.com") is not None


def test_subscription_is_replaced_not_merged(store):
    store.set_subscription("a@x.com", ["seed1", "seed2"])
    store.set_subscription("a@x.com", ["seed3"])

    assert store.watch_set("a@x.com") == frozenset({"seed3"})
    assert store.subscription_count == 1


def test_subscribers_is_a_copy(store):
    store.set_subscription("a@x.com", ["seed1"])
    subscribers = store.subscribers()

    store.remove_subscription("a@x.com")

    assert subscribers == [("a@x.com", frozenset({"seed1"}))]
    assert store.subscribers() == []


def test_revoke_verification(store):
    pending = store.issue_token("a@x.com")
    store.confirm("a@x.com", pending.token)

    assert store.revoke_verification("a@x.com")
    assert not store.is_verified("a@x.com")
    assert not store.revoke_verification("a@x.com")
