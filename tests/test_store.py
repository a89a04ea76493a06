from reviewuplift.domain import DEFAULT_CONFIG, PreviewSync
from reviewuplift.infrastructure.state import (
    ConfigSlot,
    DatabaseSlot,
    InMemorySlot,
    PageAddress,
    StateChannel,
    StateStore,
    encode,
)


class BrokenSlot(ConfigSlot):
    def get(self, key):
        raise OSError("storage unavailable")

    def put(self, key, config):
        raise OSError("storage full")


def test_load_without_any_source_gives_default():
    assert StateStore(InMemorySlot(), "1").load() == DEFAULT_CONFIG


def test_address_token_wins_over_shared_slot():
    slot = InMemorySlot()
    slot.put("1", DEFAULT_CONFIG.with_preview("From Slot", "a", "b", "c"))
    token = encode(DEFAULT_CONFIG.with_preview("From Token", "a", "b", "c"))

    store = StateStore(slot, "1", PageAddress("/review/1", (("state", token),)))
    assert store.load().business_name == "From Token"


def test_unreadable_token_falls_through_to_slot():
    slot = InMemorySlot()
    slot.put("1", DEFAULT_CONFIG.with_gating(False))

    store = StateStore(slot, "1", PageAddress("/review/1", (("state", "garbage!"),)))
    assert store.load().is_review_gating_enabled is False


def test_save_writes_slot_address_and_publishes():
    slot, channel, received = InMemorySlot(), StateChannel(), []
    channel.subscribe("1", received.append)
    store = StateStore(slot, "1", PageAddress("/review-link", (("edit", "url"),)), channel)

    updated = DEFAULT_CONFIG.with_link_slug("pizza", "https://go.reviewuplift.com/")
    store.save(updated)

    assert slot.get("1") == updated
    assert store.address.token == encode(updated)
    assert ("edit", "url") in store.address.params
    assert received == [updated]
    assert StateStore(slot, "1", store.address).load() == updated


def test_last_write_wins_between_two_editors():
    slot = InMemorySlot()
    first = StateStore(slot, "1")
    second = StateStore(slot, "1")

    first.save(DEFAULT_CONFIG.with_preview("First", "a", "b", "c"))
    second.save(DEFAULT_CONFIG.with_preview("Second", "a", "b", "c"))

    assert StateStore(slot, "1").load().business_name == "Second"


def test_broken_slot_is_tolerated(caplog):
    store = StateStore(BrokenSlot(), "1")
    assert store.load() == DEFAULT_CONFIG

    store.save(DEFAULT_CONFIG.with_gating(False))
    assert store.load().is_review_gating_enabled is False
    assert "Shared slot write failed" in caplog.text


def test_stores_are_scoped_per_business():
    slot = InMemorySlot()
    StateStore(slot, "1").save(DEFAULT_CONFIG.with_preview("One", "a", "b", "c"))
    assert StateStore(slot, "2").load() == DEFAULT_CONFIG


def test_database_slot_persists_token(db):
    owner_id = db.create_user("uid-1", "o@x.com", "o")
    business_id = db.create_business(owner_id, "Doner Hut")
    slot = DatabaseSlot(db)

    assert slot.get(str(business_id)) is None
    slot.put(str(business_id), DEFAULT_CONFIG.with_gating(False))
    slot.put(str(business_id), DEFAULT_CONFIG.with_preview("Renamed", "a", "b", "c"))
    assert slot.get(str(business_id)).business_name == "Renamed"


def test_page_address_round_trip():
    address = PageAddress.from_url("/review/3?rating=2&state=abc")
    assert address.path == "/review/3"
    assert address.token == "abc"
    assert address.with_token("").url == "/review/3?rating=2"
    assert address.with_token("xyz").url == "/review/3?rating=2&state=xyz"


def test_channel_keeps_delivering_when_a_subscriber_fails(caplog):
    channel, received = StateChannel(), []

    def broken(config):
        raise RuntimeError("boom")

    channel.subscribe("1", broken)
    unsubscribe = channel.subscribe("1", received.append)

    assert channel.publish("1", DEFAULT_CONFIG) == 1
    assert received == [DEFAULT_CONFIG]
    assert "State subscriber for 1 failed" in caplog.text

    unsubscribe()
    assert channel.subscriber_count("1") == 1
    assert channel.publish("2", DEFAULT_CONFIG) == 0


def test_preview_sync_applies_external_edits_but_keeps_local_rating():
    sync = PreviewSync(DEFAULT_CONFIG)
    sync.select_rating(2)

    assert sync.apply(DEFAULT_CONFIG.with_rating(5)) is False
    assert sync.config.rating == 2

    assert sync.apply(DEFAULT_CONFIG.with_preview("Renamed", "a", "b", "c").with_rating(5)) is True
    assert sync.config.business_name == "Renamed"
    assert sync.config.rating == 2
