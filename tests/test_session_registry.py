"""
Tests for the Session Registry
"""

import threading

from chat_terminal import Envelope, SessionRegistry


def test_registry_starts_empty():
    registry = SessionRegistry()
    assert registry.users == ()
    assert registry.rooms == ()


def test_insertion_order_and_deduplication():
    registry = SessionRegistry()
    registry.add_users(["carol", "alice", "carol", "bob", "alice"])
    registry.add_rooms(["Lobby", "Lobby", "Dev"])
    assert registry.users == ("carol", "alice", "bob")
    assert registry.rooms == ("Lobby", "Dev")


def test_observe_chat_records_user_and_room():
    registry = SessionRegistry()
    registry.observe(
        Envelope.from_payload(
            '{"type":"chat","from":"alice","roomId":"Lobby","message":"hi"}'
        )
    )
    assert registry.users == ("alice",)
    assert registry.rooms == ("Lobby",)


def test_observe_dm_records_both_users():
    registry = SessionRegistry()
    registry.observe(
        Envelope.from_payload(
            '{"type":"dm","from":"alice","to":"bob","message":"hey"}'
        )
    )
    assert registry.users == ("alice", "bob")
    assert registry.rooms == ()


def test_observe_skips_absent_and_unrecognized():
    registry = SessionRegistry()
    registry.observe(Envelope.from_payload('{"type":"chat","message":"x"}'))
    registry.observe(Envelope.from_payload('{"type":"who","from":"eve"}'))
    registry.observe(
        Envelope.from_payload('{"type":"system","message":"welcome"}')
    )
    assert registry.users == ()
    assert registry.rooms == ()


def test_registry_only_grows():
    registry = SessionRegistry()
    seen = []
    for name in ["a", "b", "a", "c", "b", "d"]:
        registry.add_users([name])
        users = registry.users
        assert set(seen) <= set(users)
        assert len(users) == len(set(users))
        seen = list(users)
    assert seen == ["a", "b", "c", "d"]


def test_concurrent_writers_do_not_duplicate():
    registry = SessionRegistry()
    names = [f"user-{i}" for i in range(50)]

    def writer():
        registry.add_users(names)

    threads = [threading.Thread(target=writer) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(registry.users) == sorted(names)
