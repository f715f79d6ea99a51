"""
Tests for the Envelope Reader

Covers tolerant field extraction and classification of inbound payloads,
including malformed and partial input.
"""

import pytest

from chat_terminal import (
    ABSENT,
    Envelope,
    EnvelopeKind,
    classify,
    extract_field,
)


class TestExtractField:
    """Tests for extract_field()."""

    def test_extracts_quoted_string(self):
        payload = '{"type":"chat","from":"alice","message":"hi"}'
        assert extract_field(payload, "from") == "alice"

    def test_extracts_last_field_before_brace(self):
        payload = '{"type":"chat","message":"hi"}'
        assert extract_field(payload, "message") == "hi"

    def test_extracts_number(self):
        payload = '{"type":"error","errorCode":404,"message":"x"}'
        assert extract_field(payload, "errorCode") == "404"

    def test_tolerates_whitespace(self):
        payload = '{ "type" : "chat" , "from" :  "bob"  }'
        assert extract_field(payload, "from") == "bob"

    def test_missing_field_is_absent(self):
        assert extract_field('{"type":"chat"}', "from") == ABSENT

    def test_field_name_is_case_sensitive(self):
        assert extract_field('{"roomid":"Lobby"}', "roomId") == ABSENT

    def test_missing_colon_is_absent(self):
        assert extract_field('{"from"', "from") == ABSENT

    def test_blank_value_is_absent(self):
        assert extract_field('{"from":"","to":"bob"}', "from") == ABSENT

    def test_truncated_payload_takes_rest(self):
        assert extract_field('{"from":"ali', "from") == "ali"

    def test_value_is_cut_at_first_comma(self):
        payload = '{"message":"hello, world","from":"alice"}'
        assert extract_field(payload, "message") == "hello"

    def test_stray_braces_are_removed(self):
        assert extract_field('{"from":{alice', "from") == "alice"

    @pytest.mark.parametrize(
        "payload",
        ["", "not json at all", "{", ":::", '"from"', '"from":', "}}{{"],
    )
    def test_never_raises_on_garbage(self, payload):
        assert extract_field(payload, "from") == ABSENT

    def test_extraction_is_idempotent(self):
        payload = '{"type":"dm","from":"alice","to":"bob","message":"psst"}'
        first = extract_field(payload, "to")
        assert extract_field(payload, "to") == first == "bob"


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "payload,kind",
        [
            ('{"type":"chat"}', EnvelopeKind.CHAT),
            ('{"type":"dm"}', EnvelopeKind.DM),
            ('{"type":"system"}', EnvelopeKind.SYSTEM),
            ('{"type":"error"}', EnvelopeKind.ERROR),
            ('{"TYPE":"CHAT"}', EnvelopeKind.CHAT),
            ('{"type" : "dm"}', EnvelopeKind.DM),
            ("type:system", EnvelopeKind.SYSTEM),
            ('{"type":"presence"}', EnvelopeKind.UNRECOGNIZED),
            ('{"type":"chatroom"}', EnvelopeKind.UNRECOGNIZED),
            ('{"subType":"chat"}', EnvelopeKind.UNRECOGNIZED),
            ("plain text", EnvelopeKind.UNRECOGNIZED),
            ("", EnvelopeKind.UNRECOGNIZED),
        ],
    )
    def test_classification(self, payload, kind):
        assert classify(payload) is kind

    def test_priority_order(self):
        """chat wins over error when both markers are present."""
        payload = '{"type":"error","inner":{"type":"chat"}}'
        assert classify(payload) is EnvelopeKind.CHAT


class TestEnvelope:
    """Tests for Envelope.from_payload()."""

    def test_chat_fields(self):
        envelope = Envelope.from_payload(
            '{"type":"chat","from":"alice","roomId":"Lobby","message":"hi"}'
        )
        assert envelope.kind is EnvelopeKind.CHAT
        assert envelope.fields == {
            "from": "alice",
            "roomId": "Lobby",
            "message": "hi",
        }
        assert envelope.usernames == ("alice",)
        assert envelope.rooms == ("Lobby",)

    def test_dm_fields(self):
        envelope = Envelope.from_payload(
            '{"type":"dm","from":"alice","to":"bob","message":"psst"}'
        )
        assert envelope.kind is EnvelopeKind.DM
        assert envelope.get("to") == "bob"
        assert envelope.usernames == ("alice", "bob")
        assert envelope.rooms == ()

    def test_system_fields(self):
        envelope = Envelope.from_payload(
            '{"type":"system","subType":"welcome","message":"hello",'
            '"from":"server"}'
        )
        assert envelope.kind is EnvelopeKind.SYSTEM
        assert envelope.fields == {"subType": "welcome", "message": "hello"}
        assert envelope.usernames == ()

    def test_error_fields(self):
        envelope = Envelope.from_payload(
            '{"type":"error","errorCode":404,"command":"join_room",'
            '"message":"no such room"}'
        )
        assert envelope.kind is EnvelopeKind.ERROR
        assert envelope.get("errorCode") == "404"
        assert envelope.get("command") == "join_room"
        assert envelope.get("message") == "no such room"

    def test_missing_fields_are_absent(self):
        envelope = Envelope.from_payload('{"type":"chat","message":"hi"}')
        assert envelope.get("from") == ABSENT
        assert not envelope.has("roomId")
        assert envelope.usernames == ()
        assert envelope.rooms == ()

    def test_unrecognized_keeps_raw(self):
        payload = '{"type":"presence","from":"alice"}'
        envelope = Envelope.from_payload(payload)
        assert envelope.kind is EnvelopeKind.UNRECOGNIZED
        assert envelope.fields == {}
        assert envelope.raw == payload
        assert envelope.usernames == ()
