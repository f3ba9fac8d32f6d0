"""Tests for Message and the push envelope."""

import json

from pubsub_emulator.message import ENVELOPE_SUBSCRIPTION, MESSAGE_ID_LENGTH, Message, generate_message_id


def test_generated_id_is_short_and_alphabetic():
    message_id = generate_message_id()
    assert len(message_id) == MESSAGE_ID_LENGTH
    assert message_id.isalpha()


def test_each_message_gets_its_own_id():
    ids = {Message(data="x").message_id for _ in range(200)}
    assert len(ids) > 190


def test_explicit_id_is_kept():
    assert Message(data="x", message_id="abc").message_id == "abc"


def test_serialized_envelope():
    message = Message(data="aGVsbG8=", attributes={"k": "v"}, message_id="abcde")
    assert json.loads(message.serialize()) == {
        "message": {"attributes": {"k": "v"}, "data": "aGVsbG8=", "message_id": "abcde"},
        "subscription": ENVELOPE_SUBSCRIPTION,
    }


def test_missing_attributes_serialize_as_empty_mapping():
    envelope = Message(data="x").to_push_envelope()
    assert envelope["message"]["attributes"] == {}
