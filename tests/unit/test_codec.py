"""
Message Codec Unit Tests
========================

Tests for wire encoding/decoding and validation.
"""

import json

import pytest

from gpsrelay.core.codec import decode, encode
from gpsrelay.core.errors import DecodeError
from gpsrelay.domain.models import LocationMessage, MessageKind, PositionSample


class TestDecode:
    """Tests for decode()."""

    def test_client_message(self):
        msg = decode(
            '{"kind":"client","participantId":"c1","displayName":"Alice",'
            '"latitude":10,"longitude":20}'
        )
        assert msg.kind is MessageKind.CLIENT
        assert msg.participant_id == "c1"
        assert msg.display_name == "Alice"
        assert msg.latitude == 10.0
        assert msg.longitude == 20.0

    def test_accepts_bytes(self):
        msg = decode(b'{"kind":"remove","participantId":"c1"}')
        assert msg.kind is MessageKind.REMOVE

    def test_short_field_names_rejected(self):
        """Only the camelCase wire shape decodes; hub-built messages use it too."""
        with pytest.raises(DecodeError):
            decode('{"type":"client","id":"client_x","name":"Bob","lat":1.5,"lng":-2.5}')

    def test_short_participant_key_is_ignored(self):
        msg = decode('{"kind":"remove","id":"c1"}')
        assert msg.participant_id is None

    def test_unknown_fields_ignored(self):
        msg = decode('{"kind":"module","participantId":"module","latitude":0,"longitude":0,"hdop":1.2}')
        assert msg.kind is MessageKind.MODULE

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "",
            "[1, 2, 3]",
            '"client"',
            '{"participantId":"c1"}',
            '{"kind":"teleport","participantId":"c1"}',
            '{"kind":"client","displayName":"Alice"}',
            '{"kind":"client","participantId":""}',
            '{"kind":"client","participantId":"c1","latitude":"north"}',
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(DecodeError) as excinfo:
            decode(raw)
        assert excinfo.value.raw == raw
        assert excinfo.value.reason

    def test_module_without_participant_is_accepted(self):
        """Only client messages must carry an id."""
        msg = decode('{"kind":"module","latitude":1,"longitude":2}')
        assert msg.participant_id is None


class TestEncode:
    """Tests for encode()."""

    def test_remove_carries_only_participant(self):
        assert json.loads(encode(LocationMessage.remove("c1"))) == {
            "kind": "remove",
            "participantId": "c1",
        }

    def test_module_message_shape(self):
        sample = PositionSample(latitude=1, longitude=2, valid=True, satellites=7)
        out = json.loads(encode(LocationMessage.module("module", sample)))
        assert out == {"kind": "module", "participantId": "module", "latitude": 1, "longitude": 2}
        assert "displayName" not in out

    def test_module_without_fix_is_zeroed(self):
        sample = PositionSample(latitude=41.0, longitude=29.0, valid=False)
        out = json.loads(encode(LocationMessage.module("module", sample)))
        assert (out["latitude"], out["longitude"]) == (0, 0)

    def test_client_uses_camel_case(self):
        msg = LocationMessage(
            kind=MessageKind.CLIENT,
            participant_id="c2",
            display_name="Eve",
            latitude=3.0,
            longitude=4.0,
        )
        assert json.loads(encode(msg)) == {
            "kind": "client",
            "participantId": "c2",
            "displayName": "Eve",
            "latitude": 3.0,
            "longitude": 4.0,
        }
