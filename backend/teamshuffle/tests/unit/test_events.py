import pytest
from pydantic import ValidationError

from teamshuffle.planning.models import Pairing
from teamshuffle.plugin.events import CONVERSATIONS_EVENT, ConversationEvent, parse_event_frame
from teamshuffle.plugin.roster import format_roster


class TestParseEventFrame:
    def test_wamp_frame(self):
        frame = parse_event_frame([8, CONVERSATIONS_EVENT, {"uri": "/x"}])

        assert frame.event == CONVERSATIONS_EVENT
        assert frame.payload == {"uri": "/x"}

    def test_object_frame(self):
        frame = parse_event_frame({"event": "OnJsonApiEvent", "payload": {"a": 1}})

        assert frame.event == "OnJsonApiEvent"
        assert frame.payload == {"a": 1}

    def test_payload_defaults_to_empty(self):
        assert parse_event_frame({"event": "OnJsonApiEvent"}).payload == {}

    @pytest.mark.parametrize("raw", [[5, "Subscribe"], [8, "x"], "text", 42])
    def test_rejects_other_shapes(self, raw):
        with pytest.raises(ValueError, match="WAMP|Unsupported"):
            parse_event_frame(raw)

    def test_rejects_empty_event_name(self):
        with pytest.raises(ValidationError):
            parse_event_frame({"event": "", "payload": {}})


class TestConversationEvent:
    def test_messages_url_drops_message_id(self):
        event = ConversationEvent.model_validate(
            {
                "eventType": "Create",
                "uri": "/lol-chat/v1/conversations/abc%40lol.pvp.net/messages/1700000000000",
                "data": {"type": "groupchat", "body": "/rand teams", "fromId": "x"},
            },
        )

        assert event.messages_url == "/lol-chat/v1/conversations/abc%40lol.pvp.net/messages"
        assert event.data is not None
        assert event.data.body == "/rand teams"

    def test_data_is_optional(self):
        event = ConversationEvent.model_validate({"eventType": "Delete", "uri": "/a/b"})

        assert event.data is None

    @pytest.mark.parametrize("uri", ["messages", "", "/messages", "/lol-chat/v1/conversations/abc/"])
    def test_uri_without_message_id_rejected(self, uri):
        with pytest.raises(ValidationError):
            ConversationEvent.model_validate({"eventType": "Create", "uri": uri})


class TestFormatRoster:
    def test_numbered_lines(self):
        roster = format_roster(Pairing((("Alpha#EUW", "Bravo#NA1"), ("Charlie#EUW",))))

        assert roster == "⠀\nArena Teams:\n1: Alpha#EUW & Bravo#NA1\n2: Charlie#EUW"

    def test_custom_header(self):
        assert format_roster(Pairing((("A", "B"),)), header="Teams") == "Teams:\n1: A & B"
