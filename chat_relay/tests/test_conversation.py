from chat_relay.domain.conversation import Conversation, is_valid_message
from chat_relay.domain.models import ChatMessage


def _system_positions(conv):
    return [i for i, m in enumerate(conv) if m.role == "system"]


def test_sync_system_inserts_at_front():
    conv = Conversation([ChatMessage(role="user", content="hi")])
    conv.sync_system("  Be brief.  ")
    assert conv[0].role == "system"
    assert conv[0].content == "Be brief."
    assert len(conv) == 2


def test_sync_system_overwrites_existing_in_place():
    conv = Conversation()
    conv.sync_system("first")
    original = conv[0]
    conv.append("user", "hi")
    conv.sync_system("second")
    assert conv[0] is original
    assert conv[0].content == "second"
    assert _system_positions(conv) == [0]


def test_sync_system_blank_removes_message():
    conv = Conversation()
    conv.sync_system("sys")
    conv.append("user", "hi")
    conv.sync_system("   ")
    assert _system_positions(conv) == []
    assert [m.role for m in conv] == ["user"]


def test_sync_system_normalizes_stray_system_messages():
    conv = Conversation([
        ChatMessage(role="user", content="a"),
        ChatMessage(role="system", content="x"),
        ChatMessage(role="assistant", content="b"),
        ChatMessage(role="system", content="y"),
    ])
    for prompt in ["new", "", "again"]:
        conv.sync_system(prompt)
        positions = _system_positions(conv)
        assert positions in ([], [0])
    assert [m.role for m in conv] == ["system", "user", "assistant"]


def test_remove_uses_identity_and_last_occurrence():
    conv = Conversation()
    first = conv.append("user", "same")
    second = conv.append("user", "same")
    assert conv.remove(second) is True
    assert conv.messages == [first]
    assert conv[0] is first
    assert conv.remove(ChatMessage(role="user", content="same")) is False


def test_reset_keeps_only_system_prompt():
    conv = Conversation()
    conv.append("user", "hi")
    conv.reset(" sys ")
    assert conv.to_payload() == [{"role": "system", "content": "sys"}]
    conv.reset("")
    assert len(conv) == 0


def test_from_payload_drops_malformed_entries():
    conv = Conversation.from_payload([
        {"role": "user", "content": "ok", "extra": 1},
        {"role": "user"},
        {"role": 3, "content": "x"},
        "junk",
        None,
        {"role": "assistant", "content": ""},
    ])
    assert conv.to_payload() == [
        {"role": "user", "content": "ok"},
        {"role": "assistant", "content": ""},
    ]
    assert len(Conversation.from_payload({"role": "user"})) == 0


def test_is_valid_message():
    assert is_valid_message({"role": "user", "content": "x"})
    assert not is_valid_message({"role": "user", "content": None})
    assert not is_valid_message(["user", "x"])
