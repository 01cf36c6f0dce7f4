import pytest

from butler.chat.commands import CommandKind, parse_command


@pytest.mark.parametrize(
    "text, kind, option",
    [
        ("reset", CommandKind.reset, None),
        ("Reset please", CommandKind.reset, None),
        ("profile", CommandKind.profile, None),
        ("more", CommandKind.more, None),
        ("book 2", CommandKind.book, 2),
        ("book #3", CommandKind.book, 3),
        ("1", CommandKind.select, 1),
        ("pick #2", CommandKind.select, 2),
        ("confirm", CommandKind.confirm, None),
        ("yes", CommandKind.confirm, None),
        ("change", CommandKind.change, None),
        ("no", CommandKind.change, None),
        ("continue chat", CommandKind.continue_chat, None),
        ("skip", CommandKind.skip, None),
        ("cancel booking", CommandKind.cancel, None),
        ("that's too expensive", CommandKind.reject, None),
        ("not the right vibe", CommandKind.reject, None),
    ],
)
def test_parse_command(text, kind, option):
    command = parse_command(text)
    assert command.kind == kind
    assert command.option == option


@pytest.mark.parametrize("text", ["4", "book 4", "italian in hamra", "resetting is fine", "moreover"])
def test_not_a_command(text):
    assert parse_command(text).kind == CommandKind.none
