from __future__ import annotations

import pytest
from conftest import ADAM, BOB, FAMILY, WORK, FakeSession, RecordingSink

from botfleet.core.dispatcher import USAGES, CommandDispatcher
from botfleet.core.tokenizer import tokenize
from botfleet.core.types import DirectoryKind


async def _run(session: FakeSession, sink: RecordingSink, line: str) -> None:
    await CommandDispatcher(session, sink).execute(tokenize(line))


@pytest.mark.asyncio
async def test_send_to_contact_says_and_reports(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send Bob -m 'hello bob'")

    assert session.sent == [(BOB, "hello bob")]
    assert 'Message sent to contact "Bob": hello bob' in sink.lines


@pytest.mark.asyncio
async def test_send_to_room_uses_topic(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send 'Family Chat' --targetType=room --message hi")

    assert session.sent == [(FAMILY, "hi")]
    assert session.lookups == [(DirectoryKind.ROOM, {"topic": "Family Chat"})]


@pytest.mark.asyncio
async def test_send_without_message_is_usage_error(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send Bob -t contact")

    assert session.sent == []
    assert session.lookups == []
    assert sink.lines == [USAGES["send"]]


@pytest.mark.asyncio
async def test_send_unknown_target_reports_not_found(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send Carol -m hi")

    assert session.sent == []
    assert sink.errors == ['contact "Carol" not found.']


@pytest.mark.asyncio
async def test_send_extra_token_warns_but_still_sends(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send Adam Bob -m hi")

    assert "Unknown option or too many targets: Bob" in sink.lines
    assert session.sent == [(ADAM, "hi")]


@pytest.mark.asyncio
async def test_send_repeated_flags_warn_and_keep_first_value(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send Bob -m one --message two -t contact -t room")

    assert sink.lines[:4] == [
        "Unknown option or too many targets: two",
        USAGES["send"],
        "Unknown option or too many targets: room",
        USAGES["send"],
    ]
    assert session.sent == [(BOB, "one")]


@pytest.mark.asyncio
async def test_send_invalid_target_type(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "send Bob -t group -m hi")

    assert session.sent == []
    assert sink.lines == ["Invalid target type group", USAGES["send"]]


@pytest.mark.asyncio
async def test_send_lookup_failure_is_reported(session: FakeSession, sink: RecordingSink) -> None:
    session.failing.add(DirectoryKind.CONTACT)

    await _run(session, sink, "send Bob -m hi")

    assert session.sent == []
    assert sink.errors == ["Error during send: contact directory unavailable"]


@pytest.mark.asyncio
async def test_ls_without_flag_lists_both(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "ls")

    kinds = {kind for kind, _ in session.lookups}
    assert kinds == {DirectoryKind.CONTACT, DirectoryKind.ROOM}
    assert (("id", "topic"), [("r-family", "Family Chat"), ("r-work", "Work Stuff")]) in sink.tables
    assert (("id", "alias", "name"), [("c-adam", "Big A", "Adam"), ("c-bob", "", "Bob")]) in sink.tables


@pytest.mark.asyncio
@pytest.mark.parametrize("line", ["ls -c", "ls --contact"])
async def test_ls_contact_flag_lists_only_contacts(session: FakeSession, sink: RecordingSink, line: str) -> None:
    await _run(session, sink, line)

    assert session.lookups == [(DirectoryKind.CONTACT, None)]
    assert len(sink.tables) == 1


@pytest.mark.asyncio
async def test_ls_room_flag_lists_only_rooms(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "ls -r")

    assert session.lookups == [(DirectoryKind.ROOM, None)]


@pytest.mark.asyncio
async def test_ls_one_failure_does_not_block_the_other(session: FakeSession, sink: RecordingSink) -> None:
    session.failing.add(DirectoryKind.CONTACT)

    await _run(session, sink, "ls")

    assert sink.tables == [(("id", "topic"), [("r-family", "Family Chat"), ("r-work", "Work Stuff")])]
    assert sink.errors == ["Error during ls: contact directory unavailable"]


@pytest.mark.asyncio
async def test_ls_rejects_positional_argument(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "ls contacts")

    assert session.lookups == []
    assert sink.lines[-1] == USAGES["ls"]
    assert sink.lines[0].startswith("Unexpected argument contacts")


@pytest.mark.asyncio
async def test_ls_rejects_unknown_flag(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "ls -x")

    assert session.lookups == []
    assert sink.lines == ["Invalid flag x", USAGES["ls"]]


@pytest.mark.asyncio
async def test_search_requires_pattern(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "search -t room")

    assert session.lookups == []
    assert sink.lines == ["Please provide a search pattern.", USAGES["search"]]


@pytest.mark.asyncio
async def test_search_rejects_second_pattern(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "search ad bo")

    assert session.lookups == []
    assert sink.lines == ["Unknown option or too many patterns: bo", USAGES["search"]]


@pytest.mark.asyncio
async def test_search_room_only(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "search work -t room")

    assert [kind for kind, _ in session.lookups] == [DirectoryKind.ROOM]
    assert sink.tables == [(("id", "topic"), [("r-work", "Work Stuff")])]
    assert WORK in session.rooms


@pytest.mark.asyncio
async def test_help_lists_commands(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "help")

    assert sink.lines == [USAGES["help"]]
    assert "Available commands: send, ls, search, help" in sink.text


@pytest.mark.asyncio
async def test_help_for_known_command(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "help search")

    assert sink.lines == [USAGES["search"]]


@pytest.mark.asyncio
async def test_help_for_unknown_command(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "help dance")

    assert sink.lines == ["Unknown command dance", USAGES["help"]]


@pytest.mark.asyncio
async def test_help_with_flag(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "help --all")

    assert sink.lines == ["Unexpected flag all", USAGES["help"]]


@pytest.mark.asyncio
async def test_unknown_command(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "dance now")

    assert sink.lines == ["Unknown command: dance"]
    assert session.lookups == []


@pytest.mark.asyncio
async def test_empty_line_does_nothing(session: FakeSession, sink: RecordingSink) -> None:
    await _run(session, sink, "   ")

    assert sink.lines == []
