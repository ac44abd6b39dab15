"""Tests for the SSE chat stream parser."""

from nutriscan.domain.chat import ChatMessage, ChatRole
from nutriscan.services.chat_stream import ChatStreamParser, Transcript
from tests.conftest import sse_frame


def test_deltas_update_a_single_assistant_entry() -> None:
    transcript = Transcript([ChatMessage(ChatRole.USER, "Hello")])
    parser = ChatStreamParser(transcript)

    parser.feed(sse_frame("Hi"))
    parser.feed(sse_frame(" there") + b"data: [DONE]\n\n")

    assert parser.close() == "Hi there"
    assert parser.done
    assert transcript.messages == [
        ChatMessage(ChatRole.USER, "Hello"),
        ChatMessage(ChatRole.ASSISTANT, "Hi there"),
    ]


def test_frame_split_across_chunks() -> None:
    frame = sse_frame("split")
    parser = ChatStreamParser()

    assert parser.feed(frame[:17]) == []
    assert parser.feed(frame[17:]) == ["split"]
    assert parser.content == "split"


def test_multibyte_character_split_across_chunks() -> None:
    frame = 'data: {"choices":[{"delta":{"content":"café"}}]}\n'.encode()
    split_at = frame.index("é".encode()) + 1
    parser = ChatStreamParser()

    parser.feed(frame[:split_at])
    parser.feed(frame[split_at:])

    assert parser.content == "café"


def test_carriage_returns_comments_and_other_fields_are_ignored() -> None:
    parser = ChatStreamParser()
    chunk = (
        b": keep-alive\r\n"
        b"event: message\r\n"
        b"\r\n"
        b'data: {"choices":[{"delta":{"role":"assistant"}}]}\r\n'
        b'data: {"choices":[{"delta":{"content":"ok"}}]}\r\n'
    )

    assert parser.feed(chunk) == ["ok"]
    assert parser.content == "ok"
    assert len(parser.transcript.messages) == 1


def test_done_stops_processing_remaining_frames() -> None:
    parser = ChatStreamParser()

    parser.feed(sse_frame("A") + b"data: [DONE]\n" + sse_frame("B"))
    parser.feed(sse_frame("C"))

    assert parser.close() == "A"


def test_malformed_line_waits_for_more_data() -> None:
    parser = ChatStreamParser()

    assert parser.feed(b'data: {"choices":[{"delta":\n') == []
    assert parser.content == ""


def test_close_flushes_unterminated_final_line() -> None:
    deltas: list[str] = []
    parser = ChatStreamParser(on_delta=deltas.append)

    parser.feed(b'data: {"choices":[{"delta":{"content":"tail"}}]}')

    assert parser.content == ""
    assert parser.close() == "tail"
    assert deltas == ["tail"]
    assert parser.feed(sse_frame("late")) == []
