"""Incremental parser for chat-completion server-sent events."""

import codecs
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from nutriscan.domain.chat import ChatMessage, ChatRole

_logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


@dataclass
class Transcript:
    """Ordered list of chat messages."""

    messages: list[ChatMessage] = field(default_factory=list)

    def append(self, role: ChatRole, content: str) -> int:
        self.messages.append(ChatMessage(role=role, content=content))
        return len(self.messages) - 1

    def replace(self, index: int, content: str) -> None:
        current = self.messages[index]
        self.messages[index] = ChatMessage(role=current.role, content=content)

    def to_payload(self) -> list[dict[str, str]]:
        return [message.to_payload() for message in self.messages]


class ChatStreamParser:
    """Rebuild assistant text from a stream of SSE ``data:`` frames.

    Each delta replaces the trailing assistant entry it created in the
    transcript rather than appending a new one. A line that fails JSON
    parsing is pushed back onto the buffer and retried once more bytes
    arrive.
    """

    def __init__(
        self,
        transcript: Transcript | None = None,
        on_delta: Callable[[str], None] | None = None,
    ) -> None:
        self.transcript = transcript if transcript is not None else Transcript()
        self.content = ""
        self.done = False
        self.closed = False
        self._on_delta = on_delta
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._entry_index: int | None = None

    def feed(self, chunk: bytes) -> list[str]:
        """Consume a chunk of bytes and return the deltas it completed."""
        if self.done or self.closed:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def close(self) -> str:
        """Finish the stream and return the final assistant content."""
        if not self.closed:
            if not self.done:
                self._buffer += self._decoder.decode(b"", final=True)
                if self._buffer.strip():
                    self._buffer += "\n"
                    self._drain()
            self.closed = True
        return self.content

    def _drain(self) -> list[str]:
        deltas: list[str] = []
        while not self.done:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break
            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1 :]
            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(":") or not line.strip():
                continue
            if not line.startswith(DATA_PREFIX):
                continue
            payload = line[len(DATA_PREFIX) :].strip()
            if payload == DONE_SENTINEL:
                self.done = True
                break
            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                self._buffer = line + "\n" + self._buffer
                _logger.debug("Incomplete SSE frame; waiting for more data")
                break
            delta = _delta_content(parsed)
            if delta:
                self._apply(delta)
                deltas.append(delta)
        return deltas

    def _apply(self, delta: str) -> None:
        self.content += delta
        if self._entry_index is None:
            self._entry_index = self.transcript.append(ChatRole.ASSISTANT, self.content)
        else:
            self.transcript.replace(self._entry_index, self.content)
        if self._on_delta is not None:
            self._on_delta(delta)


def _delta_content(parsed: object) -> str | None:
    """Return ``choices[0].delta.content`` when present."""
    if not isinstance(parsed, dict):
        return None
    choices = parsed.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None
