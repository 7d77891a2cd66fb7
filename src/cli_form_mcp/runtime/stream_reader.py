"""Background line reader for one child-process output stream.

Each reader owns one daemon thread that blocks on readline() for the
lifetime of its stream and forwards decoded lines through an unbounded,
one-way queue. End of stream (or any read failure) is forwarded as a
single END_OF_STREAM marker, after which the thread exits.
"""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum
from typing import IO, Union

__all__ = [
    "DecodePolicy",
    "EndOfStream",
    "END_OF_STREAM",
    "StreamItem",
    "StreamReader",
]

logger = logging.getLogger(__name__)


class DecodePolicy(str, Enum):
    """What to do with a line that is not valid UTF-8.

    - REPLACE: decode with U+FFFD replacement characters
    - SKIP: log a warning and drop the line
    - STRICT: log an error and treat the stream as ended
    """

    REPLACE = "replace"
    SKIP = "skip"
    STRICT = "strict"

    @classmethod
    def from_string(cls, value: str) -> "DecodePolicy":
        value = value.lower().strip()
        for policy in cls:
            if policy.value == value:
                return policy
        return cls.REPLACE


class EndOfStream:
    """Marker type for the end of a stream."""

    _instance: "EndOfStream | None" = None

    def __new__(cls) -> "EndOfStream":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = EndOfStream()

StreamItem = Union[str, EndOfStream]


class StreamReader:
    """Read one binary stream line by line on a background thread.

    Attributes:
        name: Stream label used in logs and thread names ("stdout"/"stderr")
        policy: Decode policy for invalid UTF-8
    """

    def __init__(
        self,
        stream: IO[bytes],
        name: str,
        policy: DecodePolicy = DecodePolicy.REPLACE,
    ) -> None:
        self.name = name
        self.policy = policy
        self._stream = stream
        self._queue: queue.SimpleQueue[StreamItem] = queue.SimpleQueue()
        self._thread = threading.Thread(
            target=self._run,
            name=f"StreamReader-{name}",
            daemon=True,
        )

    def start(self) -> "StreamReader":
        self._thread.start()
        return self

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def get_nowait(self) -> StreamItem:
        """Next queued item.

        Raises:
            queue.Empty: Nothing is queued right now
        """
        return self._queue.get_nowait()

    def _decode(self, raw: bytes) -> str | None:
        """Decode a line; None means skip, raising means end the stream."""
        if self.policy is DecodePolicy.REPLACE:
            return raw.decode("utf-8", errors="replace")
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            if self.policy is DecodePolicy.SKIP:
                logger.warning(f"Skipping undecodable {self.name} line: {e}")
                return None
            raise

    def _run(self) -> None:
        try:
            while True:
                raw = self._stream.readline()
                if not raw:
                    break
                line = self._decode(raw)
                if line is not None:
                    self._queue.put(line)
        except UnicodeDecodeError as e:
            logger.error(f"Undecodable {self.name} line, closing stream: {e}")
        except (ValueError, OSError) as e:
            # Closed or broken pipe: the stream simply ends
            logger.debug(f"{self.name} reader stopped: {e}")
        finally:
            self._queue.put(END_OF_STREAM)
            try:
                self._stream.close()
            except (ValueError, OSError) as e:
                logger.debug(f"Error closing {self.name}: {e}")
