"""Bounded-memory file reads.

``head`` and ``tail`` read fixed-size chunks and stop as soon as enough lines
are collected, so their memory use does not depend on file size. Lines are
split on raw bytes and decoded afterwards, which keeps multi-byte characters
that straddle a chunk boundary intact.

No locking is done: a concurrent writer's changes are seen in whatever state
the file is in at read time.
"""

import logging
import os

from sandbox_fs.config.constants import READ_CHUNK_SIZE
from sandbox_fs.paths import ResolvedPath

logger = logging.getLogger(__name__)


class StreamingReader:
    """Read whole files, or just their first or last lines.

    Example:
        >>> reader = StreamingReader()
        >>> reader.tail(validator.resolve("server.log"), 2)
        'second to last line\\nlast line'
    """

    def __init__(self, chunk_size: int = READ_CHUNK_SIZE, encoding: str = "utf-8"):
        """Initialize reader.

        Args:
            chunk_size: Bytes read per chunk (default: 1 KiB)
            encoding: Text encoding; undecodable bytes are replaced
        """
        self.chunk_size = chunk_size
        self.encoding = encoding

    def read_text(self, path: ResolvedPath) -> str:
        """Read the whole file as text, line endings untouched."""
        with open(path, "r", encoding=self.encoding, errors="replace", newline="") as f:
            return f.read()

    def tail(self, path: ResolvedPath, num_lines: int) -> str:
        """Return the last ``num_lines`` lines, joined with newlines.

        Chunks are read backward from the end. The first line of each chunk may
        be incomplete, so it is carried over and prefixed to the next (earlier)
        chunk. Reading stops once enough lines are held or the start of the
        file is reached.
        """
        if num_lines <= 0:
            return ""

        lines: list[bytes] = []
        with open(path, "rb") as f:
            position = f.seek(0, os.SEEK_END)
            at_end = True
            carry = b""

            while position > 0 and len(lines) < num_lines:
                size = min(self.chunk_size, position)
                position -= size
                f.seek(position)
                data = f.read(size)
                if not data:
                    break

                pieces = (data + carry).split(b"\n")
                if at_end:
                    # A trailing newline terminates the last line, it does not start a new one
                    if pieces[-1] == b"":
                        pieces.pop()
                    at_end = False

                carry = pieces.pop(0) if position > 0 and pieces else b""

                for piece in reversed(pieces):
                    if len(lines) >= num_lines:
                        break
                    lines.append(piece)

        lines.reverse()
        return self._join(lines)

    def head(self, path: ResolvedPath, num_lines: int) -> str:
        """Return the first ``num_lines`` lines, joined with newlines.

        Chunks are read forward and split on the last newline seen so far. If
        the end of the file is reached with a partial line left over, it is
        included as the final line.
        """
        if num_lines <= 0:
            return ""

        lines: list[bytes] = []
        buffer = b""
        with open(path, "rb") as f:
            while len(lines) < num_lines:
                data = f.read(self.chunk_size)
                if not data:
                    break
                buffer += data

                newline_index = buffer.rfind(b"\n")
                if newline_index == -1:
                    continue

                complete, buffer = buffer[:newline_index], buffer[newline_index + 1 :]
                for line in complete.split(b"\n"):
                    lines.append(line)
                    if len(lines) >= num_lines:
                        break

        if buffer and len(lines) < num_lines:
            lines.append(buffer)

        return self._join(lines)

    def _join(self, lines: list[bytes]) -> str:
        decoded = []
        for line in lines:
            if line.endswith(b"\r"):
                line = line[:-1]
            decoded.append(line.decode(self.encoding, errors="replace"))
        return "\n".join(decoded)
