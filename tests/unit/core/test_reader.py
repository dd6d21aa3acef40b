"""Unit tests for sandbox_fs.reader (whole-file, head and tail reads)."""

import pytest

from sandbox_fs.reader import StreamingReader


def _lines(count: int, width: int = 0) -> list[str]:
    return [f"line {i:04d} " + "x" * width for i in range(count)]


@pytest.fixture
def small_chunks():
    """Reader with tiny chunks so every test crosses chunk boundaries."""
    return StreamingReader(chunk_size=16)


@pytest.mark.unit
class TestReadText:
    def test_reads_whole_file(self, validator, workspace):
        (workspace / "a.txt").write_text("foo\nbar\n")

        assert StreamingReader().read_text(validator.resolve(str(workspace / "a.txt"))) == "foo\nbar\n"

    def test_keeps_crlf(self, validator, workspace):
        (workspace / "a.txt").write_bytes(b"foo\r\nbar\r\n")

        text = StreamingReader().read_text(validator.resolve(str(workspace / "a.txt")))

        assert text == "foo\r\nbar\r\n"

    def test_invalid_utf8_is_replaced(self, validator, workspace):
        (workspace / "bin").write_bytes(b"ok\xff\n")

        text = StreamingReader().read_text(validator.resolve(str(workspace / "bin")))

        assert text == "ok�\n"


@pytest.mark.unit
class TestTail:
    def test_last_lines(self, validator, workspace):
        (workspace / "a.txt").write_text("one\ntwo\nthree\n")

        assert StreamingReader().tail(validator.resolve(str(workspace / "a.txt")), 2) == "two\nthree"

    def test_matches_read_beyond_chunk_size(self, small_chunks, validator, workspace):
        lines = _lines(200, width=7)
        (workspace / "big.txt").write_text("\n".join(lines) + "\n")
        target = validator.resolve(str(workspace / "big.txt"))

        assert small_chunks.tail(target, 5) == "\n".join(lines[-5:])
        assert small_chunks.tail(target, 150) == "\n".join(lines[-150:])

    def test_default_chunk_size_boundary(self, validator, workspace):
        lines = _lines(500, width=20)
        (workspace / "big.txt").write_text("\n".join(lines) + "\n")

        result = StreamingReader().tail(validator.resolve(str(workspace / "big.txt")), 100)

        assert result == "\n".join(lines[-100:])

    def test_without_trailing_newline(self, small_chunks, validator, workspace):
        lines = _lines(40)
        (workspace / "a.txt").write_text("\n".join(lines))

        assert small_chunks.tail(validator.resolve(str(workspace / "a.txt")), 3) == "\n".join(
            lines[-3:]
        )

    def test_more_lines_than_file(self, small_chunks, validator, workspace):
        (workspace / "a.txt").write_text("one\ntwo\n")

        assert small_chunks.tail(validator.resolve(str(workspace / "a.txt")), 10) == "one\ntwo"

    def test_zero_lines(self, validator, workspace):
        (workspace / "a.txt").write_text("one\n")

        assert StreamingReader().tail(validator.resolve(str(workspace / "a.txt")), 0) == ""

    def test_empty_file(self, validator, workspace):
        (workspace / "empty.txt").write_text("")

        assert StreamingReader().tail(validator.resolve(str(workspace / "empty.txt")), 3) == ""

    def test_crlf_lines(self, small_chunks, validator, workspace):
        (workspace / "a.txt").write_bytes(b"one\r\ntwo\r\nthree\r\n")

        assert small_chunks.tail(validator.resolve(str(workspace / "a.txt")), 2) == "two\nthree"

    def test_multibyte_across_chunks(self, small_chunks, validator, workspace):
        lines = ["ééééééééééé", "ööööööööööö", "✓✓✓✓✓✓✓"]
        (workspace / "u.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")

        assert small_chunks.tail(validator.resolve(str(workspace / "u.txt")), 3) == "\n".join(lines)


@pytest.mark.unit
class TestHead:
    def test_first_lines(self, validator, workspace):
        (workspace / "a.txt").write_text("one\ntwo\nthree\n")

        assert StreamingReader().head(validator.resolve(str(workspace / "a.txt")), 2) == "one\ntwo"

    def test_matches_read_beyond_chunk_size(self, small_chunks, validator, workspace):
        lines = _lines(200, width=7)
        (workspace / "big.txt").write_text("\n".join(lines) + "\n")
        target = validator.resolve(str(workspace / "big.txt"))

        assert small_chunks.head(target, 5) == "\n".join(lines[:5])
        assert small_chunks.head(target, 150) == "\n".join(lines[:150])

    def test_without_trailing_newline(self, small_chunks, validator, workspace):
        (workspace / "a.txt").write_text("one\ntwo\nthree")

        assert small_chunks.head(validator.resolve(str(workspace / "a.txt")), 10) == "one\ntwo\nthree"

    def test_long_line_larger_than_chunk(self, small_chunks, validator, workspace):
        long_line = "y" * 100
        (workspace / "a.txt").write_text(f"{long_line}\nsecond\n")

        assert small_chunks.head(validator.resolve(str(workspace / "a.txt")), 1) == long_line

    def test_zero_lines(self, validator, workspace):
        (workspace / "a.txt").write_text("one\n")

        assert StreamingReader().head(validator.resolve(str(workspace / "a.txt")), 0) == ""
