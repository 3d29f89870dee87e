"""Tests for structural file validation."""

import io

from cnabingest.domain.entities import IssueKind
from cnabingest.domain.validation import StructuralValidator, ValidationResult

from conftest import make_file, make_line


def validate(content: bytes, **kwargs) -> ValidationResult:
    return StructuralValidator(**kwargs).validate(io.BytesIO(content))


def test_well_formed_file_is_valid():
    result = validate(make_file(make_line(), make_line(type_code="1")))

    assert result.is_valid
    assert result.issues == []


def test_crlf_line_endings_are_accepted():
    content = (make_line() + "\r\n" + make_line() + "\r\n").encode("ascii")

    assert validate(content).is_valid


def test_last_line_without_newline_is_checked():
    content = (make_line() + "\n" + make_line()[:70]).encode("ascii")

    result = validate(content)

    assert not result.is_valid
    assert result.messages() == ["Line 2: Expected 80 bytes, found 70 bytes"]


def test_wrong_line_length_is_reported_per_line():
    content = make_file(make_line(), make_line()[:79], make_line() + "X")

    result = validate(content)

    assert result.messages() == [
        "Line 2: Expected 80 bytes, found 79 bytes",
        "Line 3: Expected 80 bytes, found 81 bytes",
    ]
    assert all(issue.kind == IssueKind.STRUCTURAL for issue in result.issues)


def test_only_first_non_ascii_byte_of_a_line_is_reported():
    line = bytearray(make_line().encode("ascii"))
    line[49] = 0xE9
    line[60] = 0xE7
    content = bytes(line) + b"\n"

    result = validate(content)

    assert result.messages() == ["Line 1: Non-ASCII byte (code 233) at position 50"]


def test_empty_file_is_invalid():
    result = validate(b"")

    assert not result.is_valid
    assert result.messages() == ["File contains no lines"]


def test_oversized_file_fails_with_size_issue_first():
    content = make_file(make_line(), make_line(), make_line())

    result = validate(content, max_size=200)

    assert not result.is_valid
    assert result.issues[0].message.startswith("File size exceeds maximum of 200 bytes")


def test_oversized_stream_is_not_read_past_limit():
    class CountingStream(io.BytesIO):
        def __init__(self, data):
            super().__init__(data)
            self.bytes_read = 0

        def read(self, size=-1):
            chunk = super().read(size)
            self.bytes_read += len(chunk)
            return chunk

    stream = CountingStream(b"A" * 10_000)
    StructuralValidator(max_size=1000, chunk_size=256).validate(stream)

    assert stream.bytes_read == 1001


def test_summary_joins_issues():
    content = make_file(make_line()[:10], make_line()[:20])

    summary = validate(content).summary()

    assert summary == (
        "Line 1: Expected 80 bytes, found 10 bytes; Line 2: Expected 80 bytes, found 20 bytes"
    )


def test_lines_straddling_small_chunks_are_measured_whole():
    line = bytearray(make_line().encode("ascii"))
    line[49] = 0xE9
    content = (
        make_line().encode("ascii") + b"\r\n"
        + bytes(line) + b"\r\n"
        + make_line().encode("ascii")[:75] + b"\n"
    )

    result = validate(content, chunk_size=7)

    assert result.messages() == [
        "Line 2: Non-ASCII byte (code 233) at position 50",
        "Line 3: Expected 80 bytes, found 75 bytes",
    ]


def test_carriage_return_split_from_newline_by_chunk_boundary():
    content = (make_line() + "\r\n" + make_line() + "\r\n").encode("ascii")

    # 81 puts the boundary between the first line's \r and \n
    assert validate(content, chunk_size=81).is_valid


def test_long_unterminated_line_is_counted_without_newlines():
    content = b"A" * 5000

    result = validate(content, chunk_size=64)

    assert result.messages() == ["Line 1: Expected 80 bytes, found 5000 bytes"]
