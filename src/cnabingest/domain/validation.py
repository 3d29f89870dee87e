"""Structural validation of raw CNAB input."""

from dataclasses import dataclass, field
from typing import BinaryIO

from cnabingest.domain.entities import IssueKind, ValidationIssue

MAX_FILE_SIZE = 10 * 1024 * 1024
LINE_LENGTH = 80
ASCII_MAX = 127


@dataclass
class ValidationResult:
    """Outcome of a validation pass: valid when no issues were collected."""

    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def failure(cls, issues: list[ValidationIssue]) -> "ValidationResult":
        if not issues:
            raise ValueError("A failed validation needs at least one issue")
        return cls(issues=list(issues))

    def messages(self) -> list[str]:
        return [str(issue) for issue in self.issues]

    def summary(self, separator: str = "; ") -> str:
        """Join every issue into one human-readable message."""
        return separator.join(self.messages())


def _structural(message: str, line_number: int | None = None) -> ValidationIssue:
    return ValidationIssue(kind=IssueKind.STRUCTURAL, message=message, line_number=line_number)


class _LineScan:
    """Length and first non-ASCII byte of the line being read.

    Lines arrive in pieces when they straddle read chunks; only counters are
    kept, never the line's bytes.
    """

    def __init__(self):
        self.length = 0
        self.ends_with_cr = False
        self.non_ascii: tuple[int, int] | None = None

    def feed(self, segment: bytes) -> None:
        if not segment:
            return
        if self.non_ascii is None and not segment.isascii():
            offset = next(i for i, byte in enumerate(segment) if byte > ASCII_MAX)
            self.non_ascii = (self.length + offset + 1, segment[offset])
        self.length += len(segment)
        self.ends_with_cr = segment.endswith(b"\r")


class StructuralValidator:
    """Checks size, line length and character range before any parsing.

    The whole stream is scanned once and every violation is collected, so a
    single pass reports all structural problems of a file.
    """

    def __init__(
        self,
        max_size: int = MAX_FILE_SIZE,
        line_length: int = LINE_LENGTH,
        chunk_size: int = 64 * 1024,
    ):
        self.max_size = max_size
        self.line_length = line_length
        self.chunk_size = chunk_size

    def validate(self, stream: BinaryIO) -> ValidationResult:
        """Validate a binary stream.

        Args:
            stream: Readable binary stream positioned at the start of the file

        Returns:
            ValidationResult with one STRUCTURAL issue per violation
        """
        issues: list[ValidationIssue] = []
        total_size = 0
        line_count = 0
        current = _LineScan()
        oversized = False

        while True:
            # Read at most one byte past the limit; the rest is irrelevant.
            budget = self.max_size + 1 - total_size
            if budget <= 0:
                oversized = True
                break
            chunk = stream.read(min(self.chunk_size, budget))
            if not chunk:
                break
            total_size += len(chunk)
            start = 0
            while (end := chunk.find(b"\n", start)) != -1:
                current.feed(chunk[start:end])
                line_count += 1
                self._check_line(current, line_count, issues)
                current = _LineScan()
                start = end + 1
            current.feed(chunk[start:])

        if oversized or total_size > self.max_size:
            issues.insert(
                0,
                _structural(
                    f"File size exceeds maximum of {self.max_size} bytes "
                    f"(read {total_size} bytes before stopping)"
                ),
            )
            return ValidationResult.failure(issues)

        if current.length:
            line_count += 1
            self._check_line(current, line_count, issues)

        if line_count == 0:
            issues.append(_structural("File contains no lines"))

        if issues:
            return ValidationResult.failure(issues)
        return ValidationResult.success()

    def _check_line(self, scan: _LineScan, line_number: int, issues: list[ValidationIssue]) -> None:
        length = scan.length - 1 if scan.ends_with_cr else scan.length

        if length != self.line_length:
            issues.append(
                _structural(
                    f"Expected {self.line_length} bytes, found {length} bytes",
                    line_number,
                )
            )

        # Only the first non-ASCII byte of a line is reported
        if scan.non_ascii is not None:
            position, byte = scan.non_ascii
            issues.append(
                _structural(
                    f"Non-ASCII byte (code {byte}) at position {position}",
                    line_number,
                )
            )
