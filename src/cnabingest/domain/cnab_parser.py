"""Fixed-width CNAB line parsing."""

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from cnabingest.domain.entities import (
    IssueKind,
    ParsedTransaction,
    StoreIdentity,
    ValidationIssue,
)
from cnabingest.utils.amount_parser import parse_cents
from cnabingest.utils.date_parser import parse_compact_date, parse_compact_time

# Zero-based slices of an 80-byte line
TYPE = slice(0, 1)
DATE = slice(1, 9)
AMOUNT = slice(9, 19)
CUSTOMER_ID = slice(19, 30)
CARD_ID = slice(30, 42)
TIME = slice(42, 48)
OWNER_NAME = slice(48, 62)
STORE_NAME = slice(62, 80)

MIN_TYPE_CODE = 1
MAX_TYPE_CODE = 9

_CARD_PATTERN = re.compile(r"^[A-Za-z0-9*]{12}$")


@dataclass
class ParseResult:
    """Transactions decoded from a file plus every content issue found."""

    transactions: list[ParsedTransaction] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def store_identities(self) -> list[StoreIdentity]:
        """Distinct store identities in order of first appearance."""
        return list(dict.fromkeys(txn.store for txn in self.transactions))


class LineParser:
    """Decodes 80-byte CNAB lines into transactions.

    Field values that break business rules are reported as CONTENT issues;
    nothing is skipped silently. A line made only of spaces is filler and
    produces neither a transaction nor an issue.
    """

    def __init__(self, today: date, type_codes: Optional[Iterable[int]] = None):
        """Initialize line parser.

        Args:
            today: Reference date; transactions dated after it are rejected
            type_codes: Known transaction type codes; when given, codes
                outside this set are rejected
        """
        self.today = today
        self.type_codes = frozenset(type_codes) if type_codes is not None else None

    def parse(self, lines: Iterable[str]) -> ParseResult:
        """Parse every line, accumulating transactions and issues."""
        result = ParseResult()
        for line_number, line in enumerate(lines, start=1):
            transaction, issues = self.parse_line(line, line_number)
            if issues:
                result.issues.extend(issues)
            elif transaction is not None:
                result.transactions.append(transaction)
        return result

    def parse_bytes(self, data: bytes) -> ParseResult:
        """Parse raw file content that already passed structural validation."""
        text = data.decode("ascii")
        lines = text.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return self.parse(line.rstrip("\r") for line in lines)

    def parse_line(
        self, line: str, line_number: int
    ) -> tuple[Optional[ParsedTransaction], list[ValidationIssue]]:
        """Parse a single line.

        Returns:
            (transaction, issues): transaction is None when the line is filler
            or when any issue was found
        """
        if not line.strip():
            return None, []

        issues: list[str] = []

        type_code = self._parse_type(line[TYPE], issues)

        occurred_on = None
        try:
            occurred_on = parse_compact_date(line[DATE])
        except ValueError as e:
            issues.append(str(e))
        else:
            if occurred_on > self.today:
                issues.append(
                    f"Transaction date {occurred_on.isoformat()} is in the future"
                )

        amount = None
        try:
            amount = parse_cents(line[AMOUNT])
        except ValueError as e:
            issues.append(str(e))
        else:
            if amount <= Decimal("0"):
                issues.append(f"Amount must be positive, found {line[AMOUNT]}")

        customer_id = line[CUSTOMER_ID]
        if not (len(customer_id) == 11 and customer_id.isdigit()):
            issues.append(f"Invalid customer id '{customer_id}'. Must be exactly 11 digits")

        card_id = line[CARD_ID]
        if not _CARD_PATTERN.match(card_id):
            issues.append(
                f"Invalid card id '{card_id}'. Must be 12 alphanumeric or '*' characters"
            )

        occurred_at = None
        try:
            occurred_at = parse_compact_time(line[TIME])
        except ValueError as e:
            issues.append(str(e))

        owner_name = line[OWNER_NAME].strip()
        if not owner_name:
            issues.append("Store owner name is required")

        store_name = line[STORE_NAME].strip()
        if not store_name:
            issues.append("Store name is required")

        if issues:
            return None, [
                ValidationIssue(kind=IssueKind.CONTENT, message=message, line_number=line_number)
                for message in issues
            ]

        return (
            ParsedTransaction(
                line_number=line_number,
                type_code=type_code,
                occurred_on=occurred_on,
                occurred_at=occurred_at,
                amount=amount,
                customer_id=customer_id,
                card_id=card_id,
                store=StoreIdentity(name=store_name, owner_name=owner_name),
            ),
            [],
        )

    def _parse_type(self, raw: str, issues: list[str]) -> Optional[int]:
        if not raw.isdigit():
            issues.append(f"Invalid transaction type '{raw}'. Must be a digit")
            return None
        code = int(raw)
        if not MIN_TYPE_CODE <= code <= MAX_TYPE_CODE:
            issues.append(
                f"Invalid transaction type {code}. Must be {MIN_TYPE_CODE}-{MAX_TYPE_CODE}"
            )
        elif self.type_codes is not None and code not in self.type_codes:
            issues.append(f"Transaction type {code} is not defined")
        return code
