"""Fixed-width statutory movements file (affiliation movements).

One header (``H``), one detail (``D``) per emitted movement and one
trailer (``T``). Every record is 120 characters followed by CRLF.

Header   H | employer registration 11 | RFC 13 | legal name 50 |
         file date YYYYMMDD 8 | filler 37
Detail   D | employer registration 11 | NSS 11 | CURP 18 | name 50 |
         movement code 2 | movement date DDMMYYYY 8 | salary cents 7 |
         termination cause 1 | filler 11
Trailer  T | employer registration 11 | detail count 6 | registrations 6 |
         terminations 6 | salary changes 6 | rehires 6 |
         salary total cents 12 | filler 66
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable

from statutory_payroll.errors import EncodingFieldOverflow, MissingRegistration
from statutory_payroll.statutory.fields import (
    FieldKind,
    FieldSpec,
    RecordLayout,
    normalize_numeric,
    normalize_text,
)

logger = logging.getLogger(__name__)

RECORD_LENGTH = 120
LINE_ENDING = "\r\n"
NSS_LENGTH = 11
NATIONAL_ID_LENGTH = 18


class MovementType(str, Enum):
    REGISTRATION = "registration"
    TERMINATION = "termination"
    SALARY_CHANGE = "salary_change"
    REHIRE = "rehire"


MOVEMENT_CODES: dict[MovementType, str] = {
    MovementType.REGISTRATION: "08",
    MovementType.TERMINATION: "02",
    MovementType.SALARY_CHANGE: "07",
    MovementType.REHIRE: "09",
}

SALARY_MOVEMENTS = {MovementType.REGISTRATION, MovementType.SALARY_CHANGE, MovementType.REHIRE}


HEADER_LAYOUT = RecordLayout(
    "H",
    [
        FieldSpec("record_type", 1),
        FieldSpec("employer_registration", 11),
        FieldSpec("tax_id", 13),
        FieldSpec("legal_name", 50),
        FieldSpec("file_date", 8, FieldKind.NUMERIC),
        FieldSpec("filler", 37, FieldKind.FILLER),
    ],
    RECORD_LENGTH,
)

DETAIL_LAYOUT = RecordLayout(
    "D",
    [
        FieldSpec("record_type", 1),
        FieldSpec("employer_registration", 11),
        FieldSpec("social_security_number", 11, FieldKind.NUMERIC),
        FieldSpec("national_id", 18),
        FieldSpec("full_name", 50),
        FieldSpec("movement_code", 2, FieldKind.NUMERIC),
        FieldSpec("movement_date", 8, FieldKind.NUMERIC),
        FieldSpec("base_salary", 7, FieldKind.NUMERIC),
        FieldSpec("termination_cause", 1),
        FieldSpec("filler", 11, FieldKind.FILLER),
    ],
    RECORD_LENGTH,
)

SALARY_FIELD = DETAIL_LAYOUT.field("base_salary")

TRAILER_LAYOUT = RecordLayout(
    "T",
    [
        FieldSpec("record_type", 1),
        FieldSpec("employer_registration", 11),
        FieldSpec("detail_count", 6, FieldKind.NUMERIC),
        FieldSpec("registrations", 6, FieldKind.NUMERIC),
        FieldSpec("terminations", 6, FieldKind.NUMERIC),
        FieldSpec("salary_changes", 6, FieldKind.NUMERIC),
        FieldSpec("rehires", 6, FieldKind.NUMERIC),
        FieldSpec("salary_total", 12, FieldKind.NUMERIC),
        FieldSpec("filler", 66, FieldKind.FILLER),
    ],
    RECORD_LENGTH,
)


@dataclass(frozen=True)
class CompanyRegistration:
    employer_registration: str | None  # Registro patronal
    tax_id: str | None  # RFC
    legal_name: str | None


@dataclass(frozen=True)
class StatutoryMovementRecord:
    """A reportable employment event for one employee."""

    employee_id: str
    national_id: str | None  # CURP
    social_security_number: str | None  # NSS
    full_name: str | None
    movement_type: MovementType
    movement_date: date | None
    base_salary: Decimal | None = None  # Daily, for registration/salary change/rehire
    termination_cause: str | None = None  # For termination

    def missing_fields(self) -> list[str]:
        """Required fields that are absent or unusable.

        NSS and CURP are checked after normalization against their fixed
        shapes, so placeholders such as ``N/A`` are reported as missing.
        """
        missing = []
        curp = normalize_text(self.national_id or "")
        if len(curp) != NATIONAL_ID_LENGTH or not curp.isalnum():
            missing.append("national_id")
        if len(normalize_numeric(self.social_security_number or "")) != NSS_LENGTH:
            missing.append("social_security_number")
        if not self.full_name or not normalize_text(self.full_name):
            missing.append("full_name")
        if self.movement_date is None:
            missing.append("movement_date")
        if self.movement_type in SALARY_MOVEMENTS:
            if self.base_salary is None or not self.base_salary.is_finite() or self.base_salary < 0:
                missing.append("base_salary")
        elif not self.termination_cause:
            missing.append("termination_cause")
        return missing


@dataclass(frozen=True)
class SkippedRecord:
    index: int
    employee_id: str
    missing: list[str]


@dataclass
class EncodedFile:
    """Encoder output. ``text`` is the exact file content."""

    text: str
    detail_count: int
    movement_counts: dict[MovementType, int]
    salary_total_cents: int
    skipped: list[SkippedRecord] = field(default_factory=list)
    overflows: list[EncodingFieldOverflow] = field(default_factory=list)

    @property
    def lines(self) -> list[str]:
        return self.text.split(LINE_ENDING)[:-1]

    def to_bytes(self) -> bytes:
        return self.text.encode("ascii")


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StatutoryFileEncoder:
    """Serializes movement records in input order.

    Records missing a required field are logged, skipped and left out of the
    trailer counts. Over-width values are truncated and reported.
    """

    def encode(
        self,
        company: CompanyRegistration,
        records: Iterable[StatutoryMovementRecord],
        file_date: date,
    ) -> EncodedFile:
        """Build the file.

        Raises:
            MissingRegistration: If the company lacks registration, RFC or name
        """
        missing = [
            name
            for name in ("employer_registration", "tax_id", "legal_name")
            if not getattr(company, name)
        ]
        if missing:
            raise MissingRegistration("Company", missing)

        lines: list[str] = []
        overflows: list[EncodingFieldOverflow] = []
        skipped: list[SkippedRecord] = []
        counts = {movement: 0 for movement in MovementType}
        salary_total = 0

        header, header_overflows = HEADER_LAYOUT.render(
            {
                "employer_registration": company.employer_registration,
                "tax_id": company.tax_id,
                "legal_name": company.legal_name,
                "file_date": file_date.strftime("%Y%m%d"),
            }
        )
        lines.append(header)
        overflows.extend(header_overflows)

        for index, record in enumerate(records):
            missing_fields = record.missing_fields()
            if missing_fields:
                logger.warning(
                    "Skipping movement %d for employee %s: missing %s",
                    index,
                    record.employee_id,
                    ", ".join(missing_fields),
                )
                skipped.append(SkippedRecord(index, record.employee_id, missing_fields))
                continue

            salary_cents = None
            if record.movement_type in SALARY_MOVEMENTS:
                salary_cents = to_cents(record.base_salary)
                # The trailer total must add up from the detail records as written
                rendered_salary, _ = SALARY_FIELD.render(salary_cents)
                salary_total += int(rendered_salary)

            detail, detail_overflows = DETAIL_LAYOUT.render(
                {
                    "employer_registration": company.employer_registration,
                    "social_security_number": record.social_security_number,
                    "national_id": record.national_id,
                    "full_name": record.full_name,
                    "movement_code": MOVEMENT_CODES[record.movement_type],
                    "movement_date": record.movement_date.strftime("%d%m%Y"),
                    "base_salary": salary_cents,
                    "termination_cause": record.termination_cause,
                }
            )
            lines.append(detail)
            overflows.extend(detail_overflows)
            counts[record.movement_type] += 1

        detail_count = len(lines) - 1
        trailer, trailer_overflows = TRAILER_LAYOUT.render(
            {
                "employer_registration": company.employer_registration,
                "detail_count": detail_count,
                "registrations": counts[MovementType.REGISTRATION],
                "terminations": counts[MovementType.TERMINATION],
                "salary_changes": counts[MovementType.SALARY_CHANGE],
                "rehires": counts[MovementType.REHIRE],
                "salary_total": salary_total,
            }
        )
        lines.append(trailer)
        overflows.extend(trailer_overflows)

        for overflow in overflows:
            logger.warning("%s", overflow)

        return EncodedFile(
            text="".join(line + LINE_ENDING for line in lines),
            detail_count=detail_count,
            movement_counts=counts,
            salary_total_cents=salary_total,
            skipped=skipped,
            overflows=overflows,
        )
