"""
LinkedIn connections export parser.

LinkedIn prepends a few metadata lines before the real header, so the
header row is located by counting known column names. Data rows are then
mapped positionally.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.contact_domain import ImportedContactCandidate
from keepintouch.services.contact_import.tokenizer import parse_csv_line, split_lines

logger = get_logger(__name__)

LINKEDIN_MARKERS = (
    "First Name",
    "Last Name",
    "Email Address",
    "Company",
    "Position",
    "Profile URL",
)
HEADER_SCAN_LIMIT = 10
MIN_MARKER_MATCHES = 3


@dataclass(frozen=True, slots=True)
class LinkedInHeader:
    row_index: int  # index into the file's lines, blank lines included
    columns: list[str]

    def index_of(self, *names: str) -> int | None:
        """Column index of the first name present."""
        for name in names:
            if name in self.columns:
                return self.columns.index(name)
        return None


def count_markers(columns: Sequence[str]) -> int:
    return sum(1 for marker in LINKEDIN_MARKERS if marker in columns)


def find_linkedin_header(lines: Sequence[str]) -> LinkedInHeader | None:
    """First of the leading non-empty lines carrying enough marker columns."""
    scanned = 0
    for index, line in enumerate(lines):
        if not line.strip():
            continue
        if scanned >= HEADER_SCAN_LIMIT:
            break
        scanned += 1

        columns = parse_csv_line(line)
        if count_markers(columns) >= MIN_MARKER_MATCHES:
            return LinkedInHeader(row_index=index, columns=columns)
    return None


def _value_at(values: Sequence[str], index: int | None) -> str | None:
    if index is None or index >= len(values):
        return None
    return values[index].strip() or None


def parse_linkedin_csv(content: str, log=None) -> list[ImportedContactCandidate]:
    log = log or logger

    lines = split_lines(content)
    header = find_linkedin_header(lines)
    if header is None:
        log.warning("LinkedIn header row not found", scan_limit=HEADER_SCAN_LIMIT)
        return []

    first_idx = header.index_of("First Name")
    last_idx = header.index_of("Last Name")
    if first_idx is None or last_idx is None:
        log.warning(
            "LinkedIn header is missing name columns",
            header_row_index=header.row_index,
        )
        return []

    email_idx = header.index_of("Email Address")
    company_idx = header.index_of("Company")
    position_idx = header.index_of("Position")
    url_idx = header.index_of("Profile URL", "URL")
    min_span = max(first_idx, last_idx) + 1

    log.debug("LinkedIn header located", header_row_index=header.row_index)

    candidates: list[ImportedContactCandidate] = []
    for row_number, line in enumerate(lines[header.row_index + 1 :], start=header.row_index + 1):
        if not line.strip():
            continue

        values = parse_csv_line(line)
        if len(values) < min_span:
            log.debug("Skipping short LinkedIn row", row=row_number)
            continue

        first_name = values[first_idx].strip()
        last_name = values[last_idx].strip()
        if not first_name and not last_name:
            log.debug("Skipping LinkedIn row without a name", row=row_number)
            continue

        candidates.append(
            ImportedContactCandidate(
                full_name=f"{first_name} {last_name}".strip(),
                email=_value_at(values, email_idx),
                company=_value_at(values, company_idx),
                job_title=_value_at(values, position_idx),
                linkedin_url=_value_at(values, url_idx),
            )
        )

    log.info("LinkedIn contacts parsed", accepted=len(candidates))
    return candidates
