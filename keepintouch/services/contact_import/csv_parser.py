"""
Generic CSV contact parser.

Line 0 is the header. Each data row is mapped onto a candidate through
the ordered matchers in field_matching; rows without a resolvable name
are dropped.
"""

from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.contact_domain import ImportedContactCandidate
from keepintouch.services.contact_import.field_matching import (
    CsvRecord,
    map_record_to_candidate,
)
from keepintouch.services.contact_import.tokenizer import parse_csv_line, split_lines

logger = get_logger(__name__)


def parse_generic_csv(content: str, log=None) -> list[ImportedContactCandidate]:
    log = log or logger

    lines = split_lines(content)
    if len(lines) <= 1:
        log.info("CSV file has no data rows", line_count=len(lines))
        return []

    header = parse_csv_line(lines[0])
    log.debug("CSV header parsed", column_count=len(header))

    candidates: list[ImportedContactCandidate] = []
    data_rows = 0

    for row_number, line in enumerate(lines[1:], start=1):
        if not line.strip():
            continue
        data_rows += 1

        record = CsvRecord.from_values(header, parse_csv_line(line))
        candidate = map_record_to_candidate(record)

        if not candidate.full_name:
            log.debug("Skipping CSV row without a name", row=row_number)
            continue

        candidates.append(candidate)

    log.info("CSV contacts parsed", accepted=len(candidates), data_rows=data_rows)
    return candidates
