"""
Import entry point: decode an uploaded file, pick the parser from the
filename and content, and wrap the result for the review screen.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import PurePath

from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.contact_domain import ImportedContactCandidate
from keepintouch.services.contact_import.csv_parser import parse_generic_csv
from keepintouch.services.contact_import.linkedin_parser import (
    find_linkedin_header,
    parse_linkedin_csv,
)
from keepintouch.services.contact_import.tokenizer import split_lines
from keepintouch.services.contact_import.vcard_parser import parse_vcard_text

logger = get_logger(__name__)

LINKEDIN_SNIFF_CHARS = 3000
VCARD_SUFFIXES = (".vcf", ".vcard")
CSV_SUFFIXES = (".csv",)

# Columns only LinkedIn's own export carries
LINKEDIN_ONLY_COLUMNS = ("Profile URL", "URL", "Connected On")

GENERIC_FAILURE_MESSAGE = "Failed to process file"
LINKEDIN_EMPTY_MESSAGE = (
    "No contacts found. Make sure this is a LinkedIn connections export whose "
    "header row includes the First Name and Last Name columns."
)
CSV_EMPTY_MESSAGE = "No contacts with a name were found in this file."
VCARD_EMPTY_MESSAGE = "No contacts with both a name and a phone number were found in this file."


class ImportFormat(StrEnum):
    CSV = "csv"
    LINKEDIN = "linkedin"
    VCARD = "vcard"


class ContactImportError(Exception):
    """The uploaded file could not be read at all."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE, filename: str | None = None):
        self.message = message
        self.filename = filename
        super().__init__(message)


class UnsupportedImportFormatError(ContactImportError):
    """The file extension maps to no parser."""


@dataclass(slots=True)
class ImportResult:
    format: ImportFormat
    candidates: list[ImportedContactCandidate] = field(default_factory=list)
    message: str | None = None

    @property
    def total(self) -> int:
        return len(self.candidates)


_EMPTY_MESSAGES = {
    ImportFormat.CSV: CSV_EMPTY_MESSAGE,
    ImportFormat.LINKEDIN: LINKEDIN_EMPTY_MESSAGE,
    ImportFormat.VCARD: VCARD_EMPTY_MESSAGE,
}

_PARSERS = {
    ImportFormat.CSV: parse_generic_csv,
    ImportFormat.LINKEDIN: parse_linkedin_csv,
    ImportFormat.VCARD: parse_vcard_text,
}


def decode_upload(data: bytes, filename: str | None = None) -> str:
    """UTF-8 text of an upload; a leading byte-order mark is dropped."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.warning("Upload is not valid UTF-8", filename=filename, position=e.start)
        raise ContactImportError(filename=filename) from e


def looks_like_linkedin_export(text: str) -> bool:
    """
    A LinkedIn export has a marker-heavy header within the first lines and
    either metadata rows above it or a LinkedIn-only column.
    """
    header = find_linkedin_header(split_lines(text[:LINKEDIN_SNIFF_CHARS]))
    if header is None:
        return False
    if header.row_index > 0:
        return True
    return any(column in header.columns for column in LINKEDIN_ONLY_COLUMNS)


def detect_import_format(filename: str, text: str) -> ImportFormat:
    suffix = PurePath(filename).suffix.lower()

    if suffix in VCARD_SUFFIXES:
        return ImportFormat.VCARD

    if suffix in CSV_SUFFIXES:
        if looks_like_linkedin_export(text):
            return ImportFormat.LINKEDIN
        return ImportFormat.CSV

    raise UnsupportedImportFormatError(
        f"Unsupported file type '{suffix or filename}'. Upload a .csv or .vcf file.",
        filename=filename,
    )


def parse_contact_file(filename: str, data: bytes, log=None) -> ImportResult:
    """
    Parse an uploaded contacts file into reviewable candidates.

    Raises:
        UnsupportedImportFormatError: Extension is not .csv, .vcf or .vcard
        ContactImportError: File content is unreadable
    """
    log = log or logger

    text = decode_upload(data, filename)
    import_format = detect_import_format(filename, text)
    bound = log.bind(import_format=import_format.value)

    candidates = _PARSERS[import_format](text, log=bound)
    message = None if candidates else _EMPTY_MESSAGES[import_format]

    bound.info("Contact file parsed", candidates=len(candidates))
    return ImportResult(format=import_format, candidates=candidates, message=message)
