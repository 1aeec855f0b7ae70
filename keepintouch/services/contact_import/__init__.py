"""
Contact import parsers.

Generic CSV, LinkedIn connections CSV and vCard files are parsed into
ImportedContactCandidate lists for the import review screen.
"""

from keepintouch.services.contact_import.csv_parser import parse_generic_csv
from keepintouch.services.contact_import.detection import (
    ContactImportError,
    ImportFormat,
    ImportResult,
    UnsupportedImportFormatError,
    decode_upload,
    detect_import_format,
    parse_contact_file,
)
from keepintouch.services.contact_import.linkedin_parser import (
    LinkedInHeader,
    find_linkedin_header,
    parse_linkedin_csv,
)
from keepintouch.services.contact_import.vcard_parser import (
    ParsedField,
    map_vcard_to_candidate,
    parse_vcard_fields,
    parse_vcard_text,
)

__all__ = [
    "ContactImportError",
    "ImportFormat",
    "ImportResult",
    "LinkedInHeader",
    "ParsedField",
    "UnsupportedImportFormatError",
    "decode_upload",
    "detect_import_format",
    "find_linkedin_header",
    "map_vcard_to_candidate",
    "parse_contact_file",
    "parse_generic_csv",
    "parse_linkedin_csv",
    "parse_vcard_fields",
    "parse_vcard_text",
]
