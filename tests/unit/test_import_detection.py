"""
Tests for import format detection and the parse entry point.
"""

import pytest

from keepintouch.services.contact_import import (
    ContactImportError,
    ImportFormat,
    UnsupportedImportFormatError,
    decode_upload,
    detect_import_format,
    parse_contact_file,
)
from keepintouch.services.contact_import.detection import (
    CSV_EMPTY_MESSAGE,
    LINKEDIN_EMPTY_MESSAGE,
    VCARD_EMPTY_MESSAGE,
)

LINKEDIN_EXPORT = (
    "Notes:\n"
    '"When exporting your connection data, you may notice missing emails."\n'
    "\n"
    "First Name,Last Name,URL,Email Address,Company,Position,Connected On\n"
    "Jane,Doe,https://www.linkedin.com/in/janedoe,,Acme,CTO,01 Jan 2024\n"
)


class TestDecodeUpload:
    def test_byte_order_mark_is_dropped(self):
        assert decode_upload(b"\xef\xbb\xbfFirst Name,Last Name") == "First Name,Last Name"

    def test_invalid_utf8(self):
        with pytest.raises(ContactImportError) as exc:
            decode_upload(b"\xff\xfeN\x00a\x00m\x00e\x00", filename="contacts.csv")
        assert exc.value.message == "Failed to process file"
        assert exc.value.filename == "contacts.csv"


class TestDetectImportFormat:
    @pytest.mark.parametrize("filename", ["contacts.vcf", "CONTACTS.VCF", "export.vcard"])
    def test_vcard_extensions(self, filename):
        assert detect_import_format(filename, "") == ImportFormat.VCARD

    def test_linkedin_export_with_metadata(self):
        assert detect_import_format("Connections.csv", LINKEDIN_EXPORT) == ImportFormat.LINKEDIN

    def test_linkedin_header_on_first_line(self):
        text = "First Name,Last Name,URL,Email Address,Company,Position,Connected On\n"
        assert detect_import_format("Connections.csv", text) == ImportFormat.LINKEDIN

    def test_generic_csv_with_linkedin_like_columns(self):
        text = "First Name,Last Name,Company,Phone\nJane,Doe,Acme,555-0100\n"
        assert detect_import_format("contacts.csv", text) == ImportFormat.CSV

    def test_plain_csv(self):
        assert detect_import_format("contacts.csv", "Name,Email\n") == ImportFormat.CSV

    @pytest.mark.parametrize("filename", ["contacts.xlsx", "contacts", "notes.txt"])
    def test_unsupported_extension(self, filename):
        with pytest.raises(UnsupportedImportFormatError) as exc:
            detect_import_format(filename, "")
        assert ".csv" in exc.value.message


class TestParseContactFile:
    def test_vcard(self):
        data = b"BEGIN:VCARD\nFN:Jane Doe\nTEL;TYPE=CELL:555-0100\nEND:VCARD\n"

        result = parse_contact_file("contacts.vcf", data)

        assert result.format == ImportFormat.VCARD
        assert result.total == 1
        assert result.message is None

    def test_linkedin(self):
        result = parse_contact_file("Connections.csv", LINKEDIN_EXPORT.encode())

        assert result.format == ImportFormat.LINKEDIN
        assert result.candidates[0].full_name == "Jane Doe"
        assert result.candidates[0].company == "Acme"

    def test_empty_results_carry_a_hint(self):
        csv_result = parse_contact_file("contacts.csv", b"Company\nAcme")
        vcard_result = parse_contact_file("contacts.vcf", b"BEGIN:VCARD\nFN:Jane\nEND:VCARD")
        linkedin_result = parse_contact_file(
            "Connections.csv", b"Notes:\nFirst Name,Last Name,Email Address,Company\n"
        )

        assert csv_result.message == CSV_EMPTY_MESSAGE
        assert vcard_result.message == VCARD_EMPTY_MESSAGE
        assert linkedin_result.format == ImportFormat.LINKEDIN
        assert linkedin_result.message == LINKEDIN_EMPTY_MESSAGE
        assert linkedin_result.total == 0
