"""
Fuzzy mapping of arbitrary CSV headers onto contact fields.

Every field is resolved by an ordered tuple of matchers applied
short-circuit: exact normalized key first, then exact raw header, then a
substring scan over all headers. Name resolution has its own ordered
strategy list because it combines two columns.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from keepintouch.models.domain.contact_domain import ImportedContactCandidate
from keepintouch.services.contact_import.tokenizer import normalize_header


@dataclass(slots=True)
class CsvRecord:
    """One data row keyed by raw header and by normalized header."""

    raw: dict[str, str] = field(default_factory=dict)
    normalized: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_values(cls, header: Sequence[str], values: Sequence[str]) -> "CsvRecord":
        record = cls()
        for column, value in zip(header, values):
            name = column.strip()
            record.raw[name] = value
            key = normalize_header(name)
            # An empty duplicate column must not hide a filled one
            if value or key not in record.normalized:
                record.normalized[key] = value
        return record


class FieldMatcher(Protocol):
    def match(self, record: CsvRecord) -> str | None: ...


class NormalizedKeyMatcher:
    """Exact match on normalized header names, trying aliases in order."""

    def __init__(self, *aliases: str):
        self.aliases = aliases

    def match(self, record: CsvRecord) -> str | None:
        for alias in self.aliases:
            value = record.normalized.get(alias)
            if value:
                return value
        return None


class RawKeyMatcher:
    """Exact match on headers as written in the file."""

    def __init__(self, *headers: str):
        self.headers = headers

    def match(self, record: CsvRecord) -> str | None:
        for header in self.headers:
            value = record.raw.get(header)
            if value:
                return value
        return None


class SubstringMatcher:
    """First non-empty column whose normalized header satisfies `predicate`."""

    def __init__(self, predicate: Callable[[str], bool]):
        self.predicate = predicate

    def match(self, record: CsvRecord) -> str | None:
        for header, value in record.raw.items():
            if value and self.predicate(normalize_header(header)):
                return value
        return None


def resolve_field(record: CsvRecord, matchers: Sequence[FieldMatcher]) -> str | None:
    for matcher in matchers:
        value = matcher.match(record)
        if value:
            return value.strip() or None
    return None


def _is_work_header(header: str) -> bool:
    return "work" in header or "business" in header or "office" in header


EMAIL_MATCHERS: tuple[FieldMatcher, ...] = (
    NormalizedKeyMatcher("email", "emailaddress", "email1"),
    SubstringMatcher(lambda h: "email" in h),
)

MOBILE_PHONE_MATCHERS: tuple[FieldMatcher, ...] = (
    NormalizedKeyMatcher("phone", "phonenumber", "mobile", "mobilephone"),
    SubstringMatcher(
        lambda h: ("phone" in h or "mobile" in h) and not _is_work_header(h) and "fax" not in h
    ),
)

BUSINESS_PHONE_MATCHERS: tuple[FieldMatcher, ...] = (
    NormalizedKeyMatcher("businessphone", "workphone", "officephone"),
    SubstringMatcher(lambda h: "phone" in h and _is_work_header(h) and "fax" not in h),
)

COMPANY_MATCHERS: tuple[FieldMatcher, ...] = (
    NormalizedKeyMatcher("company", "organization", "companyname"),
    SubstringMatcher(
        lambda h: ("company" in h or "organization" in h or "employer" in h)
        and "title" not in h
    ),
)

JOB_TITLE_MATCHERS: tuple[FieldMatcher, ...] = (
    NormalizedKeyMatcher("jobtitle", "position", "title"),
    SubstringMatcher(lambda h: "title" in h or "position" in h),
)

LINKEDIN_URL_MATCHERS: tuple[FieldMatcher, ...] = (
    NormalizedKeyMatcher("linkedinurl", "linkedin", "profileurl"),
    SubstringMatcher(lambda h: "linkedin" in h),
)


# ----------------------------------------------------------------------
# Name strategies
# ----------------------------------------------------------------------

LAST_NAME_KEYS = ("lastname", "familyname", "surname")
RAW_FIRST_NAME_HEADERS = ("First Name", "Given Name")
RAW_LAST_NAME_HEADERS = ("Last Name", "Family Name", "Surname")

NameStrategy = Callable[[CsvRecord], str | None]


def _combine_names(first: str | None, last: str | None) -> str | None:
    full_name = f"{first or ''} {last or ''}".strip()
    return full_name or None


def _first_key(mapping: dict[str, str], keys: Sequence[str]) -> str | None:
    """First key of `keys` present in mapping, preferring one with a value."""
    present = [key for key in keys if key in mapping]
    for key in present:
        if mapping[key]:
            return key
    return present[0] if present else None


def name_from_normalized_keys(record: CsvRecord) -> str | None:
    last_key = _first_key(record.normalized, LAST_NAME_KEYS)
    if "firstname" not in record.normalized or last_key is None:
        return None
    return _combine_names(record.normalized["firstname"], record.normalized[last_key])


def name_from_raw_headers(record: CsvRecord) -> str | None:
    first_key = _first_key(record.raw, RAW_FIRST_NAME_HEADERS)
    last_key = _first_key(record.raw, RAW_LAST_NAME_HEADERS)
    if first_key is None or last_key is None:
        return None
    return _combine_names(record.raw[first_key], record.raw[last_key])


def name_from_single_column(record: CsvRecord) -> str | None:
    for key in ("name", "fullname"):
        value = record.normalized.get(key)
        if value and value.strip():
            return value.strip()
    return None


def name_from_fuzzy_headers(record: CsvRecord) -> str | None:
    first_header = next(
        (h for h in record.raw if "first" in h.lower() and "name" in h.lower()), None
    )
    last_header = next(
        (h for h in record.raw if "last" in h.lower() and "name" in h.lower()), None
    )
    if first_header is None or last_header is None:
        return None
    return _combine_names(record.raw[first_header], record.raw[last_header])


NAME_STRATEGIES: tuple[NameStrategy, ...] = (
    name_from_normalized_keys,
    name_from_raw_headers,
    name_from_single_column,
    name_from_fuzzy_headers,
)


def resolve_full_name(
    record: CsvRecord, strategies: Sequence[NameStrategy] = NAME_STRATEGIES
) -> str | None:
    for strategy in strategies:
        full_name = strategy(record)
        if full_name:
            return full_name
    return None


def map_record_to_candidate(record: CsvRecord) -> ImportedContactCandidate:
    return ImportedContactCandidate(
        full_name=resolve_full_name(record),
        email=resolve_field(record, EMAIL_MATCHERS),
        mobile_phone=resolve_field(record, MOBILE_PHONE_MATCHERS),
        business_phone=resolve_field(record, BUSINESS_PHONE_MATCHERS),
        company=resolve_field(record, COMPANY_MATCHERS),
        job_title=resolve_field(record, JOB_TITLE_MATCHERS),
        linkedin_url=resolve_field(record, LINKEDIN_URL_MATCHERS),
    )
