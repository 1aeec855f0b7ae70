"""
vCard (.vcf) contact parser.

Cards are split on BEGIN:VCARD. Property names are matched exactly
(FN, N, TEL, EMAIL, ORG, TITLE); a card is kept only with a name and at
least one phone number.
"""

from dataclasses import dataclass

from keepintouch.infrastructure.observability.logging import get_logger
from keepintouch.models.domain.contact_domain import ImportedContactCandidate

logger = get_logger(__name__)

VCARD_DELIMITER = "BEGIN:VCARD"
VCARD_END = "END:VCARD"


@dataclass(slots=True)
class ParsedField:
    name: str
    params: dict[str, str] | None
    value: str


def parse_vcard_line(line: str) -> ParsedField:
    head, *value_parts = line.split(":")
    name, *raw_params = head.split(";")

    params: dict[str, str] = {}
    for raw in raw_params:
        parts = raw.split("=")
        key = parts[0]
        value = parts[1] if len(parts) > 1 else ""
        if key and value:
            params[key] = value

    return ParsedField(name=name, params=params or None, value=":".join(value_parts))


def parse_vcard_fields(raw_card: str) -> list[ParsedField]:
    fields = []
    for line in raw_card.split("\n"):
        line = line.strip()
        if not line or line == VCARD_END:
            continue
        fields.append(parse_vcard_line(line))
    return fields


def map_vcard_to_candidate(fields: list[ParsedField]) -> ImportedContactCandidate:
    candidate = ImportedContactCandidate()

    for field in fields:
        if field.name == "FN":
            candidate.full_name = field.value
        elif field.name == "N":
            # N is Family;Given;...; only a fallback when FN is absent
            if not candidate.full_name:
                parts = field.value.split(";")
                family = parts[0]
                given = parts[1] if len(parts) > 1 else ""
                candidate.full_name = f"{given} {family}".strip()
        elif field.name == "TEL":
            phone_type = (field.params or {}).get("TYPE")
            if phone_type is None:
                candidate.mobile_phone = field.value
            elif "WORK" in phone_type:
                candidate.business_phone = field.value
            elif "CELL" in phone_type:
                candidate.mobile_phone = field.value
        elif field.name == "EMAIL":
            candidate.email = field.value
        elif field.name == "ORG":
            candidate.company = field.value
        elif field.name == "TITLE":
            candidate.job_title = field.value

    return candidate


def parse_vcard_text(content: str, log=None) -> list[ImportedContactCandidate]:
    log = log or logger

    cards = [chunk for chunk in content.split(VCARD_DELIMITER) if chunk.strip()]
    candidates: list[ImportedContactCandidate] = []

    for card_index, card in enumerate(cards):
        try:
            candidate = map_vcard_to_candidate(parse_vcard_fields(card))
        except Exception as e:
            log.error("Failed to parse vCard", card_index=card_index, error=str(e))
            continue

        if candidate.full_name and (candidate.business_phone or candidate.mobile_phone):
            candidates.append(candidate)
        else:
            log.debug("Skipping vCard without name or phone", card_index=card_index)

    log.info("vCard contacts parsed", accepted=len(candidates), cards=len(cards))
    return candidates
