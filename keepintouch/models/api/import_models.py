# keepintouch/models/api/import_models.py
"""
Contact import request and response models.
"""

from pydantic import BaseModel, Field

from keepintouch.models.domain.contact_domain import ImportedContactCandidate


class ImportCandidateModel(BaseModel):
    """One contact found in an uploaded file, awaiting review."""

    client_id: str = Field(..., description="Ephemeral id used for selection")
    full_name: str | None = None
    email: str | None = None
    mobile_phone: str | None = None
    business_phone: str | None = None
    company: str | None = None
    job_title: str | None = None
    linkedin_url: str | None = None

    @classmethod
    def from_domain(cls, candidate: ImportedContactCandidate) -> "ImportCandidateModel":
        return cls(
            client_id=candidate.client_id,
            full_name=candidate.full_name,
            email=candidate.email,
            mobile_phone=candidate.mobile_phone,
            business_phone=candidate.business_phone,
            company=candidate.company,
            job_title=candidate.job_title,
            linkedin_url=candidate.linkedin_url,
        )

    def to_domain(self) -> ImportedContactCandidate:
        return ImportedContactCandidate(**self.model_dump())


class ImportPreviewResponse(BaseModel):
    format: str = Field(..., description="csv, linkedin or vcard")
    candidates: list[ImportCandidateModel]
    total_count: int
    message: str | None = Field(None, description="Shown when nothing was found")


class ImportConfirmRequest(BaseModel):
    candidates: list[ImportCandidateModel] = Field(..., description="Candidates from the preview")
    selected_ids: list[str] = Field(..., description="client_ids the user chose to import")


class ImportConfirmResponse(BaseModel):
    imported_count: int
    contact_ids: list[str]
