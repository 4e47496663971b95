# =============================================================================
# app/routers/evidence.py - Evidence Upload and Narrative Pre-fill
# =============================================================================
# Evidence files are uploaded before a case is submitted; the returned
# storage paths go into CaseCreate.evidence_urls.
#
# extract-text reads an image with OCR and hands back the narrative with the
# recognised text appended. Nothing is stored by that endpoint.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field

from app.auth import Member, get_current_member
from app.config import settings
from app.dependencies import ExtractorDep
from core.services.evidence_service import EvidenceService
from core.services.narrative_service import PrefillResult, prefill_narrative

logger = logging.getLogger(__name__)

router = APIRouter()


class EvidenceUploadResponse(BaseModel):
    """Storage paths of the uploaded files, in upload order."""
    paths: list[str] = Field(default_factory=list)


@router.post("", response_model=EvidenceUploadResponse, status_code=201)
async def upload_evidence(
    files: Annotated[list[UploadFile], File(description="Images or PDFs")],
    member: Member = Depends(get_current_member),
):
    """
    Upload one or more evidence files.

    Files are validated (extension, size) and stored under the caller's
    folder. If any file fails, the request fails and the files already
    stored by this request are deleted again.

    A file is never read past the size limit: the declared size is checked
    first and the read stops one byte over the limit.
    """
    paths = []
    for upload in files:
        try:
            filename = upload.filename or ""
            if upload.size is not None:
                EvidenceService.validate(filename, upload.size)
            content = await upload.read(settings.max_upload_size_bytes + 1)
            paths.append(EvidenceService.upload(member.id, filename, content, upload.content_type))
        except Exception:
            if paths:
                logger.warning(f"Upload aborted, removing {paths}")
                EvidenceService.remove(paths)
            raise

    return EvidenceUploadResponse(paths=paths)


@router.post("/extract-text", response_model=PrefillResult)
async def extract_text(
    image: Annotated[UploadFile, File(description="Photo or scan of a written report")],
    extractor: ExtractorDep,
    narrative: Annotated[str, Form(description="Narrative drafted so far")] = "",
    member: Member = Depends(get_current_member),
):
    """
    Append OCR text from an image to the narrative being drafted.

    If nothing can be read, the narrative comes back unchanged with
    extracted=false.
    """
    content = await image.read()
    return prefill_narrative(narrative, content, extractor)
