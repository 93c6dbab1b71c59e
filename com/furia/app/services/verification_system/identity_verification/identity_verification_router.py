import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from com.furia.app.auth.auth import ensure_same_user, get_current_user_id
from com.furia.app.database.verification_store import VerificationStore, get_verification_store
from com.furia.app.services.verification_system.api_manager.vision_classifier_manager import VisionClassifierManager
from com.furia.app.services.verification_system.identity_verification.identity_verification import (
    IdentityVerification,
    ImageUpload,
)
from com.furia.app.services.verification_system.identity_verification.identity_verification_schema import (
    CompleteVerificationRequest,
    ErrorResponse,
    MessageResponse,
    SaveResultRequest,
    StatusResponse,
    UpdateStatusRequest,
    VerificationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/verification",
    tags=["identity-verification"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not found"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
        503: {"model": ErrorResponse, "description": "Vision classifier unavailable"}
    }
)


def get_vision_classifier() -> VisionClassifierManager:
    return VisionClassifierManager()


def get_identity_verification(
    classifier: VisionClassifierManager = Depends(get_vision_classifier),
    store: VerificationStore = Depends(get_verification_store)
) -> IdentityVerification:
    return IdentityVerification(classifier=classifier, store=store)


async def _read_upload(field_name: str, upload: Optional[UploadFile]) -> Optional[ImageUpload]:
    if upload is None:
        return None
    data = await upload.read()
    await upload.close()
    return ImageUpload(field_name=field_name, mime_type=upload.content_type, data=data)


@router.post("/verify-identity",
    response_model=VerificationResponse,
    response_model_exclude_none=True,
    summary="Verify a user's identity",
    description="""Upload an identity document and a selfie to check that both show the same person.
    Image requirements:
    - Both `idDocument` and `selfie` are required
    - Format: JPEG, PNG or WEBP
    - File size: Maximum 5MB each (configurable)"""
)
async def verify_identity(
    id_document: Optional[UploadFile] = File(None, alias="idDocument"),
    selfie: Optional[UploadFile] = File(None, alias="selfie"),
    user_id: Optional[str] = Form(None, alias="userId"),
    current_user_id: str = Depends(get_current_user_id),
    verifier: IdentityVerification = Depends(get_identity_verification)
) -> VerificationResponse:
    ensure_same_user(current_user_id, user_id)
    return await verifier.verify_identity(
        current_user_id,
        await _read_upload("idDocument", id_document),
        await _read_upload("selfie", selfie)
    )


@router.post("/save-result", response_model=MessageResponse, summary="Save a verification result")
async def save_result(
    request: SaveResultRequest,
    current_user_id: str = Depends(get_current_user_id),
    verifier: IdentityVerification = Depends(get_identity_verification)
) -> MessageResponse:
    ensure_same_user(current_user_id, request.userId)
    await verifier.save_result(current_user_id, request.faceVerified, request.confidence)
    return MessageResponse(message="Verification result saved successfully")


@router.post("/complete-verification", response_model=MessageResponse, summary="Mark verification as completed")
async def complete_verification(
    request: Optional[CompleteVerificationRequest] = None,
    current_user_id: str = Depends(get_current_user_id),
    verifier: IdentityVerification = Depends(get_identity_verification)
) -> MessageResponse:
    ensure_same_user(current_user_id, request.userId if request else None)
    await verifier.complete_verification(current_user_id)
    return MessageResponse(message="Verification marked as completed successfully")


@router.put("/status", response_model=MessageResponse, summary="Update the verification status")
async def update_status(
    request: UpdateStatusRequest,
    current_user_id: str = Depends(get_current_user_id),
    verifier: IdentityVerification = Depends(get_identity_verification)
) -> MessageResponse:
    await verifier.update_status(current_user_id, request.verificationStatus)
    return MessageResponse(message="Verification status updated successfully")


@router.get("/status/{user_id}", response_model=StatusResponse, summary="Get the verification status")
async def get_status(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    verifier: IdentityVerification = Depends(get_identity_verification)
) -> StatusResponse:
    ensure_same_user(current_user_id, user_id)
    return await verifier.get_status(user_id)
