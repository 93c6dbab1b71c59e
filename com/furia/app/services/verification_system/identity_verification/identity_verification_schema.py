from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    COMPLETED = "completed"


class VerificationVerdict(BaseModel):
    """Canonical result of one verification attempt"""
    match: bool
    confidence: Optional[float] = Field(None, allow_inf_nan=False)
    reasons: Optional[List[str]] = None


class VerificationRecord(BaseModel):
    verification_status: VerificationStatus = VerificationStatus.PENDING
    face_verified: bool = False
    verification_confidence: Optional[float] = None
    verification_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImagePayload(BaseModel):
    mime_type: str
    data: str  # base64


class SaveResultRequest(BaseModel):
    userId: Optional[str] = None
    faceVerified: bool
    confidence: Optional[float] = Field(None, allow_inf_nan=False)


class CompleteVerificationRequest(BaseModel):
    userId: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    verificationStatus: str


class VerificationResponse(BaseModel):
    success: bool = True
    faceVerified: bool
    confidence: Optional[float] = None
    reasons: Optional[List[str]] = None
    message: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class StatusResponse(BaseModel):
    success: bool = True
    status: VerificationStatus
    faceVerified: bool
    confidence: Optional[float] = None
    verificationDate: Optional[datetime] = None


class ErrorResponse(BaseModel):
    """Standard error response model"""
    success: bool = False
    message: str
    error: Optional[str] = None  # Only populated in development
