import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from com.furia.app.config.config import Config
from com.furia.app.database.verification_store import VerificationStore
from com.furia.app.exceptions.exceptions import ValidationError
from com.furia.app.services.verification_system.api_manager.vision_classifier_manager import VisionClassifierManager
from com.furia.app.services.verification_system.identity_verification.identity_verification_schema import (
    ImagePayload,
    StatusResponse,
    VerificationResponse,
    VerificationStatus,
    VerificationVerdict,
)
from com.furia.app.services.verification_system.identity_verification.verdict_interpreter import interpret

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = ['image/jpeg', 'image/jpg', 'image/png', 'image/webp']

VERIFICATION_PROMPT = """Analise as duas imagens fornecidas:
1. A primeira imagem é um documento de identidade oficial (RG, CNH ou passaporte).
2. A segunda imagem é uma selfie tirada no momento.

Verifique se:
- As características faciais (rosto) correspondem entre as imagens
- A pessoa na selfie parece ser a mesma do documento
- Não há indícios de fraude ou manipulação nas imagens

Retorne apenas um objeto JSON com a seguinte estrutura:
{
    "match": boolean (true se houver correspondência),
    "confidence": number (0 a 1, nível de confiança),
    "reasons": string[] (razões para a decisão)
}"""


@dataclass
class ImageUpload:
    field_name: str
    mime_type: Optional[str]
    data: bytes


class IdentityVerification:
    def __init__(self, classifier: Optional[VisionClassifierManager] = None,
                 store: Optional[VerificationStore] = None):
        self.config = Config()
        self.classifier = classifier or VisionClassifierManager()
        self.store = store or VerificationStore()
        self.max_file_size = self.config.max_image_size

    def _validate_image(self, image: ImageUpload) -> ImagePayload:
        """Check type, size and integrity of an upload and encode it for the classifier"""
        mime_type = (image.mime_type or "").lower()
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                f"Unsupported image type for {image.field_name}. Allowed types: {', '.join(ALLOWED_MIME_TYPES)}"
            )

        if len(image.data) > self.max_file_size:
            limit_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(f"File too large: {image.field_name} exceeds the {limit_mb:g}MB limit")

        try:
            with Image.open(io.BytesIO(image.data)) as img:
                img.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            logger.warning(f"Rejected {image.field_name}: {str(e)}")
            raise ValidationError(f"Invalid or corrupted image for {image.field_name}", detail=str(e))

        return ImagePayload(mime_type=mime_type, data=base64.b64encode(image.data).decode("ascii"))

    async def verify_identity(self, user_id: str, id_document: Optional[ImageUpload],
                              selfie: Optional[ImageUpload]) -> VerificationResponse:
        """Validate both images, ask the classifier for a verdict and store it"""
        if id_document is None or selfie is None or not id_document.data or not selfie.data:
            raise ValidationError("Both images required: idDocument and selfie")

        images = [self._validate_image(id_document), self._validate_image(selfie)]

        raw_response = await self.classifier.classify(VERIFICATION_PROMPT, images)
        verdict = interpret(raw_response)
        logger.info(f"Verification verdict for user {user_id}: match={verdict.match}, confidence={verdict.confidence}")

        await self.store.upsert(user_id, verdict)

        return VerificationResponse(
            faceVerified=verdict.match,
            confidence=verdict.confidence,
            reasons=verdict.reasons,
            message="Verification completed and saved successfully" if verdict.match else "Faces do not match"
        )

    async def save_result(self, user_id: str, face_verified: bool, confidence: Optional[float]) -> None:
        await self.store.upsert(user_id, VerificationVerdict(match=face_verified, confidence=confidence))

    async def complete_verification(self, user_id: str) -> None:
        await self.store.mark_completed(user_id)

    async def update_status(self, user_id: str, status: str) -> None:
        allowed = (VerificationStatus.PENDING, VerificationStatus.VERIFIED, VerificationStatus.REJECTED)
        if status not in [s.value for s in allowed]:
            raise ValidationError(
                f"Invalid verification status. Allowed values: {', '.join(s.value for s in allowed)}"
            )
        await self.store.set_status(user_id, VerificationStatus(status))

    async def get_status(self, user_id: str) -> StatusResponse:
        record = await self.store.read(user_id)
        return StatusResponse(
            status=record.verification_status,
            faceVerified=record.face_verified,
            confidence=record.verification_confidence,
            verificationDate=record.verification_date
        )
