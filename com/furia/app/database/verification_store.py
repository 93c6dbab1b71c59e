import logging
from datetime import datetime, timezone
from typing import Callable, Dict

from pymongo.errors import PyMongoError

from com.furia.app.database.db_connection import DBConnection
from com.furia.app.exceptions.exceptions import NotFound, StorageError
from com.furia.app.services.verification_system.identity_verification.identity_verification_schema import (
    VerificationRecord,
    VerificationStatus,
    VerificationVerdict,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationStore(DBConnection):
    """Per-user verification state kept on the profile and user records.

    Both records of a write go through one transaction. Concurrent writers
    for the same user are not coordinated: the last write wins.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        super().__init__()
        self.clock = clock

    async def upsert(self, user_id: str, verdict: VerificationVerdict) -> None:
        """Merge the verdict into the user's profile, creating it if absent"""
        now = self.clock()
        status = VerificationStatus.VERIFIED if verdict.match else VerificationStatus.PENDING
        try:
            async with self.transaction() as session:
                await self.profiles.update_one(
                    {'_id': user_id},
                    {
                        '$set': {
                            'user_id': user_id,
                            'verification_status': status.value,
                            'face_verified': verdict.match,
                            'verification_confidence': verdict.confidence,
                            'verification_date': now,
                            'updated_at': now,
                        },
                        '$setOnInsert': {'created_at': now},
                    },
                    upsert=True,
                    session=session
                )
                await self.users.update_one(
                    {'_id': user_id},
                    {
                        '$set': {
                            'faceVerified': verdict.match,
                            'verificationStatus': status.value,
                            'verification_confidence': verdict.confidence,
                            'verification_date': now,
                            'updated_at': now,
                        }
                    },
                    session=session
                )
        except PyMongoError as e:
            logger.error(f"Error saving verification for user {user_id}: {str(e)}")
            raise StorageError("Failed to save verification result", detail=str(e))

        logger.info(f"Stored verification for user {user_id}: status={status.value}")

    async def mark_completed(self, user_id: str) -> None:
        now = self.clock()
        try:
            async with self.transaction() as session:
                await self.profiles.update_one(
                    {'_id': user_id},
                    {
                        '$set': {
                            'user_id': user_id,
                            'verification_status': VerificationStatus.COMPLETED.value,
                            'updated_at': now,
                        },
                        '$setOnInsert': {'created_at': now},
                    },
                    upsert=True,
                    session=session
                )
                await self.users.update_one(
                    {'_id': user_id},
                    {
                        '$set': {
                            'verificationStatus': VerificationStatus.COMPLETED.value,
                            'verificationCompleted': True,
                            'verificationCompletionDate': now,
                            'updated_at': now,
                        }
                    },
                    session=session
                )
        except PyMongoError as e:
            logger.error(f"Error completing verification for user {user_id}: {str(e)}")
            raise StorageError("Failed to complete verification", detail=str(e))

        logger.info(f"Verification marked as completed for user {user_id}")

    async def set_status(self, user_id: str, status: VerificationStatus) -> None:
        """Overwrite the verification status of an existing profile"""
        now = self.clock()
        try:
            async with self.transaction() as session:
                result = await self.profiles.update_one(
                    {'_id': user_id},
                    {'$set': {'verification_status': status.value, 'updated_at': now}},
                    session=session
                )
                if result.matched_count == 0:
                    raise NotFound("Profile not found")
                await self.users.update_one(
                    {'_id': user_id},
                    {'$set': {'verificationStatus': status.value, 'updated_at': now}},
                    session=session
                )
        except PyMongoError as e:
            logger.error(f"Error updating verification status for user {user_id}: {str(e)}")
            raise StorageError("Failed to update verification status", detail=str(e))

    async def read(self, user_id: str) -> VerificationRecord:
        """Return the user's verification state.

        The user record wins when it carries a verification flag; otherwise
        the profile collection is searched. Raises NotFound when neither has
        verification data.
        """
        try:
            user = await self.users.find_one({'_id': user_id})
            if user and user.get('faceVerified') is not None:
                return self._record_from_user(user)

            profile = await self.profiles.find_one(
                {'user_id': user_id, 'face_verified': {'$ne': None}}
            )
        except PyMongoError as e:
            logger.error(f"Error reading verification for user {user_id}: {str(e)}")
            raise StorageError("Failed to fetch verification status", detail=str(e))

        if profile:
            return VerificationRecord(
                verification_status=profile.get('verification_status') or VerificationStatus.PENDING,
                face_verified=bool(profile.get('face_verified')),
                verification_confidence=profile.get('verification_confidence'),
                verification_date=profile.get('verification_date'),
                updated_at=profile.get('updated_at'),
            )

        raise NotFound("Verification data not found")

    async def user_exists(self, user_id: str) -> bool:
        try:
            return await self.users.find_one({'_id': user_id}, {'_id': 1}) is not None
        except PyMongoError as e:
            logger.error(f"Error looking up user {user_id}: {str(e)}")
            raise StorageError("Failed to look up user", detail=str(e))

    @staticmethod
    def _record_from_user(user: Dict) -> VerificationRecord:
        return VerificationRecord(
            verification_status=user.get('verificationStatus') or VerificationStatus.PENDING,
            face_verified=bool(user.get('faceVerified')),
            verification_confidence=user.get('verification_confidence'),
            verification_date=user.get('verification_date'),
            updated_at=user.get('updated_at'),
        )


def get_verification_store() -> VerificationStore:
    return VerificationStore()
