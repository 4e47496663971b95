# =============================================================================
# core/services/evidence_service.py - Evidence File Storage
# =============================================================================
# Handles evidence uploads (photos, scans, PDFs) to Supabase Storage and the
# signed URLs used to view them. Cases store only the object paths.
#
# Object layout: {user_id}/{unix_millis}-{random}.{ext}
# =============================================================================

import logging
import time
from pathlib import PurePosixPath
from uuid import UUID, uuid4

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, StorageUploadError
from core.models.case import EvidenceFile
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


class EvidenceService:
    """
    Service for evidence file storage.

    Example:
        path = EvidenceService.upload(user.id, "report.png", data, "image/png")
        files = EvidenceService.signed_files([path])
    """

    @staticmethod
    def validate(filename: str, size: int) -> str:
        """
        Check an upload against the allowed extensions and size limit.

        Returns:
            The lower-cased extension, including the dot

        Raises:
            InvalidFileTypeError: If the extension is not allowed
            FileTooLargeError: If the file exceeds MAX_UPLOAD_SIZE_MB
        """
        extension = PurePosixPath(filename or "").suffix.lower()
        allowed = settings.allowed_evidence_extensions_list
        if extension not in allowed:
            raise InvalidFileTypeError(filename, allowed)

        if size > settings.max_upload_size_bytes:
            raise FileTooLargeError(size / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

        return extension

    @staticmethod
    def build_path(user_id: str | UUID, extension: str) -> str:
        """Build a collision-resistant object path under the uploader's folder."""
        millis = int(time.time() * 1000)
        return f"{user_id}/{millis}-{uuid4().hex[:7]}{extension}"

    @staticmethod
    def upload(
        user_id: str | UUID,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> str:
        """
        Validate and upload one evidence file.

        Returns:
            Storage path to record in the case's evidence_urls

        Raises:
            InvalidFileTypeError, FileTooLargeError: If validation fails
            StorageUploadError: If the upload fails
        """
        extension = EvidenceService.validate(filename, len(content))
        path = EvidenceService.build_path(user_id, extension)

        client = SupabaseClient.get_client()
        try:
            client.storage.from_(settings.EVIDENCE_BUCKET).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type or "application/octet-stream"},
            )
        except Exception as e:
            logger.error(f"Evidence upload failed for {filename}: {e}")
            raise StorageUploadError(str(e))

        logger.info(f"Uploaded evidence {filename} to {path}")
        return path

    @staticmethod
    def remove(paths: list[str]) -> None:
        """
        Delete stored evidence objects.

        Used to clean up after a multi-file upload fails part way. A failed
        delete is logged, not raised, so the original upload error reaches
        the caller.
        """
        if not paths:
            return

        try:
            SupabaseClient.get_client().storage.from_(settings.EVIDENCE_BUCKET).remove(paths)
        except Exception as e:
            logger.error(f"Could not remove orphaned evidence {paths}: {e}")
            return

        logger.info(f"Removed {len(paths)} orphaned evidence file(s)")

    @staticmethod
    def signed_files(paths: list[str]) -> list[EvidenceFile]:
        """
        Create signed download URLs for evidence paths.

        Paths that cannot be signed (deleted objects, storage hiccups) are
        skipped so one bad file doesn't hide the whole case.
        """
        if not paths:
            return []

        bucket = SupabaseClient.get_client().storage.from_(settings.EVIDENCE_BUCKET)
        files = []

        for path in paths:
            try:
                signed = bucket.create_signed_url(path, settings.SIGNED_URL_TTL_SECONDS)
            except Exception as e:
                logger.warning(f"Could not sign evidence {path}: {e}")
                continue

            signed = signed or {}
            url = signed.get("signedURL") or signed.get("signedUrl")
            if not url:
                logger.warning(f"Storage returned no signed URL for {path}")
                continue

            name = PurePosixPath(path).name
            kind = "image" if PurePosixPath(path).suffix.lower() in IMAGE_EXTENSIONS else "other"
            files.append(EvidenceFile(path=path, signed_url=url, name=name, kind=kind))

        return files
