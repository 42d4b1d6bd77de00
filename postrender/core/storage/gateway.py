"""
Storage Gateway
===============

Cloudinary upload and destroy for rendered images. Credentials are passed
on every call instead of through the SDK's global configuration; SDK calls
are blocking and run in a worker thread.
"""

from typing import Any, Dict, Optional
from dataclasses import dataclass
import asyncio

import cloudinary.uploader

from postrender.config.logging import get_logger
from postrender.config.settings import Settings
from postrender.core.results import Failure, Result, Success
from postrender.models.schemas import UploadResult

logger = get_logger(__name__)

RESOURCE_TYPE = "image"
IDEMPOTENT_DESTROY_RESULTS = frozenset({"ok", "not found"})


@dataclass(frozen=True)
class StorageConfig:
    """Cloudinary account and folder settings."""

    cloud_name: Optional[str] = None
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    folder: str = "processed_images"

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageConfig":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.storage_folder,
        )

    def credentials(self) -> Dict[str, str]:
        """Per-call credential options; unset values fall back to the SDK's own config."""
        options = {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }
        return {key: value for key, value in options.items() if value}


def public_id_for(file_name: str) -> str:
    """Strip the .jpg extension from a generated file name."""
    return file_name.removesuffix(".jpg")


class CloudinaryStorageGateway:
    """Upload and destroy images in a fixed Cloudinary folder."""

    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self.logger: Any = logger.bind(component="storage", folder=self.config.folder)

    def identifier_for(self, file_name: str) -> str:
        """Storage identifier of a generated file: <folder>/<name without extension>."""
        return f"{self.config.folder}/{public_id_for(file_name)}"

    async def upload(self, local_path: str, desired_name: str) -> Result[UploadResult]:
        """
        Upload a local file under the configured folder.

        Args:
            local_path: Path of the rendered JPEG
            desired_name: File name used as the stable identifier

        Returns:
            Success with the UploadResult, or Failure with the cause
        """
        try:
            response = await asyncio.to_thread(
                cloudinary.uploader.upload,
                local_path,
                folder=self.config.folder,
                public_id=public_id_for(desired_name),
                overwrite=True,
                resource_type=RESOURCE_TYPE,
                **self.config.credentials(),
            )
            result = UploadResult(
                secure_url=response["secure_url"], public_id=response["public_id"]
            )
        except Exception as e:
            cause = f"Cloudinary upload failed: {e}"
            self.logger.error("Upload failed", file_name=desired_name, error=cause)
            return Failure(cause=cause, error=e)

        self.logger.info("Upload completed", public_id=result.public_id)
        return Success(result)

    async def destroy(self, identifier: str) -> Result[str]:
        """
        Delete an uploaded image.

        "ok" and "not found" both count as success, so deleting an absent
        image is not an error.
        """
        try:
            response = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                identifier,
                resource_type=RESOURCE_TYPE,
                **self.config.credentials(),
            )
        except Exception as e:
            cause = f"Cloudinary destroy failed: {e}"
            self.logger.error("Destroy failed", public_id=identifier, error=cause)
            return Failure(cause=cause, error=e)

        outcome = response.get("result") if isinstance(response, dict) else None
        if outcome not in IDEMPOTENT_DESTROY_RESULTS:
            cause = f"Unexpected destroy result: {outcome!r}"
            self.logger.error("Destroy rejected", public_id=identifier, result=outcome)
            return Failure(cause=cause)

        self.logger.info("Destroy completed", public_id=identifier, result=outcome)
        return Success(outcome)
