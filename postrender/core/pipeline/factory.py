"""
Pipeline Factory
================

Wire concrete collaborators from application settings.
"""

from typing import Optional

from postrender.config.settings import Settings, get_settings
from postrender.core.pipeline.orchestrator import DeletionPipeline, GenerationPipeline
from postrender.core.rendering.html_generator import PostHTMLGenerator
from postrender.core.rendering.rasterizer import PlaywrightRasterizer, RendererConfig
from postrender.core.storage.gateway import CloudinaryStorageGateway, StorageConfig


def build_generation_pipeline(settings: Optional[Settings] = None) -> GenerationPipeline:
    """Create a generation pipeline backed by Playwright and Cloudinary."""
    settings = settings or get_settings()
    return GenerationPipeline(
        composer=PostHTMLGenerator(),
        rasterizer=PlaywrightRasterizer(RendererConfig.from_settings(settings)),
        storage=CloudinaryStorageGateway(StorageConfig.from_settings(settings)),
        scratch_dir=settings.scratch_path,
    )


def build_deletion_pipeline(settings: Optional[Settings] = None) -> DeletionPipeline:
    """Create a deletion pipeline backed by Cloudinary."""
    settings = settings or get_settings()
    return DeletionPipeline(CloudinaryStorageGateway(StorageConfig.from_settings(settings)))
