"""
Test Configuration
==================

Pytest configuration with fixtures for unit and integration tests.
Provides test settings, stub collaborators and an API client wired to them.
"""

import os

# Must be set before any postrender module reads settings
os.environ.setdefault("POSTRENDER_ENVIRONMENT", "testing")
os.environ.setdefault("POSTRENDER_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("POSTRENDER_LOG_LEVEL", "DEBUG")

import pytest
from pathlib import Path
from typing import Any, Dict, Generator
from fastapi.testclient import TestClient

from postrender.config.settings import Settings
from postrender.api.main import (
    app,
    create_app,
    get_deletion_pipeline,
    get_generation_pipeline,
    rate_limiter,
)
from postrender.core.pipeline.orchestrator import DeletionPipeline, GenerationPipeline
from postrender.core.rendering.html_generator import PostHTMLGenerator

from tests.utils.data_generators import PayloadGenerator
from tests.utils.mocks import StubRasterizer, StubStorageGateway

FIXED_TIMESTAMP_MS = 1700000000000


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing scratch space at a per-test directory."""
    return Settings(
        environment="testing",
        scratch_path=tmp_path / "scratch",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="1234",
        cloudinary_api_secret="secret",
    )


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def generation_payload() -> Dict[str, Any]:
    return PayloadGenerator.minimal_generation()


@pytest.fixture
def stub_rasterizer() -> StubRasterizer:
    return StubRasterizer()


@pytest.fixture
def stub_storage() -> StubStorageGateway:
    return StubStorageGateway()


@pytest.fixture
def generation_pipeline(
    stub_rasterizer: StubRasterizer, stub_storage: StubStorageGateway, scratch_dir: Path
) -> GenerationPipeline:
    """Generation pipeline with a real composer and stubbed I/O."""
    return GenerationPipeline(
        composer=PostHTMLGenerator(),
        rasterizer=stub_rasterizer,
        storage=stub_storage,
        scratch_dir=scratch_dir,
        clock=lambda: FIXED_TIMESTAMP_MS,
    )


@pytest.fixture
def deletion_pipeline(stub_storage: StubStorageGateway) -> DeletionPipeline:
    return DeletionPipeline(stub_storage)


@pytest.fixture
def api_client(
    generation_pipeline: GenerationPipeline, deletion_pipeline: DeletionPipeline
) -> Generator[TestClient, None, None]:
    """FastAPI test client with stubbed pipelines."""
    app.dependency_overrides[get_generation_pipeline] = lambda: generation_pipeline
    app.dependency_overrides[get_deletion_pipeline] = lambda: deletion_pipeline
    rate_limiter.reset()

    with TestClient(create_app()) as client:
        yield client

    app.dependency_overrides.clear()
    rate_limiter.reset()
