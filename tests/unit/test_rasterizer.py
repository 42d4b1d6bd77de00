"""
Unit Tests for the Rasterizer
=============================

Playwright is mocked; captures are real JPEG files written with Pillow.
"""

import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, Mock, patch

from PIL import Image
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from postrender.core.rendering.html_generator import PostHTMLGenerator
from postrender.core.rendering.rasterizer import (
    CHROMIUM_ARGS,
    JPEG_QUALITY,
    PlaywrightRasterizer,
    RendererConfig,
)
from postrender.core.results import Failure, Success
from postrender.core.validation import validate_generation_request

from tests.utils.data_generators import PayloadGenerator


def write_jpeg(size=(1080, 1080)):
    """Screenshot side effect writing a JPEG of the given size."""

    async def _screenshot(path, **kwargs):
        Image.new("RGB", size, (255, 69, 0)).save(path, "JPEG", quality=95)
        return b""

    return _screenshot


class PlaywrightMocks:
    """Mocked playwright -> browser -> context -> page chain."""

    def __init__(self):
        self.page = AsyncMock()
        self.page.set_default_timeout = Mock()
        self.page.screenshot.side_effect = write_jpeg()

        self.context = AsyncMock()
        self.context.new_page.return_value = self.page

        self.browser = AsyncMock()
        self.browser.new_context.return_value = self.context

        self.playwright = MagicMock()
        self.playwright.chromium.launch = AsyncMock(return_value=self.browser)

        self.manager = MagicMock()
        self.manager.__aenter__.return_value = self.playwright
        self.manager.__aexit__.return_value = False

    def patch(self):
        return patch(
            "postrender.core.rendering.rasterizer.async_playwright", return_value=self.manager
        )


@pytest.fixture
def document():
    request = validate_generation_request(PayloadGenerator.minimal_generation())
    return PostHTMLGenerator().compose(request)


@pytest.fixture
def output_path(tmp_path: Path) -> Path:
    return tmp_path / "processed_image_1700000000000.jpg"


@pytest.fixture
def mocks():
    return PlaywrightMocks()


class TestRendererConfig:
    """Test renderer configuration."""

    def test_defaults(self):
        config = RendererConfig()

        assert config.executable_path is None
        assert config.headless is True
        assert config.timeout_ms == 30000
        assert config.launch_args == CHROMIUM_ARGS

    def test_from_settings(self, test_settings):
        test_settings.playwright_executable_path = "/usr/bin/chromium"
        test_settings.playwright_timeout = 5000

        config = RendererConfig.from_settings(test_settings)

        assert config.executable_path == "/usr/bin/chromium"
        assert config.timeout_ms == 5000


class TestPlaywrightRasterizer:
    """Test JPEG capture."""

    @pytest.mark.asyncio
    async def test_successful_capture(self, document, output_path, mocks):
        rasterizer = PlaywrightRasterizer(RendererConfig(executable_path="/opt/chrome"))

        with mocks.patch():
            result = await rasterizer.rasterize(document, output_path)

        assert isinstance(result, Success)
        assert result.value.path == str(output_path)
        assert result.value.file_name == "processed_image_1700000000000.jpg"
        assert result.value.file_size == output_path.stat().st_size > 0

        mocks.playwright.chromium.launch.assert_awaited_once_with(
            headless=True, executable_path="/opt/chrome", args=CHROMIUM_ARGS
        )
        mocks.browser.new_context.assert_awaited_once_with(
            viewport={"width": 1080, "height": 1080}, device_scale_factor=1
        )
        mocks.page.set_content.assert_awaited_once_with(
            document.html, wait_until="networkidle", timeout=30000
        )
        mocks.page.set_viewport_size.assert_awaited_once_with({"width": 1080, "height": 1080})
        mocks.page.screenshot.assert_awaited_once_with(
            path=str(output_path),
            type="jpeg",
            quality=JPEG_QUALITY,
            clip={"x": 0, "y": 0, "width": 1080, "height": 1080},
        )
        assert JPEG_QUALITY == 100
        mocks.context.close.assert_awaited_once()
        mocks.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_capture_error_releases_browser(self, document, output_path, mocks):
        mocks.page.screenshot.side_effect = OSError("disk full")

        with mocks.patch():
            result = await PlaywrightRasterizer().rasterize(document, output_path)

        assert isinstance(result, Failure)
        assert "disk full" in result.cause
        assert isinstance(result.error, OSError)
        mocks.context.close.assert_awaited_once()
        mocks.browser.close.assert_awaited_once()
        mocks.manager.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_timeout(self, document, output_path, mocks):
        mocks.page.set_content.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

        with mocks.patch():
            result = await PlaywrightRasterizer().rasterize(document, output_path)

        assert isinstance(result, Failure)
        assert "did not settle" in result.cause
        mocks.page.screenshot.assert_not_awaited()
        mocks.browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure(self, document, output_path, mocks):
        mocks.playwright.chromium.launch.side_effect = Exception("Executable doesn't exist")

        with mocks.patch():
            result = await PlaywrightRasterizer().rasterize(document, output_path)

        assert isinstance(result, Failure)
        assert "Executable doesn't exist" in result.cause
        mocks.browser.new_context.assert_not_awaited()
        mocks.manager.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_wrong_capture_size_is_failure(self, document, output_path, mocks):
        mocks.page.screenshot.side_effect = write_jpeg(size=(800, 600))

        with mocks.patch():
            result = await PlaywrightRasterizer().rasterize(document, output_path)

        assert isinstance(result, Failure)
        assert "expected JPEG 1080x1080" in result.cause

    @pytest.mark.asyncio
    async def test_unreadable_capture_is_failure(self, document, output_path, mocks):
        async def truncated(path, **kwargs):
            Path(path).write_bytes(b"\xff\xd8\xff")

        mocks.page.screenshot.side_effect = truncated

        with mocks.patch():
            result = await PlaywrightRasterizer().rasterize(document, output_path)

        assert isinstance(result, Failure)
        assert "Unreadable capture" in result.cause
