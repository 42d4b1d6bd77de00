"""
Rasterizer
==========

Playwright-based JPEG capture of composed post documents.
Every call launches its own Chromium and tears it down on every exit path.
"""

from typing import Any, AsyncGenerator, List, Optional
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from playwright.async_api import async_playwright, Browser
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from PIL import Image  # type: ignore

from postrender.config.logging import get_logger
from postrender.config.settings import Settings
from postrender.core.results import Failure, Result, Success
from postrender.models.schemas import ComposedDocument, RenderArtifact

logger = get_logger(__name__)

JPEG_QUALITY = 100

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--disable-gpu",
]


class RenderError(Exception):
    """Exception raised when a capture cannot be produced or verified."""

    pass


@dataclass(frozen=True)
class RendererConfig:
    """Browser settings injected into the rasterizer."""

    executable_path: Optional[str] = None
    headless: bool = True
    timeout_ms: int = 30000
    launch_args: List[str] = field(default_factory=lambda: list(CHROMIUM_ARGS))

    @classmethod
    def from_settings(cls, settings: Settings) -> "RendererConfig":
        return cls(
            executable_path=settings.playwright_executable_path,
            headless=settings.playwright_headless,
            timeout_ms=settings.playwright_timeout,
        )


class PlaywrightRasterizer:
    """Render a ComposedDocument into a fixed-size JPEG file."""

    def __init__(self, config: Optional[RendererConfig] = None):
        self.config = config or RendererConfig()
        self.logger: Any = logger.bind(component="rasterizer")

    @asynccontextmanager
    async def browser_session(self) -> AsyncGenerator[Browser, None]:
        """Launch an isolated Chromium; always closed on exit."""
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(
                headless=self.config.headless,
                executable_path=self.config.executable_path,
                args=self.config.launch_args,
            )
            try:
                yield browser
            finally:
                await browser.close()
                self.logger.debug("Browser session closed")

    async def rasterize(
        self, document: ComposedDocument, output_path: Path
    ) -> Result[RenderArtifact]:
        """
        Capture the document as a JPEG.

        Args:
            document: Composed post document
            output_path: Where the JPEG is written

        Returns:
            Success with the RenderArtifact, or Failure with the cause
        """
        clip = {"x": 0, "y": 0, "width": document.width, "height": document.height}
        viewport = {"width": document.width, "height": document.height}

        try:
            async with self.browser_session() as browser:
                context = await browser.new_context(viewport=viewport, device_scale_factor=1)
                try:
                    page = await context.new_page()
                    page.set_default_timeout(self.config.timeout_ms)

                    # networkidle waits until background and logo have loaded
                    await page.set_content(
                        document.html, wait_until="networkidle", timeout=self.config.timeout_ms
                    )
                    await page.set_viewport_size(viewport)  # type: ignore[arg-type]

                    await page.screenshot(
                        path=str(output_path),
                        type="jpeg",
                        quality=JPEG_QUALITY,
                        clip=clip,  # type: ignore[arg-type]
                    )
                finally:
                    await context.close()

            artifact = self._verify_artifact(output_path, document)

        except PlaywrightTimeoutError as e:
            cause = f"Page did not settle within {self.config.timeout_ms}ms: {e}"
            self.logger.error("Render timed out", path=str(output_path), error=cause)
            return Failure(cause=cause, error=e)
        except Exception as e:
            cause = f"JPEG capture failed: {e}"
            self.logger.error("Render failed", path=str(output_path), error=cause)
            return Failure(cause=cause, error=e)

        self.logger.info(
            "Render completed", file_name=artifact.file_name, file_size=artifact.file_size
        )
        return Success(artifact)

    def _verify_artifact(self, output_path: Path, document: ComposedDocument) -> RenderArtifact:
        """Check the written file is a complete JPEG of the canvas size."""
        try:
            with Image.open(output_path) as image:
                image.load()
                image_format, size = image.format, image.size
        except (OSError, SyntaxError, ValueError) as e:
            raise RenderError(f"Unreadable capture {output_path.name}: {e}") from e

        if image_format != "JPEG" or size != (document.width, document.height):
            raise RenderError(
                f"Unexpected capture {image_format} {size[0]}x{size[1]}, "
                f"expected JPEG {document.width}x{document.height}"
            )

        return RenderArtifact(
            path=str(output_path),
            file_name=output_path.name,
            file_size=output_path.stat().st_size,
        )
