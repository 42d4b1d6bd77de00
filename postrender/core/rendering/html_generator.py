"""
HTML Generator
==============

Compose validated post parameters into a self-contained HTML document
for browser rendering. Composition is pure: the same request always yields
byte-identical markup.
"""

from typing import Any, Dict
from pathlib import Path
from abc import ABC, abstractmethod
import jinja2

from postrender.config.logging import get_logger
from postrender.models.schemas import ComposedDocument, GenerationRequest, TextDirection

logger = get_logger(__name__)

CANVAS_SIZE = 1080
BACKGROUND_BRIGHTNESS = 0.7
GRADIENT_HEIGHT = 100
LOGO_SIZE = 100
LOGO_INSET = 20
TEXT_BOTTOM_OFFSET = 100

TEMPLATE_NAME = "post.html"


class HTMLGenerationError(Exception):
    """Exception raised when HTML generation fails."""

    pass


def css_url(value: Any) -> str:
    """Escape a URL for use inside a single-quoted CSS url() string."""
    escaped = []
    for char in str(value):
        if char in ("\\", "'", '"', "(", ")"):
            escaped.append("\\" + char)
        elif char in ("\n", "\r", "\f"):
            escaped.append("\\%x " % ord(char))
        else:
            escaped.append(char)
    return "".join(escaped)


def logo_side_for(direction: TextDirection) -> str:
    """The logo sits in the top corner opposite the reading direction."""
    return "left" if direction is TextDirection.RTL else "right"


class BaseHTMLGenerator(ABC):
    """Abstract base class for post composers."""

    @abstractmethod
    def compose(self, request: GenerationRequest) -> ComposedDocument:
        """Compose an HTML document from a validated request."""
        pass


class PostHTMLGenerator(BaseHTMLGenerator):
    """Jinja2-based composer for the fixed 1080x1080 post layout."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(generator="jinja2")
        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup Jinja2 template environment."""
        template_dir = Path(__file__).parent / "templates"
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
        )
        self.env.filters["css_url"] = css_url
        self.template = self.env.get_template(TEMPLATE_NAME)

    def compose(self, request: GenerationRequest) -> ComposedDocument:
        """
        Compose the post document.

        Args:
            request: Validated generation request

        Returns:
            ComposedDocument holding the markup and its layout facts

        Raises:
            HTMLGenerationError: If template rendering fails
        """
        logo_side = logo_side_for(request.direction)

        try:
            html = self.template.render(**self._prepare_context(request, logo_side))
        except jinja2.TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            self.logger.error("HTML generation failed", error=error_msg)
            raise HTMLGenerationError(error_msg) from e

        self.logger.debug(
            "HTML composition completed",
            direction=request.direction.value,
            logo_side=logo_side,
            html_length=len(html),
        )

        return ComposedDocument(
            html=html,
            width=CANVAS_SIZE,
            height=CANVAS_SIZE,
            direction=request.direction,
            language=request.language,
            logo_side=logo_side,
        )

    def _prepare_context(self, request: GenerationRequest, logo_side: str) -> Dict[str, Any]:
        """Template context; only request fields and layout constants."""
        return {
            "language": request.language,
            "direction": request.direction.value,
            "image_url": request.image_url,
            "logo_url": request.logo_url,
            "text01": request.text01,
            "focus_text": request.focus_text,
            "text02": request.text02,
            "focus_color": request.focus_text_color,
            "logo_side": logo_side,
            "canvas_size": CANVAS_SIZE,
            "brightness": BACKGROUND_BRIGHTNESS,
            "gradient_height": GRADIENT_HEIGHT,
            "logo_size": LOGO_SIZE,
            "logo_inset": LOGO_INSET,
            "text_bottom": TEXT_BOTTOM_OFFSET,
        }


def compose_post(request: GenerationRequest) -> ComposedDocument:
    """Compose a post document with the default generator."""
    return PostHTMLGenerator().compose(request)
