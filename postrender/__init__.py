"""
Post Render Service
===================

Renders parameterized 1080x1080 social-media posts to JPEG through HTML
composition and headless Chromium, and publishes them to Cloudinary.

This package provides:
- FastAPI endpoints for generating and deleting images
- Deterministic HTML/CSS layout composition with Jinja2
- Browser automation with Playwright
- Remote storage through the Cloudinary SDK
"""

__version__ = "1.0.0"
