"""
Rendering Module
===============

HTML composition and JPEG rasterization with browser automation.

Components:
- html_generator: Compose post parameters into an HTML document
- rasterizer: Headless Chromium capture of the composed document
- templates: Jinja2 post template
"""
