"""
Test Data Generators
====================

Request payloads used across unit and integration tests.
"""

from typing import Any, Dict


class PayloadGenerator:
    """Generate generation and deletion request bodies."""

    @staticmethod
    def minimal_generation() -> Dict[str, Any]:
        return {
            "imageUrl": "https://x/a.png",
            "logoUrl": "https://x/b.png",
            "text01": "A",
            "focusText": "B",
            "text02": "C",
        }

    @staticmethod
    def full_generation(**overrides: Any) -> Dict[str, Any]:
        payload = {
            "imageUrl": "https://images.example.com/photos/beach.jpg",
            "logoUrl": "https://cdn.example.com/brand/logo.png",
            "text01": "Summer",
            "focusText": "Sale",
            "text02": "starts today",
            "direction": "ltr",
            "language": "en",
            "focusTextColor": "#1E90FF",
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def rtl_generation() -> Dict[str, Any]:
        return PayloadGenerator.full_generation(
            text01="تخفيضات",
            focusText="الصيف",
            text02="تبدأ اليوم",
            direction="rtl",
            language="ar",
        )

    @staticmethod
    def deletion(file_name: str = "processed_image_1700000000000.jpg") -> Dict[str, Any]:
        return {"fileName": file_name}
