"""
List Scanner Backend — Abstract OCR Engine Interface
=====================================================

What:  The single boundary through which the core consumes text recognition.
How:   Concrete engines inherit from OcrEngine and implement
       recognize_text(), recognize_image() and health_check().
Who:   Called by ScanService; GeminiOcrEngine is the production engine and
       tests substitute mocks.

The core never inspects how text was produced. Whatever string an engine
returns is handed to the text parser as-is, so an engine should preserve
one list entry per line.
"""

from abc import ABC, abstractmethod


class OcrEngine(ABC):
    """
    Contract:
        - recognize_text() accepts a stored image path and returns raw text
        - recognize_image() does the same for in-memory image bytes (a
          cropped region of a stored photo)
        - engines do their own retrying and translate provider errors into
          OcrServiceError / CircuitBreakerOpenError
        - "" means no text was found; never None
    """

    @abstractmethod
    async def recognize_text(self, image_path: str) -> str:
        """
        Recognize the text in a shopping list photo.

        Args:
            image_path: Absolute path of a stored PNG or JPEG file.

        Returns:
            The recognized text, one list entry per line where possible.

        Raises:
            OcrServiceError: The engine failed after its retries.
            CircuitBreakerOpenError: The engine is refusing calls for now.
        """
        ...

    @abstractmethod
    async def recognize_image(self, image: bytes, mime_type: str) -> str:
        """Like recognize_text(), for an encoded image held in memory."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the engine is reachable (must not consume quota)."""
        ...
