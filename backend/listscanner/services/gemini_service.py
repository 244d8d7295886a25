"""
List Scanner Backend — Google Gemini OCR Engine
================================================

What:  OcrEngine implementation that asks Gemini to transcribe a shopping
       list photo, one entry per line.
How:   Reads the stored image with aiofiles (or takes cropped image bytes)
       and sends it inline with a transcription prompt. The call is wrapped
       in tenacity retries and a circuit breaker.
Who:   Created once in create_app(); called by ScanService.scan_photo().

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker so a Gemini outage fails scans immediately instead of
       stacking up slow retries
    3. Per-call request timeout
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Optional

import aiofiles
import google.generativeai as genai
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from listscanner.config import settings
from listscanner.exceptions import CircuitBreakerOpenError, OcrServiceError
from listscanner.services.file_service import FileService
from listscanner.services.ocr_base import OcrEngine

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not shared between processes; each uvicorn worker keeps its own state.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        True when a call may proceed.

        Raises:
            CircuitBreakerOpenError: OPEN and the recovery timeout has not
                elapsed yet.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini OCR Engine
# ══════════════════════════════════════════════════════════════════════════

class GeminiOcrEngine(OcrEngine):
    """
    Error Handling Chain:
        API call fails → tenacity retries (retry_max_attempts, with backoff)
        → all attempts fail → circuit breaker failure, OcrServiceError
        → threshold reached → later calls rejected instantly
        → recovery timeout → one test call (HALF_OPEN)
    """

    # The parser splits on newlines and strips bullets, so ask for exactly
    # that shape and nothing else.
    RECOGNIZE_PROMPT = """You are transcribing a photo of a shopping list.

Instructions:
1. Return every list entry on its own line, in the order written
2. Keep quantities and units with their entry (e.g. "2 kg potatoes")
3. Bullets and numbering may be kept or dropped
4. Do not add headings, commentary, or descriptions of the image
5. If there is no readable list in the image, return an empty response

Transcribe the shopping list in this image:"""

    REQUEST_TIMEOUT = 60

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model_name = model_name or settings.gemini_model

        if api_key and api_key != "your_gemini_api_key_here":
            genai.configure(api_key=api_key)

        self.model = genai.GenerativeModel(self.model_name)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiOcrEngine initialized with model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.model_name,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    async def recognize_text(self, image_path: str) -> str:
        """
        Transcribe a stored photo.

        Flow:
            1. Circuit breaker check (may raise CircuitBreakerOpenError)
            2. Gemini call with retries
            3. Record success/failure on the breaker

        Raises:
            CircuitBreakerOpenError: Too many recent failures.
            OcrServiceError: Gemini failed after all attempts.
        """
        # Filename only; stored paths are not logged
        return await self._recognize(lambda: self._read_image(image_path), Path(image_path).name)

    async def recognize_image(self, image: bytes, mime_type: str) -> str:
        """Transcribe an in-memory image (e.g. a cropped region)."""

        async def load() -> dict:
            return {"mime_type": mime_type, "data": image}

        return await self._recognize(load, f"{len(image)} bytes of {mime_type}")

    async def _recognize(self, load_image: Callable[[], Awaitable[dict]], label: str) -> str:
        request_id = str(uuid.uuid4())[:8]

        self.circuit_breaker.can_execute()

        logger.info("[%s] Starting Gemini OCR for image: %s", request_id, label)

        try:
            result = await self._call_gemini_with_retry(load_image, request_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Gemini OCR failed after retries: %s",
                request_id,
                str(e),
                exc_info=True,
            )
            raise OcrServiceError(
                message="Text recognition failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={
                    "request_id": request_id,
                    "attempts": settings.retry_max_attempts,
                    "error_type": type(e).__name__,
                },
            ) from e

        self.circuit_breaker.record_success()
        return result

    async def _read_image(self, image_path: str) -> dict:
        async with aiofiles.open(image_path, "rb") as f:
            data = await f.read()
        return {"mime_type": FileService.mime_type_for(image_path), "data": data}

    @retry(
        # A missing file will not appear on retry
        retry=retry_if_not_exception_type(FileNotFoundError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        # wait = min(max_wait, min_wait * 2^attempt) + random(0, 1)
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini_with_retry(
        self,
        load_image: Callable[[], Awaitable[dict]],
        request_id: str,
    ) -> str:
        start_time = time.time()

        try:
            image = await load_image()
            response = await self.model.generate_content_async(
                [self.RECOGNIZE_PROMPT, image],
                request_options={"timeout": self.REQUEST_TIMEOUT},
            )
            text = response.text.strip() if response.text else ""
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "[%s] Gemini API call failed after %.0fms: %s",
                request_id,
                duration_ms,
                str(e),
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "[%s] Gemini OCR completed in %.0fms, recognized %d lines",
            request_id,
            duration_ms,
            len(text.splitlines()),
        )
        return text

    async def health_check(self) -> bool:
        """Lists models (no token cost) to verify the key and connectivity."""
        try:
            model_names = [m.name for m in genai.list_models()]
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False

        target = f"models/{self.model_name}"
        if target not in model_names:
            logger.warning("Configured model %s not found in available models", target)
        return True
