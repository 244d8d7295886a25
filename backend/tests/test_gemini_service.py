"""
List Scanner Backend — Gemini OCR Engine Unit Tests (Mocked)
=============================================================

What:  Tests for GeminiOcrEngine with the Google Generative AI SDK patched.
How:   Patches the genai module and swaps in a mock model. Failure tests
       use errors that are not retried so no backoff sleeps run.

What we test:
    ✅ Successful recognition returns the stripped text
    ✅ The image (stored file or cropped bytes) is sent inline with its MIME type
    ✅ Missing image → OcrServiceError without retries, breaker records it
    ✅ Circuit breaker opens after consecutive failures
    ✅ Circuit breaker half-opens after the recovery timeout
    ❌ Real API calls (use integration tests for that)
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from listscanner.exceptions import CircuitBreakerOpenError, OcrServiceError
from listscanner.services.gemini_service import CircuitBreaker, GeminiOcrEngine


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        assert cb.can_execute() is True

    def test_opens_at_threshold(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.state == "open"

    def test_open_circuit_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        cb.record_failure()

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 0 < exc_info.value.recovery_time <= 60

    def test_success_resets_failure_count(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()
        assert cb.failure_count == 2

        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == "closed"

    def test_half_open_after_recovery_timeout(self):
        """With a 0s timeout the next check moves OPEN → HALF_OPEN."""
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        assert cb.state == "open"

        time.sleep(0.01)
        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_failure_in_half_open_reopens(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=0)
        for _ in range(3):
            cb.record_failure()
        cb.can_execute()

        cb.record_failure()
        assert cb.state == "open"

    def test_success_after_half_open_closes(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)
        cb.can_execute()

        cb.record_success()
        assert cb.state == "closed"
        assert cb.failure_count == 0


@pytest.fixture
def image_file(tmp_path, sample_image_bytes):
    path = tmp_path / "list.jpg"
    path.write_bytes(sample_image_bytes)
    return str(path)


class TestGeminiOcrEngineMocked:
    """Tests for GeminiOcrEngine with a mocked Gemini model."""

    @pytest.mark.asyncio
    async def test_recognize_text_success(self, image_file, sample_image_bytes):
        with patch("listscanner.services.gemini_service.genai") as mock_genai:
            mock_response = MagicMock()
            mock_response.text = "  milk\neggs\nbread\n"

            mock_model = MagicMock()
            mock_model.generate_content_async = AsyncMock(return_value=mock_response)
            mock_genai.GenerativeModel.return_value = mock_model

            engine = GeminiOcrEngine(api_key="test-key")
            result = await engine.recognize_text(image_file)

        assert result == "milk\neggs\nbread"
        (contents,), kwargs = mock_model.generate_content_async.await_args
        prompt, image = contents
        assert prompt == GeminiOcrEngine.RECOGNIZE_PROMPT
        assert image == {"mime_type": "image/jpeg", "data": sample_image_bytes}
        assert kwargs["request_options"] == {"timeout": GeminiOcrEngine.REQUEST_TIMEOUT}
        assert engine.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_empty_response_is_empty_text(self, image_file):
        with patch("listscanner.services.gemini_service.genai"):
            engine = GeminiOcrEngine(api_key="test-key")
            engine.model = MagicMock()
            engine.model.generate_content_async = AsyncMock(return_value=MagicMock(text=""))

            assert await engine.recognize_text(image_file) == ""

    @pytest.mark.asyncio
    async def test_recognize_image_sends_bytes_inline(self):
        with patch("listscanner.services.gemini_service.genai"):
            engine = GeminiOcrEngine(api_key="test-key")
            engine.model = MagicMock()
            engine.model.generate_content_async = AsyncMock(return_value=MagicMock(text="milk\n"))

            result = await engine.recognize_image(b"cropped-jpeg", "image/jpeg")

        assert result == "milk"
        (contents,), _ = engine.model.generate_content_async.await_args
        assert contents[1] == {"mime_type": "image/jpeg", "data": b"cropped-jpeg"}

    @pytest.mark.asyncio
    async def test_missing_image_is_not_retried(self, tmp_path):
        with patch("listscanner.services.gemini_service.genai"):
            engine = GeminiOcrEngine(api_key="test-key")
            engine.model = MagicMock()
            engine.model.generate_content_async = AsyncMock()

            with pytest.raises(OcrServiceError) as exc_info:
                await engine.recognize_text(str(tmp_path / "missing.jpg"))

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
        assert exc_info.value.retry_after == engine.circuit_breaker.recovery_timeout
        engine.model.generate_content_async.assert_not_awaited()
        assert engine.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_circuit_breaker_open(self, image_file):
        """When the circuit breaker is open, the model is never called."""
        with patch("listscanner.services.gemini_service.genai"):
            engine = GeminiOcrEngine(api_key="test-key")
            engine.model = MagicMock()
            engine.model.generate_content_async = AsyncMock()

            for _ in range(engine.circuit_breaker.failure_threshold):
                engine.circuit_breaker.record_failure()

            with pytest.raises(CircuitBreakerOpenError):
                await engine.recognize_text(image_file)

        engine.model.generate_content_async.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_health_check_true_when_models_listed(self):
        with patch("listscanner.services.gemini_service.genai") as mock_genai:
            mock_genai.list_models.return_value = [MagicMock()]

            engine = GeminiOcrEngine(api_key="test-key")
            assert await engine.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_false_on_error(self):
        with patch("listscanner.services.gemini_service.genai") as mock_genai:
            mock_genai.list_models.side_effect = RuntimeError("network unreachable")

            engine = GeminiOcrEngine(api_key="test-key")
            assert await engine.health_check() is False
