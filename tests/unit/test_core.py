import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI

from videovault.config.logging import JsonFormatter
from videovault.core.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError, CircuitState
from videovault.core.exceptions import NotFoundError, UpstreamError
from videovault.core.telemetry import excluded_handlers, setup_telemetry
from videovault.models.schemas import UploadResult
from videovault.services.media import MediaService


async def _fail():
    raise ConnectionError("Error")


async def _ok():
    return "success"


class TestCircuitBreaker:
    def test_initial_state(self):
        cb = CircuitBreaker("test", failure_threshold=2)
        assert cb.state == CircuitState.CLOSED
        assert cb.name == "test"

    @pytest.mark.asyncio
    async def test_successful_call(self):
        cb = CircuitBreaker("test")
        mock_func = AsyncMock(return_value="success")

        result = await cb.call(mock_func)

        assert result == "success"
        assert cb.state == CircuitState.CLOSED
        mock_func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_call_opens_after_threshold(self):
        cb = CircuitBreaker("test", failure_threshold=2)

        # 1st failure
        with pytest.raises(ConnectionError):
            await cb.call(_fail)
        assert cb.state == CircuitState.CLOSED

        # 2nd failure -> Open
        with pytest.raises(ConnectionError):
            await cb.call(_fail)
        assert cb._failure_count == 2
        assert cb.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_open_circuit_raises_error_no_fallback(self):
        cb = CircuitBreaker("test", failure_threshold=1)
        with pytest.raises(ConnectionError):
            await cb.call(_fail)

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            await cb.call(_ok)
        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value, UpstreamError)

    @pytest.mark.asyncio
    async def test_fallback_usage(self):
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=1)
        mock_fallback = MagicMock(return_value="fallback")

        res = await cb.call(_fail, fallback=mock_fallback)
        assert res == "fallback"
        assert cb.state == CircuitState.OPEN

        res2 = await cb.call(_ok, fallback=mock_fallback)
        assert res2 == "fallback"

    @pytest.mark.asyncio
    async def test_recovery_half_open(self):
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=0.1)
        with pytest.raises(ConnectionError):
            await cb.call(_fail)

        await asyncio.sleep(0.15)

        res = await cb.call(_ok)
        assert res == "success"
        assert cb.state == CircuitState.CLOSED
        assert cb._failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self):
        cb = CircuitBreaker("test", failure_threshold=3, recovery_timeout_sec=0.05)
        for _ in range(3):
            with pytest.raises(ConnectionError):
                await cb.call(_fail)

        await asyncio.sleep(0.1)
        with pytest.raises(ConnectionError):
            await cb.call(_fail)
        assert cb.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_manual_reset(self):
        cb = CircuitBreaker("test", failure_threshold=1)
        with pytest.raises(ConnectionError):
            await cb.call(_fail)
        assert cb.state == CircuitState.OPEN

        cb.reset()
        assert cb.state == CircuitState.CLOSED


class TestMediaService:
    @pytest.mark.asyncio
    async def test_upload_wraps_failures(self):
        storage = MagicMock()
        storage.upload = AsyncMock(side_effect=ConnectionError("refused"))
        media = MediaService(storage, CircuitBreaker("storage", failure_threshold=5))

        with pytest.raises(UpstreamError) as exc_info:
            await media.upload("/tmp/clip.mp4", resource_type="video")
        assert exc_info.value.status_code == 500
        assert exc_info.value.details["service"] == "object_storage"

    @pytest.mark.asyncio
    async def test_upload_times_out(self):
        async def slow_upload(local_path, resource_type="auto"):
            await asyncio.sleep(1)
            return UploadResult(url="https://x/y.mp4", public_id="y")

        storage = MagicMock()
        storage.upload = slow_upload
        media = MediaService(storage, timeout_sec=0.01)

        with pytest.raises(UpstreamError) as exc_info:
            await media.upload("/tmp/clip.mp4")
        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_open_circuit_fails_fast(self):
        storage = MagicMock()
        storage.upload = AsyncMock(side_effect=ConnectionError("refused"))
        media = MediaService(storage, CircuitBreaker("storage", failure_threshold=1))

        with pytest.raises(UpstreamError):
            await media.upload("/tmp/a.mp4")
        with pytest.raises(CircuitBreakerOpenError):
            await media.upload("/tmp/b.mp4")
        assert storage.upload.await_count == 1

    @pytest.mark.asyncio
    async def test_discard_is_best_effort(self):
        storage = MagicMock()
        storage.delete = AsyncMock(side_effect=ConnectionError("refused"))
        media = MediaService(storage)

        assert await media.discard("https://x/image/upload/abc.png") is False
        assert await media.discard(None) is False
        storage.delete.assert_awaited_once_with("abc", "image")


class TestExceptions:
    def test_error_envelope(self):
        body = NotFoundError("video", "abc").to_dict()
        assert body == {
            "statusCode": 404,
            "success": False,
            "message": "Video not found: abc",
            "error": {"code": "NOT_FOUND", "details": {"resource": "video", "identifier": "abc"}},
        }


class TestJsonFormatter:
    def test_context_fields_included(self):
        record = logging.LogRecord("videovault", logging.INFO, __file__, 1, "Video created", None, None)
        record.video_id = "v1"
        record.viewer_id = "u1"

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "Video created"
        assert payload["video_id"] == "v1"
        assert payload["viewer_id"] == "u1"
        assert "playlist_id" not in payload


class TestTelemetry:
    @patch("videovault.core.telemetry.get_settings")
    @patch("videovault.core.telemetry.Instrumentator")
    def test_setup_telemetry_prometheus_enabled(self, mock_instrumentator, mock_get_settings):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = True
        mock_settings.ENABLE_OTEL = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_instrumentator.assert_called_once()
        assert mock_instrumentator.call_args.kwargs["excluded_handlers"] == excluded_handlers()
        mock_instrumentator.return_value.instrument.assert_called_once_with(app)

    @patch("videovault.core.telemetry.get_settings")
    @patch("videovault.core.telemetry.trace")
    @patch("videovault.core.telemetry.OTLPSpanExporter")
    @patch("videovault.core.telemetry.BatchSpanProcessor")
    @patch("videovault.core.telemetry.FastAPIInstrumentor")
    def test_setup_telemetry_otel_enabled(
        self, mock_fastapi_instr, mock_processor, mock_exporter, mock_trace, mock_get_settings
    ):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = False
        mock_settings.ENABLE_OTEL = True
        mock_settings.APP_NAME = "test"
        mock_settings.APP_VERSION = "1.0"
        mock_settings.DEBUG = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_fastapi_instr.instrument_app.assert_called_once()
        mock_processor.assert_called_once_with(mock_exporter.return_value)
        mock_trace.set_tracer_provider.assert_called_once()


class TestCircuitBreakerClock:
    @pytest.mark.asyncio
    async def test_recovery_uses_injected_clock(self):
        now = [100.0]
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=30, clock=lambda: now[0])
        with pytest.raises(ConnectionError):
            await cb.call(_fail)

        now[0] += 29
        with pytest.raises(CircuitBreakerOpenError):
            await cb.call(_ok)

        now[0] += 1
        assert await cb.call(_ok) == "success"
        assert cb.snapshot() == {"name": "test", "state": "closed", "failure_count": 0}

    @pytest.mark.asyncio
    async def test_half_open_admits_one_trial_call(self):
        now = [0.0]
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=30, clock=lambda: now[0])
        with pytest.raises(ConnectionError):
            await cb.call(_fail)
        now[0] += 30

        release = asyncio.Event()

        async def slow_ok():
            await release.wait()
            return "trial"

        trial = asyncio.ensure_future(cb.call(slow_ok))
        await asyncio.sleep(0)
        assert cb.state == CircuitState.HALF_OPEN

        with pytest.raises(CircuitBreakerOpenError):
            await cb.call(_ok)

        release.set()
        assert await trial == "trial"
        assert cb.state == CircuitState.CLOSED
        assert await cb.call(_ok) == "success"

    @pytest.mark.asyncio
    async def test_cancelled_trial_frees_the_slot(self):
        now = [0.0]
        cb = CircuitBreaker("test", failure_threshold=1, recovery_timeout_sec=30, clock=lambda: now[0])
        with pytest.raises(ConnectionError):
            await cb.call(_fail)
        now[0] += 30

        trial = asyncio.ensure_future(cb.call(lambda: asyncio.sleep(10)))
        await asyncio.sleep(0)
        trial.cancel()
        with pytest.raises(asyncio.CancelledError):
            await trial

        assert await cb.call(_ok) == "success"
        assert cb.state == CircuitState.CLOSED
