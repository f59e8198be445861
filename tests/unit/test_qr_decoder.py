"""Tests for the single-shot QR decoder"""

import pytest
from conftest import FakeCamera, FakeQRReader, FakeStream, marked_frame

from proof_capture.core.errors import CameraAccessError
from proof_capture.core.use_cases.qr_decoder import QRDecoder, scan_region


class UnpluggedStream(FakeStream):
    def read_frame(self):
        raise RuntimeError("device unplugged")


class UnpluggedCamera(FakeCamera):
    async def open(self, constraints):
        stream = UnpluggedStream()
        self.opened.append(stream)
        return stream


def make_decoder(frames, results, fps=1000):
    camera = FakeCamera(frames=frames)
    return QRDecoder(camera, FakeQRReader(results), fps=fps), camera


class TestQRDecoder:

    @pytest.mark.asyncio
    async def test_two_frames_with_same_code_fire_once(self):
        decoder, camera = make_decoder([marked_frame(1), marked_frame(1)], {1: "VC123"})
        calls = []

        await decoder.start(calls.append)
        await decoder.wait()

        assert calls == ["VC123"]
        assert decoder.decoded
        assert camera.opened[0].stopped

    @pytest.mark.asyncio
    async def test_frames_without_code_are_not_errors(self):
        decoder, _ = make_decoder([marked_frame(0), marked_frame(0), marked_frame(2)], {2: "  vc://abc  "})
        calls, errors = [], []

        await decoder.start(calls.append, errors.append)
        await decoder.wait()

        assert calls == ["vc://abc"]
        assert errors == []

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self):
        decoder, _ = make_decoder([marked_frame(1)], {1: "VC1"})
        seen = []

        async def on_decode(payload):
            seen.append(payload)

        await decoder.start(on_decode)
        await decoder.wait()

        assert seen == ["VC1"]

    @pytest.mark.asyncio
    async def test_camera_failure_calls_on_error(self):
        decoder = QRDecoder(FakeCamera(fail=OSError("no device")), FakeQRReader())
        calls, errors = [], []

        await decoder.start(calls.append, errors.append)

        assert calls == []
        assert len(errors) == 1
        assert isinstance(errors[0], CameraAccessError)
        assert not decoder.scanning

    @pytest.mark.asyncio
    async def test_stop_twice_is_safe(self):
        decoder, camera = make_decoder(None, {}, fps=10)
        await decoder.start(lambda payload: None)

        decoder.stop()
        decoder.stop()
        await decoder.wait()

        assert not decoder.scanning
        assert camera.opened[0].stop_calls == 1

    @pytest.mark.asyncio
    async def test_start_while_scanning_is_noop(self):
        decoder, camera = make_decoder(None, {}, fps=10)
        await decoder.start(lambda payload: None)
        await decoder.start(lambda payload: None)
        decoder.stop()
        assert len(camera.opened) == 1

    @pytest.mark.asyncio
    async def test_camera_lost_mid_scan_reports_and_releases(self):
        camera = UnpluggedCamera()
        decoder = QRDecoder(camera, FakeQRReader(), fps=1000)
        calls, errors = [], []

        await decoder.start(calls.append, errors.append)
        await decoder.wait()

        assert calls == []
        assert len(errors) == 1
        assert isinstance(errors[0], CameraAccessError)
        assert camera.opened[0].stopped
        assert not decoder.scanning

    def test_scan_region_is_centred_box(self):
        region = scan_region(marked_frame(0, size=400), 250)
        assert region.shape[:2] == (250, 250)
        assert scan_region(marked_frame(0, size=100), 250).shape[:2] == (100, 100)
