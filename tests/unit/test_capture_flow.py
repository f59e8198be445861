"""Tests for the end-to-end capture flow"""

import numpy as np
import pytest
from conftest import (
    FINALIZED,
    FakeCamera,
    FakeCodec,
    FakeConfigProvider,
    FakeDocumentApi,
    FakePDFRenderer,
    build_flow,
    marked_frame,
)

from proof_capture.core.entities.artifact import MB
from proof_capture.core.entities.display_state import DocumentDisplayState as State
from proof_capture.core.entities.document import DocumentSlot, DocumentSubtypeConfig
from proof_capture.core.errors import (
    ActionNotAllowedError,
    CompressionError,
    ConversionError,
    ValidationError,
)
from proof_capture.core.use_cases.capture_session import CaptureState


class TestPrepareFile:

    @pytest.mark.asyncio
    async def test_small_image_passes_untouched(self, slot):
        codec = FakeCodec()
        flow = build_flow(codec=codec)

        artifact = await flow.prepare_file("id.jpg", "image/jpeg", b"x" * MB, slot)

        assert artifact.size_bytes == MB
        assert codec.compress_calls == []

    @pytest.mark.asyncio
    async def test_image_near_budget_is_compressed(self, slot):
        codec = FakeCodec(compressed=b"c" * 1000)
        flow = build_flow(codec=codec)

        artifact = await flow.prepare_file("id.png", "image/png", b"x" * int(1.9 * MB), slot)

        assert artifact.size_bytes == 1000
        assert artifact.mime_type == "image/jpeg"
        assert len(codec.compress_calls) == 1

    @pytest.mark.asyncio
    async def test_pdf_is_converted_to_image(self, slot):
        flow = build_flow(codec=FakeCodec(encoded=b"jpeg"))

        artifact = await flow.prepare_file("marks.pdf", "application/pdf", b"%PDF", slot)

        assert artifact.mime_type == "image/jpeg"
        assert artifact.data == b"jpeg"

    @pytest.mark.asyncio
    async def test_invalid_type_is_rejected_before_any_work(self, slot):
        renderer = FakePDFRenderer()
        flow = build_flow(renderer=renderer)

        with pytest.raises(ValidationError):
            await flow.prepare_file("notes.txt", "text/plain", b"hello", slot)

        assert renderer.documents == []

    @pytest.mark.asyncio
    async def test_broken_pdf_fails(self, slot):
        flow = build_flow(renderer=FakePDFRenderer([np.zeros((5, 5, 3), np.uint8)], fail_on=0))
        with pytest.raises(ConversionError):
            await flow.prepare_file("marks.pdf", "application/pdf", b"%PDF", slot)

    @pytest.mark.asyncio
    async def test_compression_that_cannot_fit_fails_closed(self, slot):
        api = FakeDocumentApi()
        flow = build_flow(api=api, codec=FakeCodec(compressed=b"c" * (3 * MB)))

        with pytest.raises(CompressionError):
            await flow.prepare_file("id.jpg", "image/jpeg", b"x" * int(1.9 * MB), slot)

        assert api.uploads == []


    @pytest.mark.asyncio
    async def test_compressed_result_under_limit_is_accepted(self, slot):
        codec = FakeCodec(compressed=b"c" * int(1.7 * MB))
        flow = build_flow(codec=codec, budget=2 * MB)

        artifact = await flow.prepare_file("id.jpg", "image/jpeg", b"x" * int(1.9 * MB), slot)

        assert artifact.size_bytes == int(1.7 * MB)
        assert codec.compress_calls[0].max_size_mb == 2


class TestCameraOwnership:

    @pytest.mark.asyncio
    async def test_starting_qr_releases_capture_camera(self):
        camera = FakeCamera()
        flow = build_flow(camera=camera)
        await flow.start_camera()

        await flow.start_qr_scan(lambda payload: None)

        assert camera.opened[0].stopped
        assert flow.capture_session.state == CaptureState.IDLE
        assert flow.qr_decoder.scanning
        flow.close()

    @pytest.mark.asyncio
    async def test_starting_camera_stops_qr(self):
        camera = FakeCamera()
        flow = build_flow(camera=camera)
        await flow.start_qr_scan(lambda payload: None)

        await flow.start_camera()

        assert camera.opened[0].stopped
        assert not flow.qr_decoder.scanning
        assert flow.capture_session.is_live
        flow.close()

    @pytest.mark.asyncio
    async def test_close_tears_everything_down(self):
        camera = FakeCamera()
        flow = build_flow(camera=camera)
        await flow.start_camera()

        flow.close()

        assert not flow.alive
        assert all(stream.stopped for stream in camera.opened)

    @pytest.mark.asyncio
    async def test_camera_photo_is_tagged_camera_capture(self, slot):
        api = FakeDocumentApi(upload_response=FINALIZED)
        flow = build_flow(api=api)
        await flow.start_camera()

        photo = await flow.capture_photo(slot)
        await flow.submit_file(photo, slot)

        assert api.uploads[0]["fields"]["importedFrom"] == "Camera Capture"


    @pytest.mark.asyncio
    async def test_over_budget_photo_is_discarded(self, slot):
        camera = FakeCamera()
        codec = FakeCodec(encoded=b"x" * (3 * MB), compressed=b"c" * (3 * MB))
        flow = build_flow(camera=camera, codec=codec)
        await flow.start_camera()

        with pytest.raises(CompressionError):
            await flow.capture_photo(slot)

        assert flow.capture_session.state == CaptureState.IDLE
        assert flow.capture_session.artifact is None
        assert camera.opened[0].stopped


class TestSubmission:

    @pytest.mark.asyncio
    async def test_submit_refetches_list(self, slot):
        api = FakeDocumentApi(upload_response=FINALIZED, documents=[FINALIZED["data"]])
        flow = build_flow(api=api)
        artifact = await flow.prepare_file("id.jpg", "image/jpeg", b"x" * 10, slot)

        result = await flow.submit_file(artifact, slot)

        assert api.list_calls == 1
        assert [d.doc_id for d in result.documents] == ["7"]
        assert result.outcome.record.doc_id == "7"

    @pytest.mark.asyncio
    async def test_subtype_budget_applies_to_upload(self, slot):
        config = DocumentSubtypeConfig("academic", "marksheet", name="Marksheet", max_file_size_bytes=10 * MB)
        api = FakeDocumentApi(upload_response=FINALIZED)
        flow = build_flow(api=api, configs=FakeConfigProvider([config]), budget=2 * MB)

        artifact = await flow.prepare_file("id.jpg", "image/jpeg", b"x" * (3 * MB), slot)
        result = await flow.submit_file(artifact, slot)

        assert result is not None
        assert len(api.uploads[0]["data"]) == 3 * MB

    @pytest.mark.asyncio
    async def test_submit_after_close_is_dropped(self, slot):
        api = FakeDocumentApi(upload_response=FINALIZED)
        flow = build_flow(api=api)
        artifact = await flow.prepare_file("id.jpg", "image/jpeg", b"x" * 10, slot)
        flow.close()

        assert await flow.submit_file(artifact, slot) is None
        assert api.uploads == []

    @pytest.mark.asyncio
    async def test_response_arriving_after_close_is_ignored(self, slot):
        flow_holder = {}

        class ClosingApi(FakeDocumentApi):
            async def upload_document_qr(self, payload):
                flow_holder["flow"].close()
                return await super().upload_document_qr(payload)

        api = ClosingApi(upload_response=FINALIZED)
        flow = build_flow(api=api)
        flow_holder["flow"] = flow

        assert await flow.submit_qr("VC123", slot) is None
        assert api.list_calls == 0

    @pytest.mark.asyncio
    async def test_qr_scan_then_submit(self, slot):
        api = FakeDocumentApi(upload_response=FINALIZED)
        flow = build_flow(api=api, camera=FakeCamera(frames=[marked_frame(1)]), qr_results={1: "VC123"})
        results = []

        async def on_payload(payload):
            results.append(await flow.submit_qr(payload, slot))

        await flow.start_qr_scan(on_payload)
        await flow.qr_decoder.wait()

        assert api.qr_uploads[0]["qrContent"] == "VC123"
        assert results[0].outcome.authoritative is False


class TestStatuses:

    @pytest.mark.asyncio
    async def test_refresh_statuses_resolves_each_slot(self, vc_config):
        api = FakeDocumentApi(documents=[
            {"doc_id": "1", "doc_type": "academic", "doc_subtype": "marksheet",
             "doc_verified": True, "vc_status": "issued"},
        ])
        flow = build_flow(api=api, configs=FakeConfigProvider([vc_config]))
        slots = [DocumentSlot("academic", "marksheet", "Marksheet"), DocumentSlot("id", "aadhaar", "Aadhaar")]

        statuses = await flow.refresh_statuses(slots)

        assert statuses["marksheet"].state == State.ISSUED
        assert statuses["aadhaar"].state == State.INCOMPLETE

    @pytest.mark.asyncio
    async def test_unreachable_policy_is_provisional(self, network_down):
        api = FakeDocumentApi(documents=[{"doc_id": "1", "doc_type": "academic", "doc_subtype": "marksheet"}])
        flow = build_flow(api=api, configs=FakeConfigProvider(fail=network_down))

        statuses = await flow.refresh_statuses([DocumentSlot("academic", "marksheet", "Marksheet")])

        assert statuses["marksheet"].is_provisional

    @pytest.mark.asyncio
    async def test_missing_policy_means_no_vc_issuance(self):
        api = FakeDocumentApi(documents=[
            {"doc_id": "1", "doc_type": "academic", "doc_subtype": "marksheet", "doc_verified": True},
        ])
        flow = build_flow(api=api, configs=FakeConfigProvider([]))

        statuses = await flow.refresh_statuses([DocumentSlot("academic", "marksheet", "Marksheet")])

        assert statuses["marksheet"].state == State.VERIFIED


class TestDelete:

    @pytest.mark.asyncio
    async def test_pending_document_cannot_be_deleted(self, slot, vc_config):
        api = FakeDocumentApi(documents=[
            {"doc_id": "1", "doc_type": "academic", "doc_subtype": "marksheet", "vc_status": "pending"},
        ])
        flow = build_flow(api=api, configs=FakeConfigProvider([vc_config]))

        with pytest.raises(ActionNotAllowedError):
            await flow.delete_document(slot)

        assert api.deleted == []

    @pytest.mark.asyncio
    async def test_available_document_is_deleted_and_list_refetched(self, slot, vc_config):
        api = FakeDocumentApi(documents=[
            {"doc_id": "1", "doc_type": "academic", "doc_subtype": "marksheet"},
        ])
        flow = build_flow(api=api, configs=FakeConfigProvider([vc_config]))

        documents = await flow.delete_document(slot)

        assert api.deleted == ["1"]
        assert documents == []
