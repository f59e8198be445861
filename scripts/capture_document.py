"""
Capture Document: captura e envia um documento comprobatório pelo terminal.

  --method file    arquivo local (imagem ou PDF)
  --method camera  foto da câmera (OpenCV), ENTER para capturar
  --method qr      scanner de QR na câmera
  --status         tabela de status por subtipo configurado
"""
import argparse
import asyncio
import logging
import mimetypes
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from proof_capture.api.presentation import present
from proof_capture.config.settings import get_settings
from proof_capture.core.entities.document import DocumentSlot
from proof_capture.core.errors import ProofCaptureError
from proof_capture.infrastructure.factory import (
    build_api_client,
    build_capture_flow,
    build_config_cache,
)

QR_TIMEOUT_SECONDS = 60


async def _capture_file(flow, path: Path, slot: DocumentSlot):
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    print(f"  → File: {path.name} ({mime_type}, {path.stat().st_size / 1024 / 1024:.2f} MB)")
    artifact = await flow.prepare_file(path.name, mime_type, path.read_bytes(), slot)
    print(f"  → Prepared: {artifact.origin_name} ({artifact.size_mb:.2f} MB, {artifact.page_count} page(s))")
    return await flow.submit_file(artifact, slot)


async def _capture_camera(flow, slot: DocumentSlot):
    await flow.start_camera()
    print("  → Camera live. Press ENTER to capture...")
    await asyncio.to_thread(input)
    artifact = await flow.capture_photo(slot)
    print(f"  → Captured: {artifact.origin_name} ({artifact.size_mb:.2f} MB)")
    return await flow.submit_file(artifact, slot)


async def _capture_qr(flow, slot: DocumentSlot):
    decoded: asyncio.Future = asyncio.get_running_loop().create_future()

    def on_payload(payload: str):
        if not decoded.done():
            decoded.set_result(payload)

    def on_error(error: ProofCaptureError):
        if not decoded.done():
            decoded.set_exception(error)

    await flow.start_qr_scan(on_payload, on_error)
    print(f"  → Scanning for QR code ({QR_TIMEOUT_SECONDS}s)...")
    try:
        payload = await asyncio.wait_for(decoded, timeout=QR_TIMEOUT_SECONDS)
    finally:
        flow.stop_qr_scan()
    print(f"  → Decoded: {payload[:60]}{'...' if len(payload) > 60 else ''}")
    return await flow.submit_qr(payload, slot)


async def _print_status(flow, configs):
    slots = [c.to_slot() for c in await configs.get_all()]
    statuses = await flow.refresh_statuses(slots)

    print(f"\n{'='*60}")
    print(f"  DOCUMENT STATUS")
    print(f"{'='*60}")
    for slot in slots:
        status = statuses[slot.doc_subtype]
        look = present(status)
        actions = ",".join(name for name, on in status.actions().items() if on) or "-"
        print(f"  {slot.doc_subtype:24s} {look.label_key:22s} {actions}")
    print(f"{'='*60}")


async def run(args) -> int:
    settings = get_settings()
    api = build_api_client(settings)
    configs = build_config_cache(api)
    flow = build_capture_flow(settings, api, configs, user_agent=args.user_agent)

    try:
        if args.status:
            await _print_status(flow, configs)
            return 0

        slot = DocumentSlot(args.doc_type, args.doc_subtype, args.doc_name or args.doc_subtype)
        print(f"\n[1/2] Capturing ({args.method})...")
        if args.method == "file":
            result = await _capture_file(flow, Path(args.file), slot)
        elif args.method == "camera":
            result = await _capture_camera(flow, slot)
        else:
            result = await _capture_qr(flow, slot)

        print("\n[2/2] Upload result")
        outcome = result.outcome
        if outcome.pending_issuance:
            print(f"  → Pending VC issuance ({len(outcome.mapped_data)} mapped fields)")
        elif outcome.record:
            print(f"  → Stored as {outcome.record.doc_id}")
        print(f"  → Server message: {outcome.message or '-'}")
        print(f"  → Documents on server: {len(result.documents)}")
        return 0
    except ProofCaptureError as e:
        print(f"\n  ✗ {type(e).__name__}: {e.display_message}")
        return 1
    except asyncio.TimeoutError:
        print(f"\n  ✗ No QR code detected within {QR_TIMEOUT_SECONDS}s")
        return 1
    finally:
        flow.close()
        await api.aclose()


def main():
    parser = argparse.ArgumentParser(description="Capture and upload a proof document")
    parser.add_argument("--method", default="file", choices=["file", "camera", "qr"])
    parser.add_argument("--file", help="Image or PDF path (--method file)")
    parser.add_argument("--doc-type", default="idProof")
    parser.add_argument("--doc-subtype", default="")
    parser.add_argument("--doc-name", default="")
    parser.add_argument("--user-agent", default=None, help="Mobile UA selects the rear camera")
    parser.add_argument("--status", action="store_true", help="Print document statuses and exit")
    args = parser.parse_args()

    if not args.status:
        if not args.doc_subtype:
            parser.error("--doc-subtype is required")
        if args.method == "file" and not args.file:
            parser.error("--file is required with --method file")

    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    print(f"{'='*60}")
    print(f"  Proof Capture")
    print(f"{'='*60}")
    print(f"  Backend: {settings.backend_base_url}")
    print(f"  Budget:  {settings.max_file_size_mb:g} MB")
    print(f"{'='*60}")

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
