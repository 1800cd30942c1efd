"""Barcode identity encoding.

Turns a dealer code and fixture number into the canonical barcode value,
and a barcode value into a QR artifact on the shared artifact store.
"""
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional
from urllib.parse import quote

import qrcode
from PIL import Image, ImageDraw, ImageFont
from starlette.concurrency import run_in_threadpool

from shared.core.config import settings

logger = logging.getLogger(__name__)

LOGO_SCALE = 0.18
LOGO_PADDING = 10
CAPTION_HEIGHT = 40
CANVAS_MARGIN = 10
CAPTION_FONT_SIZE = 16
QR_BOX_SIZE = 10
QR_BORDER = 1

_UNSAFE_STEM_CHARS = re.compile(r"[^A-Za-z0-9]")
_UNSAFE_DOWNLOAD_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class ArtifactGenerationError(Exception):
    """Encoding or filesystem failure while producing a barcode artifact."""


@dataclass(frozen=True)
class BarcodeArtifact:
    filename: str
    filepath: str
    # path relative to UPLOAD_DIR, this is what gets stored on the asset
    relative_path: str
    payload: str


def normalize_barcode_value(barcode_value: Optional[str]) -> str:
    return (barcode_value or "").strip().upper()


def derive_barcode_value(dealer_code: str, fixture_token: str, now: Optional[datetime] = None) -> str:
    """DEALERCODE-FIXTURETOKEN-YYSSSS, SSSS being the last 4 digits of the epoch millis."""
    now = now or datetime.now()
    year = f"{now.year % 100:02d}"
    millis = str(int(now.timestamp() * 1000))[-4:]
    return f"{dealer_code}-{fixture_token}-{year}{millis}".upper()


def build_scan_url(barcode_value: str) -> str:
    base_url = settings.APP_URL.rstrip("/")
    return f"{base_url}{settings.API_PREFIX}/barcodes/public/scan/{quote(barcode_value, safe='')}"


def build_artifact_url(relative_path: Optional[str]) -> Optional[str]:
    if not relative_path:
        return None
    return f"{settings.APP_URL.rstrip('/')}/uploads/{relative_path.lstrip('/')}"


def safe_download_name(name: str) -> str:
    return _UNSAFE_DOWNLOAD_CHARS.sub("_", name)


def build_artifact_filename(barcode_value: str) -> str:
    stem = _UNSAFE_STEM_CHARS.sub("_", barcode_value)
    return f"{stem}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.png"


def resolve_artifact_path(relative_path: Optional[str]) -> Optional[str]:
    """Absolute path of a stored artifact ref, None when it escapes the store."""
    if not relative_path:
        return None
    root = os.path.abspath(settings.UPLOAD_DIR)
    path = os.path.abspath(os.path.join(root, relative_path))
    if os.path.commonpath([root, path]) != root:
        return None
    return path


# ----------------------------------------------------------------------
# Image composition (blocking, always called through run_in_threadpool)
# ----------------------------------------------------------------------

def _build_qr_image(payload: str, size: int) -> Image.Image:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(payload)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    return image.resize((size, size), Image.Resampling.NEAREST)


def _overlay_logo(qr_image: Image.Image, logo_path: Optional[str]) -> Image.Image:
    if not logo_path or not os.path.isfile(logo_path):
        logger.info("Barcode logo not found, rendering without logo")
        return qr_image

    try:
        with Image.open(logo_path) as source:
            logo = source.convert("RGBA")
    except OSError:
        logger.info("Barcode logo at %s could not be read, rendering without logo", logo_path)
        return qr_image

    width, height = qr_image.size
    logo_size = int(width * LOGO_SCALE)
    logo = logo.resize((logo_size, logo_size), Image.Resampling.LANCZOS)

    # opaque light patch behind the logo keeps the finder area readable
    patch_size = logo_size + LOGO_PADDING
    patch = Image.new("RGB", (patch_size, patch_size), "white")
    qr_image.paste(patch, ((width - patch_size) // 2, (height - patch_size) // 2))
    qr_image.paste(logo, ((width - logo_size) // 2, (height - logo_size) // 2), logo)
    return qr_image


@lru_cache(maxsize=1)
def _caption_font():
    try:
        return ImageFont.truetype("DejaVuSans.ttf", CAPTION_FONT_SIZE)
    except OSError:
        return ImageFont.load_default()


def _add_caption(qr_image: Image.Image, caption_text: str) -> Image.Image:
    width, height = qr_image.size
    canvas = Image.new(
        "RGB",
        (width + 2 * CANVAS_MARGIN, height + CAPTION_HEIGHT + 2 * CANVAS_MARGIN),
        "white",
    )
    canvas.paste(qr_image, (CANVAS_MARGIN, CANVAS_MARGIN))

    draw = ImageDraw.Draw(canvas)
    font = _caption_font()
    left, top, right, bottom = draw.textbbox((0, 0), caption_text, font=font)
    x = (canvas.width - (right - left)) / 2 - left
    y = height + CANVAS_MARGIN + (CAPTION_HEIGHT - (bottom - top)) / 2 - top
    draw.text((x, y), caption_text, fill="black", font=font)
    return canvas


def _write_png(image: Image.Image, filepath: str):
    # write beside the target and rename, readers never see a partial file
    partial = f"{filepath}.part"
    try:
        image.save(partial, format="PNG")
        os.replace(partial, filepath)
    except Exception:
        if os.path.exists(partial):
            os.remove(partial)
        raise


def _render_to_file(payload: str, caption_text: Optional[str], filepath: str):
    os.makedirs(os.path.dirname(filepath), exist_ok=True)
    image = _build_qr_image(payload, settings.BARCODE_IMAGE_SIZE)
    image = _overlay_logo(image, settings.logo_path)
    if caption_text:
        image = _add_caption(image, caption_text)
    _write_png(image, filepath)


# ----------------------------------------------------------------------
# Async API
# ----------------------------------------------------------------------

async def render_barcode_artifact(
        barcode_value: str,
        caption_text: Optional[str] = None,
        directory: Optional[str] = None) -> BarcodeArtifact:
    directory = directory or settings.barcode_dir
    payload = build_scan_url(barcode_value)
    filename = build_artifact_filename(barcode_value)
    filepath = os.path.join(directory, filename)

    try:
        await run_in_threadpool(_render_to_file, payload, caption_text, filepath)
    except Exception as e:
        logger.exception("Barcode artifact generation failed for %s", barcode_value)
        raise ArtifactGenerationError(
            f"Failed to generate barcode image: {e}") from e

    relative_path = os.path.relpath(
        os.path.abspath(filepath), os.path.abspath(settings.UPLOAD_DIR))
    return BarcodeArtifact(
        filename=filename,
        filepath=filepath,
        relative_path=relative_path.replace(os.sep, "/"),
        payload=payload,
    )


async def artifact_exists(relative_path: Optional[str]) -> bool:
    path = resolve_artifact_path(relative_path)
    if path is None:
        return False
    return await run_in_threadpool(os.path.isfile, path)


async def delete_artifact(relative_path: Optional[str]) -> bool:
    """Best-effort removal. Failures are logged, never raised."""
    path = resolve_artifact_path(relative_path)
    if path is None:
        return False
    try:
        await run_in_threadpool(os.remove, path)
        return True
    except FileNotFoundError:
        logger.info("Barcode artifact %s already removed", relative_path)
    except OSError as e:
        logger.warning("Could not delete barcode artifact %s: %s", relative_path, e)
    return False
