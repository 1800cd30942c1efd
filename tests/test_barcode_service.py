"""Tests for barcode value derivation and QR artifact rendering."""

import asyncio
import os
import re
from datetime import datetime
from unittest.mock import patch

import pytest
from PIL import Image, ImageChops

from shared.core.config import settings
from asset_service.app.services import barcode_service
from asset_service.app.services.barcode_service import (
    ArtifactGenerationError,
    artifact_exists,
    build_artifact_filename,
    build_artifact_url,
    build_scan_url,
    delete_artifact,
    derive_barcode_value,
    normalize_barcode_value,
    render_barcode_artifact,
    resolve_artifact_path,
    safe_download_name,
)
from conftest import FIXED_NOW, stored_files


# ============================================================
# VALUE DERIVATION
# ============================================================


class TestDeriveBarcodeValue:
    def test_format_and_case(self):
        value = derive_barcode_value("acme", "f100", FIXED_NOW)
        assert re.match(r"^ACME-F100-25\d{4}$", value)

    def test_suffix_is_last_four_millis(self):
        millis = str(int(FIXED_NOW.timestamp() * 1000))
        assert derive_barcode_value("ACME", "F100", FIXED_NOW).endswith(f"25{millis[-4:]}")

    def test_same_instant_same_value(self):
        assert derive_barcode_value("ACME", "F100", FIXED_NOW) == derive_barcode_value("ACME", "F100", FIXED_NOW)

    def test_composite_fixture_token(self):
        value = derive_barcode_value("ACME", "F100-0", FIXED_NOW)
        assert re.match(r"^ACME-F100-0-\d{6}$", value)

    def test_defaults_to_now(self):
        value = derive_barcode_value("ACME", "F100")
        assert value.startswith(f"ACME-F100-{datetime.now().year % 100:02d}")

    def test_normalize(self):
        assert normalize_barcode_value("  acme-f1-250001 ") == "ACME-F1-250001"
        assert normalize_barcode_value(None) == ""


# ============================================================
# NAMES AND URLS
# ============================================================


class TestNamesAndUrls:
    def test_scan_url(self):
        assert build_scan_url("ACME-F100-251234") == (
            "http://testserver/api/v1/barcodes/public/scan/ACME-F100-251234")

    def test_artifact_url_joins_base_at_read_time(self, monkeypatch):
        assert build_artifact_url("barcodes/x.png") == "http://testserver/uploads/barcodes/x.png"
        monkeypatch.setattr(settings, "APP_URL", "https://assets.example.com/")
        assert build_artifact_url("barcodes/x.png") == "https://assets.example.com/uploads/barcodes/x.png"
        assert build_artifact_url(None) is None

    def test_artifact_filename_is_filesystem_safe(self):
        name = build_artifact_filename("ACME-F 100/ä:*")
        assert name.startswith("ACME_F_100____")
        assert re.match(r"^[A-Za-z0-9_.]+$", name)
        assert name.endswith(".png")

    def test_artifact_filenames_differ_between_renders(self):
        assert build_artifact_filename("ACME-F100-251234") != build_artifact_filename("ACME-F100-251234")

    def test_safe_download_name(self):
        assert safe_download_name("QR_A 1/2.png") == "QR_A_1_2.png"

    def test_resolve_rejects_escape(self):
        assert resolve_artifact_path("../../etc/passwd") is None
        assert resolve_artifact_path(None) is None
        assert resolve_artifact_path("barcodes/x.png") == os.path.join(
            os.path.abspath(settings.UPLOAD_DIR), "barcodes", "x.png")


# ============================================================
# RENDERING
# ============================================================


def _render(value, caption=None, directory=None):
    return asyncio.run(render_barcode_artifact(value, caption_text=caption, directory=directory))


class TestRenderBarcodeArtifact:
    def test_writes_png_under_barcode_dir(self):
        artifact = _render("ACME-F100-251234")
        assert artifact.relative_path == f"barcodes/{artifact.filename}"
        assert os.path.isfile(artifact.filepath)
        assert artifact.payload == build_scan_url("ACME-F100-251234")
        assert not [n for n in stored_files(settings.barcode_dir) if n.endswith(".part")]
        with Image.open(artifact.filepath) as image:
            assert image.format == "PNG"
            assert image.size == (settings.BARCODE_IMAGE_SIZE, settings.BARCODE_IMAGE_SIZE)

    def test_caption_extends_canvas(self):
        artifact = _render("ACME-F100-251234", caption="A1")
        size = settings.BARCODE_IMAGE_SIZE
        with Image.open(artifact.filepath) as image:
            assert image.size == (size + 20, size + 40 + 20)

    def test_custom_directory(self):
        artifact = _render("ACME-F100-251234", directory=settings.temp_dir)
        assert artifact.relative_path.startswith("temp/")
        assert os.path.dirname(artifact.filepath) == settings.temp_dir

    def test_same_input_same_pixels(self):
        first = _render("ACME-F100-251234", caption="A1")
        second = _render("ACME-F100-251234", caption="A1")
        assert first.filename != second.filename
        with Image.open(first.filepath) as a, Image.open(second.filepath) as b:
            assert ImageChops.difference(a.convert("RGB"), b.convert("RGB")).getbbox() is None

    def test_decodes_to_scan_url(self):
        pyzbar = pytest.importorskip("pyzbar.pyzbar")
        artifact = _render("ACME-F100-251234", caption="A1")
        with Image.open(artifact.filepath) as image:
            decoded = pyzbar.decode(image)
        assert decoded[0].data.decode() == build_scan_url("ACME-F100-251234")

    def test_missing_logo_is_not_an_error(self, caplog):
        caplog.set_level("INFO")
        _render("ACME-F100-251234")
        assert "rendering without logo" in caplog.text

    def test_logo_is_composited_in_the_centre(self, tmp_path, monkeypatch):
        logo_path = tmp_path / "logo.png"
        Image.new("RGB", (60, 60), (255, 0, 0)).save(logo_path)
        monkeypatch.setattr(settings, "BARCODE_LOGO_PATH", str(logo_path))

        artifact = _render("ACME-F100-251234")
        size = settings.BARCODE_IMAGE_SIZE
        with Image.open(artifact.filepath) as image:
            assert image.convert("RGB").getpixel((size // 2, size // 2)) == (255, 0, 0)

    def test_failure_raises_and_leaves_nothing(self):
        with patch.object(barcode_service.Image.Image, "save", side_effect=OSError("disk full")):
            with pytest.raises(ArtifactGenerationError, match="disk full"):
                _render("ACME-F100-251234")
        assert stored_files(settings.barcode_dir) == []


# ============================================================
# STORE HOUSEKEEPING
# ============================================================


class TestArtifactStore:
    def test_exists_and_delete(self):
        artifact = _render("ACME-F100-251234")
        assert asyncio.run(artifact_exists(artifact.relative_path)) is True
        assert asyncio.run(delete_artifact(artifact.relative_path)) is True
        assert asyncio.run(artifact_exists(artifact.relative_path)) is False

    def test_delete_missing_is_quiet(self):
        assert asyncio.run(delete_artifact("barcodes/never-written.png")) is False
        assert asyncio.run(delete_artifact(None)) is False
