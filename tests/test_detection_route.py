"""
Tests for POST /analyze.

Uploads go through the real validator, pipeline and classifier; only URL
downloads are mocked.
"""

import base64
import struct
from unittest.mock import AsyncMock, patch

from provscan.config import settings
from tests.builders import (
    TAG_MAKE,
    TAG_MODEL,
    build_png,
    jpeg_segment,
    make_tiny_jpeg,
    make_tiny_png,
    png_chunk,
)


def _upload(client, name, content, content_type):
    return client.post("/analyze", files={"file": (name, content, content_type)})


# ---------------------------------------------------------------------------
# Multipart uploads
# ---------------------------------------------------------------------------


def test_upload_camera_jpeg(client):
    data = make_tiny_jpeg(exif_tags={TAG_MAKE: "Apple", TAG_MODEL: "iPhone 14 Pro"})

    response = _upload(client, "DSC_0042.jpg", data, "image/jpeg")

    assert response.status_code == 200
    body = response.json()
    assert body["verdict"]["is_ai"] is False
    assert body["verdict"]["confidence"] >= 78
    assert body["summary"]["make"] == "Apple"
    assert body["file_name"] == "DSC_0042.jpg"
    assert len(body["file_hash"]) == 64


def test_upload_ai_png(client):
    response = _upload(client, "render.png", make_tiny_png(text={"Software": "Midjourney v6"}), "image/png")

    assert response.status_code == 200
    verdict = response.json()["verdict"]
    assert verdict["is_ai"] is True
    assert verdict["confidence"] == 90
    assert verdict["breakdown"] == [{"label": "AI tool in Software", "weight": 0.9, "sign": 1}]


def test_upload_plain_png_reports_missing_exif(client):
    response = _upload(client, "render.png", make_tiny_png(), "image/png")

    assert response.status_code == 200
    labels = [b["label"] for b in response.json()["verdict"]["breakdown"]]
    assert labels == ["PNG no EXIF", "Missing camera EXIF"]


def test_upload_non_image_rejected(client):
    response = _upload(client, "notes.txt", b"hello", "text/plain")
    assert response.status_code == 415


def test_upload_undecodable_image_still_gets_verdict(client):
    response = _upload(client, "broken.jpg", b"\xff\xd8not really a jpeg", "image/jpeg")

    assert response.status_code == 200
    body = response.json()
    assert body["verdict"]["is_ai"] is True
    assert body["summary"]["exif_keys"] == []
    assert body["summary"]["dimensions"] is None


def test_upload_truncated_jpeg_keeps_jumbf_box(client):
    data = b"\xff\xd8" + jpeg_segment(0xEB, b"JUMBF" + b"\x00" * 16) + b"\xff\xe1\x00\x40abc"

    response = _upload(client, "photo.jpg", data, "image/jpeg")

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["c2pa"] == {"present": True, "box_offset": 2}
    assert body["verdict"]["reasons"][0] == "C2PA provenance data detected (JUMBF)."


def test_upload_png_with_bad_crc_keeps_c2pa_reference(client):
    iend_bad_crc = struct.pack(">I", 0) + b"IEND" + b"\x00\x00\x00\x00"
    data = build_png(png_chunk(b"iTXt", b"c2pa.manifest\x00\x00\x00\x00\x00ref"), with_iend=False) + iend_bad_crc

    response = _upload(client, "render.png", data, "image/png")

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["c2pa"]["present"] is True
    assert body["verdict"]["is_ai"] is True
    assert body["verdict"]["reasons"][0] == "C2PA provenance data detected (JUMBF)."


def test_upload_too_large_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "max_image_upload_mb", 0)
    response = _upload(client, "DSC_0042.jpg", make_tiny_jpeg(), "image/jpeg")
    assert response.status_code == 413


def test_form_url_is_downloaded(client):
    data = make_tiny_jpeg(exif_tags={TAG_MAKE: "Canon", TAG_MODEL: "EOS R5"})
    with patch(
        "provscan.api.detection.download_image",
        new_callable=AsyncMock,
        return_value=(data, "DSC_0001.jpg", "image/jpeg"),
    ) as dl:
        response = client.post("/analyze", files={"url": (None, " https://example.com/DSC_0001.jpg ")})

    assert response.status_code == 200
    assert response.json()["verdict"]["is_ai"] is False
    dl.assert_awaited_once_with("https://example.com/DSC_0001.jpg")


def test_form_without_file_or_url(client):
    response = client.post("/analyze", files={"other": (None, "x")})
    assert response.status_code == 400


# ---------------------------------------------------------------------------
# JSON bodies
# ---------------------------------------------------------------------------


def test_json_data_uri(client):
    uri = "data:image/png;base64," + base64.b64encode(make_tiny_png()).decode()

    response = client.post("/analyze", json={"url": uri})

    assert response.status_code == 200
    body = response.json()
    assert body["file_name"] == "pasted_image.png"
    assert body["summary"]["mime"] == "image/png"


def test_json_missing_url(client):
    response = client.post("/analyze", json={"link": "https://example.com/a.jpg"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing 'url' in JSON body"


def test_json_invalid_body(client):
    response = client.post(
        "/analyze", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


def test_unsupported_content_type(client):
    response = client.post("/analyze", content=b"raw", headers={"Content-Type": "text/plain"})
    assert response.status_code == 415
