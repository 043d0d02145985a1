"""
Unit tests for provscan/integrations/c2pa.py.

c2pa.Reader is mocked; the manifest store JSON mirrors what the SDK returns.
"""

import json
from unittest.mock import MagicMock, patch

from provscan.integrations.c2pa import get_c2pa_verification

ACTIVE = "urn:uuid:0f2c6f3e-1111-2222-3333-444455556666"

STORE = {
    "active_manifest": ACTIVE,
    "manifests": {
        ACTIVE: {
            "claim_generator_info": [{"name": "Adobe Photoshop", "version": "25.0"}],
            "signature_info": {"issuer": "Adobe Inc.", "time": "2024-06-15T14:32:00+00:00"},
            "assertions": [{"label": "c2pa.actions"}, {"label": "stds.schema-org.CreativeWork"}],
        }
    },
}


def _patch_reader(store=None, side_effect=None):
    reader = MagicMock()
    reader.__enter__.return_value = reader
    reader.__exit__.return_value = False
    reader.json.return_value = json.dumps(store or {})
    return patch("provscan.integrations.c2pa.c2pa.Reader", return_value=reader, side_effect=side_effect)


def test_valid_manifest_is_verified():
    with _patch_reader(STORE) as reader_cls:
        result = get_c2pa_verification(b"\xff\xd8", "image/jpeg")

    assert result == {
        "status": "verified",
        "issuer": "Adobe Inc.",
        "claims": {
            "claim_generator": "Adobe Photoshop",
            "assertions": ["c2pa.actions", "stds.schema-org.CreativeWork"],
        },
    }
    assert reader_cls.call_args.args[0] == "image/jpeg"


def test_validation_errors_mark_manifest_invalid():
    store = dict(STORE, validation_status=[{"code": "assertion.dataHash.mismatch"}])
    with _patch_reader(store):
        result = get_c2pa_verification(b"\xff\xd8", "image/jpeg")
    assert result["status"] == "invalid"
    assert result["issuer"] == "Adobe Inc."


def test_legacy_claim_generator_field():
    manifest = {"claim_generator": "make_test_images/0.33.1", "signature_info": {}, "assertions": []}
    store = {"active_manifest": "m1", "manifests": {"m1": manifest}}
    with _patch_reader(store):
        result = get_c2pa_verification(b"\x89PNG", "image/png")
    assert result["claims"]["claim_generator"] == "make_test_images/0.33.1"
    assert result["issuer"] is None


def test_store_without_active_manifest_is_none():
    with _patch_reader({"manifests": {}}):
        assert get_c2pa_verification(b"\xff\xd8", "image/jpeg") is None


def test_reader_error_is_none():
    with _patch_reader(side_effect=RuntimeError("ManifestNotFound")):
        assert get_c2pa_verification(b"\xff\xd8", "image/jpeg") is None
