"""C2PA manifest reader (wraps the c2pa-python SDK)."""

import io
import json
import logging
from typing import Any, Dict, Optional

import c2pa

logger = logging.getLogger(__name__)


def get_c2pa_verification(content: bytes, mime_type: str) -> Optional[Dict[str, Any]]:
    """
    Reads the C2PA manifest store embedded in raw image bytes.
    Returns {status, issuer, claims} for the active manifest, or None if not present / on any error.

    status is "verified" when the SDK reports no validation problems, "invalid" otherwise.
    """
    try:
        with c2pa.Reader(mime_type, io.BytesIO(content)) as reader:
            manifest_store = json.loads(reader.json())
    except Exception as e:
        logger.debug(f"[C2PA] No readable manifest store: {e}")
        return None

    active_label = manifest_store.get("active_manifest")
    manifest = manifest_store.get("manifests", {}).get(active_label) if active_label else None
    if not manifest:
        return None

    validation_errors = manifest_store.get("validation_status") or []
    signature_info = manifest.get("signature_info") or {}

    gen_info = manifest.get("claim_generator_info") or []
    generator = (
        gen_info[0].get("name") if gen_info and isinstance(gen_info[0], dict)
        else manifest.get("claim_generator")
    )

    result = {
        "status": "invalid" if validation_errors else "verified",
        "issuer": signature_info.get("issuer"),
        "claims": {
            "claim_generator": generator,
            "assertions": [a.get("label") for a in manifest.get("assertions", []) if isinstance(a, dict)],
        },
    }
    logger.info(f"[C2PA] Active manifest {active_label}: status={result['status']}, issuer={result['issuer']}")
    return result
