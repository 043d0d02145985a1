"""
Analysis route: /analyze

Accepts multipart/form-data with a 'file' or 'url' field,
or a JSON payload { "url": "https://..." } (data: URIs are accepted too).
"""

import json
import logging
import time

from fastapi import APIRouter, HTTPException, Request
from starlette.datastructures import UploadFile

from provscan.core.file_validator import validate_file
from provscan.detection.pipeline import analyze_image
from provscan.schemas.detection import AnalysisResponse
from provscan.services.detection_service import download_image

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Detection"])


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze(request: Request):
    """
    Classify an image as AI-generated or camera-captured.
    """
    file_content = None
    filename = "unknown"
    content_type = None

    request_type = request.headers.get("content-type", "")

    if "application/json" in request_type:
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Invalid JSON body")
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url or not isinstance(url, str):
            raise HTTPException(status_code=400, detail="Missing 'url' in JSON body")
        file_content, filename, content_type = await download_image(url.strip())

    elif "multipart/form-data" in request_type:
        form = await request.form()
        file_obj = form.get("file")
        url_obj = form.get("url")

        if file_obj is not None:
            if not isinstance(file_obj, UploadFile):
                raise HTTPException(status_code=400, detail="Invalid file upload format")
            file_content = await file_obj.read()
            filename = file_obj.filename or "uploaded_file"
            content_type = file_obj.content_type
        elif url_obj:
            if not isinstance(url_obj, str):
                raise HTTPException(status_code=400, detail="Invalid url field")
            file_content, filename, content_type = await download_image(url_obj.strip())
        else:
            raise HTTPException(status_code=400, detail="Must provide 'file' or 'url' in form data")

    else:
        raise HTTPException(
            status_code=415,
            detail="Unsupported Media Type. Use multipart/form-data or application/json"
        )

    validate_file(filename, len(file_content), content_type)

    start_time = time.time()
    result = await analyze_image(file_content, filename, content_type)
    logger.info(f"[ROUTE] Analyzed {filename} in {time.time() - start_time:.2f}s")
    return result
