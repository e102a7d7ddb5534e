import base64
import binascii
import logging
import time
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from api.metrics import record_request
from extraction.file_processor import process_files, validate_file

router = APIRouter(prefix="/files")
logger = logging.getLogger(__name__)


class FileIn(BaseModel):
    name: str
    type: str
    # base64 payload, optionally as a data URL
    content: str


class ProcessFilesIn(BaseModel):
    files: List[FileIn] = Field(default_factory=list)


def decode_content(content: str) -> bytes:
    if content.startswith("data:") and "," in content:
        content = content.split(",", 1)[1]
    return base64.b64decode(content, validate=True)


@router.post("/process")
async def process(payload: ProcessFilesIn) -> dict:
    start = time.time()
    decoded = []
    for f in payload.files:
        try:
            data = decode_content(f.content)
        except (binascii.Error, ValueError):
            record_request("/files/process", "rejected", start)
            raise HTTPException(status_code=400, detail=f"File {f.name} is not valid base64")

        ok, error = validate_file(f.type, len(data))
        if not ok:
            record_request("/files/process", "rejected", start)
            raise HTTPException(status_code=400, detail=error)
        decoded.append((f.name, f.type, data))

    processed = process_files(decoded)
    logger.info(f"Processed {len(processed)} files")
    record_request("/files/process", "ok", start)
    return {"files": [p.model_dump() for p in processed]}
