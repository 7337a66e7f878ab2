from fastapi import APIRouter, HTTPException, UploadFile, File
from pydantic import BaseModel
import os

from teachgen.services.file_extract import extract_text_from_file

router = APIRouter(prefix="/api", tags=["uploads"])


class UploadPreviewOut(BaseModel):
    content: str


def _max_upload_bytes() -> int:
    try:
        return int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    except ValueError:
        return 10 * 1024 * 1024


@router.post("/upload-file-preview", response_model=UploadPreviewOut, summary="Extract text from an uploaded file",
             description="PDF files are read with pypdf; any other file is decoded as UTF-8 text.")
async def upload_file_preview(file: UploadFile = File(...)):
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="No file uploaded")
    limit = _max_upload_bytes()
    if len(data) > limit:
        raise HTTPException(status_code=413, detail=f"File too large (max {limit // (1024 * 1024)} MB)")

    try:
        text = extract_text_from_file(file.filename or "", data, file.content_type)
    except RuntimeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"content": text}
