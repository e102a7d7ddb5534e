"""
Render uploaded attachments into prompt text.

CSV files are summarized with a few sample rows, PDFs get a size placeholder
and images are downscaled and re-encoded as JPEG data URLs so they can be sent
as image parts of a chat message. A file that cannot be processed yields an
error-marked ProcessedFile instead of failing the whole batch.
"""

from __future__ import annotations

import base64
import csv
import io
import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from notion_importer.models import ProcessedFile

logger = logging.getLogger(__name__)

IMAGE_MAX_WIDTH = 1200
IMAGE_MAX_HEIGHT = 1200
IMAGE_QUALITY = 80

CSV_PREVIEW_ROWS = 5
CSV_METADATA_ROWS = 3

ALLOWED_TYPES = ("image/jpeg", "image/jpg", "image/png", "application/pdf", "text/csv")
MAX_FILE_SIZE = 10 * 1024 * 1024


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / (1024 ** i), 1)
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {units[i]}"


def validate_file(mime_type: str, size: int) -> Tuple[bool, Optional[str]]:
    if mime_type not in ALLOWED_TYPES:
        return False, (
            f"File type {mime_type} is not supported. Please use JPG, PNG, PDF, or CSV files."
        )
    if size > MAX_FILE_SIZE:
        return False, f"File size {format_file_size(size)} exceeds the 10MB limit."
    return True, None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def fit_within(width: int, height: int) -> Tuple[int, int]:
    if width <= IMAGE_MAX_WIDTH and height <= IMAGE_MAX_HEIGHT:
        return width, height
    ratio = min(IMAGE_MAX_WIDTH / width, IMAGE_MAX_HEIGHT / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "P":
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def process_image(name: str, mime_type: str, data: bytes) -> ProcessedFile:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            width, height = img.size
            if width == 0 or height == 0:
                raise ValueError("Invalid image dimensions")
            new_width, new_height = fit_within(width, height)
            rgb = _to_rgb(img)
            if (new_width, new_height) != (width, height):
                rgb = rgb.resize((new_width, new_height), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            rgb.save(buf, "JPEG", quality=IMAGE_QUALITY, optimize=True)
    except UnidentifiedImageError as e:
        raise ValueError("Failed to load image") from e
    except Image.DecompressionBombError as e:
        raise ValueError(f"Image is too large to process: {e}") from e

    encoded = base64.b64encode(buf.getvalue()).decode("utf-8")
    data_url = f"data:image/jpeg;base64,{encoded}"
    original_len = len(base64.b64encode(data))
    reduction = (original_len - len(encoded)) / original_len * 100 if original_len else 0.0

    logger.info(
        f"Image optimized: {name} {width}x{height} -> {new_width}x{new_height} "
        f"(reduced by {reduction:.1f}%)"
    )

    content = (
        f"[Image: {name}] - Screenshot for task extraction analysis. "
        f"Original: {width}x{height}px, Optimized: {new_width}x{new_height}px\n\n"
        "Please analyze this image for task management information including task titles, "
        "due dates, status, priority, assignees, and any other structured data visible "
        "in the interface."
    )
    return ProcessedFile(
        name=name,
        type=mime_type,
        content=content,
        metadata={
            "size": len(data),
            "processedAt": _now(),
            "width": width,
            "height": height,
            "optimizedWidth": new_width,
            "optimizedHeight": new_height,
            "dataUrl": data_url,
            "compressionRatio": f"{reduction:.1f}",
        },
    )


def process_pdf(name: str, mime_type: str, data: bytes) -> ProcessedFile:
    return ProcessedFile(
        name=name,
        type=mime_type,
        content=(
            f"[PDF Document: {name}] - This PDF document will be processed by the LLM "
            f"to extract task-relevant information. Size: {format_file_size(len(data))}"
        ),
        metadata={
            "size": len(data),
            "processedAt": _now(),
            "pages": "Unknown",
        },
    )


def _csv_rows(text: str) -> Tuple[List[str], List[Dict[str, Any]]]:
    try:
        reader = csv.DictReader(io.StringIO(text))
        headers = list(reader.fieldnames or [])
        rows = [
            row for row in reader
            if any((v or "").strip() for v in row.values() if isinstance(v, str))
        ]
    except csv.Error as e:
        raise ValueError(f"CSV parsing failed: {e}") from e
    return headers, rows


def process_csv(name: str, mime_type: str, data: bytes) -> ProcessedFile:
    text = data.decode("utf-8-sig", errors="replace")
    headers, rows = _csv_rows(text)

    lines = [
        f"[CSV Data: {name}]",
        f"Rows: {len(rows)}, Columns: {len(headers)}",
        f"Headers: {', '.join(headers)}",
        "",
    ]
    preview = rows[:CSV_PREVIEW_ROWS]
    if preview:
        lines.append(f"Sample data (first {len(preview)} rows):")
        for i, row in enumerate(preview, start=1):
            lines.append(f"Row {i}: {json.dumps(row, ensure_ascii=False)}")

    return ProcessedFile(
        name=name,
        type=mime_type,
        content="\n".join(lines) + "\n",
        metadata={
            "size": len(data),
            "processedAt": _now(),
            "rowCount": len(rows),
            "columnCount": len(headers),
            "headers": headers,
            "sampleData": rows[:CSV_METADATA_ROWS],
        },
    )


def process_file(name: str, mime_type: str, data: bytes) -> ProcessedFile:
    try:
        if mime_type.startswith("image/"):
            return process_image(name, mime_type, data)
        if mime_type == "application/pdf":
            return process_pdf(name, mime_type, data)
        if mime_type == "text/csv":
            return process_csv(name, mime_type, data)
        raise ValueError(f"Unsupported file type: {mime_type}")
    except (ValueError, OSError) as e:
        logger.error(f"Error processing file {name}: {e}")
        return ProcessedFile(
            name=name,
            type=mime_type,
            content=f"Error processing file: {e}",
            metadata={"size": len(data), "processedAt": _now(), "error": True},
        )


def process_files(files: Iterable[Tuple[str, str, bytes]]) -> List[ProcessedFile]:
    return [process_file(name, mime_type, data) for name, mime_type, data in files]
