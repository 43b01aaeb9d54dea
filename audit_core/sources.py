"""Raw row loaders: uploaded spreadsheet bytes, local files and published sheet URLs.

Everything here stops at "list of raw row dicts"; normalization happens in
``audit_core.normalize``.
"""

from __future__ import annotations

import hashlib
import io
import logging
import os
import re
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

from audit_core.errors import SheetFetchError, UnreadableFileError


logger = logging.getLogger(__name__)

DEFAULT_SHEET_URL = os.environ.get("AUDIT_SHEET_URL", "")
FETCH_TIMEOUT_SECONDS = 30
CSV_EXTENSIONS = {".csv", ".txt"}

GOOGLE_SHEET_ID = re.compile(r"/d/([a-zA-Z0-9-_]+)")


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame -> row dicts, blank cells as None and fully blank rows dropped."""
    if df.empty:
        return []
    df = df.dropna(how="all")
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def read_rows(content: bytes, filename: str = "") -> List[Dict[str, Any]]:
    """Parse an uploaded CSV/XLSX payload into raw rows (first sheet only)."""
    suffix = Path(filename).suffix.lower()
    buffer = io.BytesIO(content)
    try:
        if suffix in CSV_EXTENSIONS:
            df = pd.read_csv(buffer)
        else:
            df = pd.read_excel(buffer, sheet_name=0)
    except (ValueError, zipfile.BadZipFile) as exc:
        raise UnreadableFileError(f"Could not read {filename or 'upload'}: {exc}") from exc
    rows = frame_to_rows(df)
    logger.info("parsed %d rows from %s", len(rows), filename or "upload")
    return rows


def upload_fingerprint(content: bytes, filename: str = "") -> str:
    """Identity of an uploaded file by name and bytes, so edited re-uploads reload."""
    digest = hashlib.sha256(content).hexdigest()[:16]
    return f"{filename}:{digest}"


def resolve_sheet_url(url: str) -> str:
    """Rewrite a Google Sheets share link to its CSV export URL."""
    url = (url or "").strip()
    if "docs.google.com/spreadsheets" in url:
        match = GOOGLE_SHEET_ID.search(url)
        if match:
            return f"https://docs.google.com/spreadsheets/d/{match.group(1)}/export?format=csv"
    return url


def _looks_like_csv(url: str, content_type: str) -> bool:
    if "format=csv" in url or "output=csv" in url:
        return True
    if url.split("?", 1)[0].lower().endswith(".csv"):
        return True
    return "text/csv" in content_type or "text/plain" in content_type


def fetch_sheet_rows(url: str, *, session: Optional[requests.Session] = None, timeout: float = FETCH_TIMEOUT_SECONDS) -> List[Dict[str, Any]]:
    """Download a published spreadsheet and parse its first sheet into raw rows."""
    final_url = resolve_sheet_url(url)
    if not final_url:
        raise SheetFetchError("No sheet URL provided.")

    http = session or requests.Session()
    logger.info("fetching sheet %s", final_url)
    try:
        response = http.get(final_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise SheetFetchError("Failed to fetch. Ensure Sheet is public (Anyone with link).") from exc
    finally:
        if session is None:
            http.close()

    content_type = response.headers.get("Content-Type", "")
    try:
        if _looks_like_csv(final_url, content_type):
            df = pd.read_csv(io.BytesIO(response.content))
        else:
            df = pd.read_excel(io.BytesIO(response.content), sheet_name=0)
    except (ValueError, zipfile.BadZipFile) as exc:
        raise SheetFetchError(f"Could not parse sheet contents: {exc}") from exc
    return frame_to_rows(df)
