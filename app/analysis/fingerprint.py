from __future__ import annotations

import hashlib
import json
import unicodedata


def normalize_text(text: str) -> str:
    normalized = unicodedata.normalize("NFC", text or "")
    normalized = normalized.replace("\r\n", "\n").replace("\r", "\n")
    return normalized.strip()


def fingerprint(resume: str, job_description: str) -> str:
    """SHA-256 hex digest identifying a (resume, job description) pair.

    The pair is encoded as a JSON array so no separator inside either text can
    make two different pairs hash the same input.
    """
    canonical = json.dumps(
        [normalize_text(resume), normalize_text(job_description)],
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def short_fingerprint(value: str) -> str:
    return value[:12]
