# Overview: Optional photo -> draft suggestions via an external extraction endpoint.

"""
Autofill Service

An image-understanding endpoint (configured by PRODUCT_EXTRACT_URL) takes a
base64 photo of the product and answers best-effort suggestions:

    {"name": str?, "flavor": str?, "size": str?, "nicotine": number?}

Suggestions only prefill a draft. They are never saved directly; the
merged draft still goes through reconcile() and its validation.
"""
from __future__ import annotations

from typing import Any

import httpx
from flask import current_app

from ..validation import ValidationError, clean_text
from .identifier_service import ProductDraft

SUGGESTION_FIELDS = ("name", "flavor", "size", "nicotine")


class AutofillUnavailable(Exception):
    """Extraction endpoint not configured, unreachable, or answered garbage."""
    pass


def extract_product_suggestions(image_base64: str) -> dict:
    if not image_base64:
        raise ValidationError("image_base64 is required")

    url = current_app.config.get("PRODUCT_EXTRACT_URL")
    if not url:
        raise AutofillUnavailable("Photo autofill is not configured")

    timeout = current_app.config.get("PRODUCT_EXTRACT_TIMEOUT", 10)
    try:
        response = httpx.post(url, json={"image_base64": image_base64}, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        current_app.logger.warning("Product extraction failed: %s", exc)
        raise AutofillUnavailable("Auto-fill failed") from exc

    if not isinstance(data, dict):
        raise AutofillUnavailable("Auto-fill failed")
    return {k: data.get(k) for k in SUGGESTION_FIELDS}


def _suggested_nicotine(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def apply_suggestions(draft: ProductDraft, suggestions: dict) -> ProductDraft:
    """Overlay non-empty suggestions; anything missing keeps the draft's value."""
    name = clean_text(suggestions.get("name"))
    flavor = clean_text(suggestions.get("flavor"))
    size = clean_text(suggestions.get("size"))
    nicotine = _suggested_nicotine(suggestions.get("nicotine"))

    return draft.with_changes(
        name=name if name is not None else draft.name,
        flavor=flavor if flavor is not None else draft.flavor,
        size=size if size is not None else draft.size,
        nicotine=nicotine if nicotine is not None else draft.nicotine,
    )
