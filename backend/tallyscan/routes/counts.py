# backend/tallyscan/routes/counts.py
"""
Stock-count API routes: scan, resolve, reconcile, bulk entry, photo autofill.

MULTI-TENANT: All routes run in the caller's organization (g.org_id).

ERROR MAPPING:
- ValidationError         -> 400, nothing written
- ProductNotFoundError    -> 404
- PersistenceError        -> 502, earlier steps are not rolled back
- LedgerAppendError       -> 503, product saved, retry the ledger append
- AutofillUnavailable     -> 503
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_tenant
from ..extensions import db
from ..services import autofill_service, identifier_service, reconciliation_service
from ..services.bulk_reconciliation_service import (
    BulkEntry,
    BulkRow,
    MasterAttributes,
    run_bulk_entry,
)
from ..services.identifier_service import ProductDraft
from ..services.reconciliation_service import (
    LedgerAppendError,
    PersistenceError,
    ProductNotFoundError,
)
from ..services.scan_debouncer import MAX_STATION_LENGTH, ScanSignal
from ..services.taxonomy_service import load_taxonomy
from ..time_utils import now_ms
from ..validation import ValidationError, coerce_int


counts_bp = Blueprint("counts", __name__, url_prefix="/api/counts")

DEFAULT_STATION = "default"


def _debouncers():
    return current_app.extensions["scan_debouncers"]


@counts_bp.route("/scan", methods=["POST"])
@require_tenant
def scan():
    """
    Feed one scanner read through the debouncer and resolve it.

    Request body:
    {
        "code": str,
        "station": str (optional, one debounce window per station),
        "scanned_at_ms": int (optional, epoch ms; defaults to server time)
    }

    Returns:
        200: {"accepted": false} when suppressed as a duplicate read
        200: {"accepted": true, "is_new": bool, "draft": {...}}
        400: Invalid request
    """
    data = request.get_json(silent=True) or {}

    try:
        code = identifier_service.normalize_barcode(data.get("code"))
        if not code:
            raise ValidationError("code is required")
        at_ms = data.get("scanned_at_ms")
        at_ms = now_ms() if at_ms is None else coerce_int(at_ms, "scanned_at_ms")
        station = str(data.get("station") or DEFAULT_STATION)
        if len(station) > MAX_STATION_LENGTH:
            raise ValidationError(f"station must be at most {MAX_STATION_LENGTH} characters")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if not _debouncers().offer(g.org_id, station, ScanSignal(at_ms=at_ms, code=code)):
        return jsonify({"accepted": False, "code": code}), 200

    taxonomy = load_taxonomy(g.org_id)
    draft = identifier_service.resolve(g.org_id, code, taxonomy)
    return jsonify({"accepted": True, "is_new": draft.is_new, "draft": draft.to_dict()}), 200


@counts_bp.route("/lookup/<barcode>", methods=["GET"])
@require_tenant
def lookup(barcode: str):
    """Resolve a barcode without debouncing (manual entry)."""
    try:
        taxonomy = load_taxonomy(g.org_id)
        draft = identifier_service.resolve(g.org_id, barcode, taxonomy)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"is_new": draft.is_new, "draft": draft.to_dict()}), 200


@counts_bp.route("/reconcile", methods=["POST"])
@require_tenant
def reconcile():
    """
    Save a draft and record added stock.

    Request body:
    {
        "draft": {...},   // as returned by /scan or /lookup, edited
        "add_qty": int    // >= 0; 0 saves edits only
    }

    Returns:
        200: {"product_id", "action", "quantity", "adjustment_id", "product"}
        400: Validation failed (nothing written)
        404: Draft names an unknown product id
        502: Product save rejected by the data store
        503: Product saved but quantity not recorded (retryable)
    """
    data = request.get_json(silent=True) or {}

    try:
        draft = ProductDraft.from_payload(data.get("draft"))
        result = reconciliation_service.reconcile(draft, data.get("add_qty", 0), org_id=g.org_id)
    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except ProductNotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except LedgerAppendError as e:
        current_app.logger.warning("Stock not recorded for product %s: %s", e.product_id, e)
        return jsonify(e.to_dict()), 503
    except PersistenceError as e:
        return jsonify(e.to_dict()), 502
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to reconcile stock count")
        return jsonify({"error": "Failed to reconcile stock count"}), 500

    return jsonify(result.to_dict()), 200


@counts_bp.route("/reconcile/<int:product_id>/retry-ledger", methods=["POST"])
@require_tenant
def retry_ledger(product_id: int):
    """
    Re-attempt the ledger append after a 503 from /reconcile.

    Request body:
    {
        "add_qty": int  // > 0
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        adj = reconciliation_service.record_stock_count(
            org_id=g.org_id,
            product_id=product_id,
            add_qty=data.get("add_qty"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductNotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except LedgerAppendError as e:
        current_app.logger.warning("Ledger retry failed for product %s: %s", product_id, e)
        return jsonify(e.to_dict()), 503

    return jsonify({
        "product_id": product_id,
        "adjustment_id": adj.id,
        "quantity": adj.product.quantity,
    }), 200


@counts_bp.route("/bulk", methods=["POST"])
@require_tenant
def bulk():
    """
    Bulk entry: shared master attributes, one row per barcode.

    Request body:
    {
        "master": {"category_id", "subcategory_id", "name", "model", "sell_price_cents"},
        "rows": [{"barcode", "flavor"?, "nicotine"?, "size"?, "qty"?}, ...]
    }

    Returns:
        200: Every processed row succeeded
        207: Some rows failed; see results[]
        400: Malformed request (no row was processed)
    """
    data = request.get_json(silent=True) or {}

    try:
        master = MasterAttributes.from_payload(data.get("master"))
        raw_rows = data.get("rows") or []
        if not isinstance(raw_rows, list):
            raise ValidationError("rows must be a list")
        rows = [BulkRow.from_payload(r) for r in raw_rows]
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    batch = run_bulk_entry(BulkEntry(master=master, rows=rows), org_id=g.org_id)
    return jsonify(batch.to_dict()), (200 if batch.success else 207)


@counts_bp.route("/autofill", methods=["POST"])
@require_tenant
def autofill():
    """
    Prefill a draft from a product photo.

    Request body:
    {
        "draft": {...},
        "image_base64": str
    }

    Returns the merged draft. Nothing is saved.
    """
    data = request.get_json(silent=True) or {}

    try:
        draft = ProductDraft.from_payload(data.get("draft"))
        suggestions = autofill_service.extract_product_suggestions(data.get("image_base64"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except autofill_service.AutofillUnavailable as e:
        return jsonify({"error": str(e)}), 503

    merged = autofill_service.apply_suggestions(draft, suggestions)
    return jsonify({"draft": merged.to_dict(), "suggestions": suggestions}), 200
