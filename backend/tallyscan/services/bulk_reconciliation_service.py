# Overview: Bulk stock-count entry: one shared attribute set, many barcodes.

"""
Bulk Reconciliation

A bulk entry shares one master attribute set (category, subcategory, brand,
model, sell price) across many rows. Each row brings its own barcode and
optionally flavor, nicotine, size and a quantity to add.

SWEEP SEMANTICS:
- Rows with a blank barcode are skipped.
- Rows run one after another, each as a full reconcile() (resolve ->
  validate -> upsert -> ledger). Row N+1 starts only after row N finished,
  so two rows with the same barcode never race.
- Master attributes replace the product's category, subcategory, brand,
  model and price. Row attributes (flavor, nicotine, size) overlay the
  product: a value the row leaves blank keeps what the product already
  has. Gating still clears flavor/nicotine the new subcategory does not take.
- A failing row is logged and reported; the sweep continues. This includes
  database errors while looking the row's barcode up. The batch is
  best-effort, not atomic. Re-running a failed row later does not duplicate
  the rows that already succeeded (their barcodes now resolve to products).
- After the sweep, the entry's rows are cleared for the next session,
  whatever the outcome.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..validation import ValidationError, clean_text, coerce_float, coerce_int
from .identifier_service import normalize_barcode, resolve
from .reconciliation_service import (
    PersistenceError,
    ProductNotFoundError,
    _db_message,
    reconcile,
)
from .taxonomy_service import TaxonomyResolver, load_taxonomy


@dataclass
class MasterAttributes:
    category_id: int | None = None
    subcategory_id: int | None = None
    name: str = ""
    model: str | None = None
    sell_price_cents: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "MasterAttributes":
        if not isinstance(payload, dict):
            raise ValidationError("master must be an object")

        def _opt_int(key):
            value = payload.get(key)
            if value is None or value == "":
                return None
            return coerce_int(value, key)

        return cls(
            category_id=_opt_int("category_id"),
            subcategory_id=_opt_int("subcategory_id"),
            name=clean_text(payload.get("name")) or "",
            model=clean_text(payload.get("model")),
            sell_price_cents=_opt_int("sell_price_cents"),
        )


@dataclass
class BulkRow:
    barcode: str = ""
    flavor: str | None = None
    nicotine: float | None = None
    size: str | None = None
    qty: int = 0

    @classmethod
    def from_payload(cls, payload: Any) -> "BulkRow":
        if not isinstance(payload, dict):
            raise ValidationError("each row must be an object")
        nicotine = payload.get("nicotine")
        qty = payload.get("qty")
        return cls(
            barcode=normalize_barcode(payload.get("barcode")),
            flavor=clean_text(payload.get("flavor")),
            nicotine=None if nicotine in (None, "") else coerce_float(nicotine, "nicotine"),
            size=clean_text(payload.get("size")),
            qty=0 if qty in (None, "") else coerce_int(qty, "qty"),
        )


@dataclass
class BulkEntry:
    master: MasterAttributes
    rows: list[BulkRow] = field(default_factory=list)


@dataclass
class RowResult:
    row: int  # 1-based position in the submitted rows
    barcode: str
    success: bool
    product_id: int | None = None
    action: str | None = None
    quantity: int | None = None
    error: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict:
        return {
            "row": self.row,
            "barcode": self.barcode,
            "success": self.success,
            "product_id": self.product_id,
            "action": self.action,
            "quantity": self.quantity,
            "error": self.error,
            "retryable": self.retryable,
        }


class PartialBatchFailure(Exception):
    """One or more rows of a bulk sweep failed; the others were committed."""

    def __init__(self, failures: list[RowResult]):
        rows = ", ".join(str(f.row) for f in failures)
        super().__init__(f"{len(failures)} row(s) failed: {rows}")
        self.failures = failures


@dataclass
class BatchResult:
    results: list[RowResult] = field(default_factory=list)
    skipped: int = 0

    @property
    def failures(self) -> list[RowResult]:
        return [r for r in self.results if not r.success]

    @property
    def success(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise PartialBatchFailure(self.failures)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "processed": len(self.results),
            "succeeded": len(self.results) - len(self.failures),
            "failed": len(self.failures),
            "skipped": self.skipped,
            "results": [r.to_dict() for r in self.results],
        }


def _reconcile_row(
    row: BulkRow,
    master: MasterAttributes,
    *,
    org_id: int,
    taxonomy: TaxonomyResolver,
):
    draft = resolve(org_id, row.barcode, taxonomy)
    draft = draft.with_changes(
        name=master.name,
        model=master.model,
        category_id=master.category_id,
        subcategory_id=master.subcategory_id,
        # A fresh selection: the snapshot comes from the chosen subcategory
        subcategory_name=None,
        supplier_name=None,
        sell_price_cents=master.sell_price_cents,
        flavor=row.flavor if row.flavor is not None else draft.flavor,
        nicotine=row.nicotine if row.nicotine is not None else draft.nicotine,
        size=row.size if row.size is not None else draft.size,
    )
    return reconcile(draft, row.qty, org_id=org_id, taxonomy=taxonomy, note="bulk entry")


def run_bulk_entry(
    entry: BulkEntry,
    *,
    org_id: int,
    taxonomy: TaxonomyResolver | None = None,
) -> BatchResult:
    if taxonomy is None:
        taxonomy = load_taxonomy(org_id)

    batch = BatchResult()
    try:
        for idx, row in enumerate(entry.rows, start=1):
            if not row.barcode:
                batch.skipped += 1
                continue

            try:
                result = _reconcile_row(row, entry.master, org_id=org_id, taxonomy=taxonomy)
            except (ValidationError, ProductNotFoundError) as exc:
                current_app.logger.warning("Bulk row %s (%s) rejected: %s", idx, row.barcode, exc)
                batch.results.append(RowResult(row=idx, barcode=row.barcode, success=False, error=str(exc)))
                continue
            except PersistenceError as exc:
                current_app.logger.warning(
                    "Bulk row %s (%s) failed at %s step: %s", idx, row.barcode, exc.step, exc
                )
                batch.results.append(RowResult(
                    row=idx,
                    barcode=row.barcode,
                    success=False,
                    product_id=exc.product_id,
                    error=str(exc),
                    retryable=exc.retryable,
                ))
                continue
            except SQLAlchemyError as exc:
                db.session.rollback()
                current_app.logger.warning("Bulk row %s (%s) lookup failed: %s", idx, row.barcode, exc)
                batch.results.append(RowResult(row=idx, barcode=row.barcode, success=False, error=_db_message(exc)))
                continue

            batch.results.append(RowResult(
                row=idx,
                barcode=row.barcode,
                success=True,
                product_id=result.product_id,
                action=result.action,
                quantity=result.quantity,
            ))
    finally:
        entry.rows = []

    return batch
