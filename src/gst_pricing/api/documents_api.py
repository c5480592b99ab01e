"""
Documents API - FastAPI router for line and document pricing.
"""
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..engine import LineItem, UnknownTaxLabelError, explain_line
from ..engine.pricing_engine import format_trace
from ..services.document_service import DocumentState, build_payload, load_payload
from ..services.preview import amount_in_words
from ..services.verification_service import verify_payload
from .state import engine, tax_catalog

router = APIRouter(prefix="/api/documents", tags=["documents"])


# Pydantic models for API
class LineInput(BaseModel):
    """Raw line inputs as sent by a document editor."""
    itemId: Optional[str] = None
    name: str = ""
    description: str = ""
    hsnSac: str = ""
    quantity: float = Field(default=1, ge=0)
    rate: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0)
    discountType: str = "percentage"
    taxName: Optional[str] = None
    taxRate: Optional[float] = None


class LineResponse(BaseModel):
    baseAmount: float
    discountAmount: float
    taxableAmount: float
    taxAmount: float
    lineTotal: float
    taxRate: float
    nonTaxable: bool
    taxName: str
    trace: list[dict]
    traceText: str


class DocumentInput(BaseModel):
    """A document's line inputs plus document-level adjustments."""
    documentType: str = "credit_note"
    supplyMode: Optional[str] = None
    items: list[LineInput]
    shippingCharges: float = Field(default=0, ge=0)
    adjustment: float = 0


class VerificationResponse(BaseModel):
    valid: bool
    errors: list[str]
    warnings: list[str]
    recomputed: Optional[dict] = None


def _to_state(doc: DocumentInput) -> DocumentState:
    return load_payload(
        {
            "items": [item.model_dump() for item in doc.items],
            "shippingCharges": doc.shippingCharges,
            "adjustment": doc.adjustment,
        },
        document_type=doc.documentType,
        supply_mode=engine.resolve_supply_mode(doc.supplyMode),
        tax_catalog=tax_catalog,
    )


# Endpoints

@router.post("/lines/calculate", response_model=LineResponse)
async def calculate_line(line: LineInput):
    """Compute one line with a step-by-step trace."""
    try:
        state = load_payload({"items": [line.model_dump()]}, tax_catalog=tax_catalog)
    except UnknownTaxLabelError as e:
        raise HTTPException(status_code=400, detail=str(e))

    item: LineItem = state.items[0]
    result = engine.price_line(item)
    trace = explain_line(item.quantity, item.rate, item.discount, item.tax)

    return LineResponse(
        baseAmount=result.base_amount,
        discountAmount=result.discount_amount,
        taxableAmount=result.taxable_amount,
        taxAmount=result.tax_amount,
        lineTotal=result.line_total,
        taxRate=result.tax_rate,
        nonTaxable=result.non_taxable,
        taxName=item.tax_label,
        trace=[{"step": t.step, "description": t.description, "value": t.value} for t in trace],
        traceText=format_trace(trace),
    )


@router.post("/calculate")
async def calculate_document(doc: DocumentInput):
    """Price every line and return the document payload with totals."""
    try:
        state = _to_state(doc)
        payload = build_payload(state, engine)
    except (UnknownTaxLabelError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    payload["amountInWords"] = amount_in_words(payload["total"])
    return payload


@router.post("/verify", response_model=VerificationResponse)
async def verify_document(payload: dict, supply_mode: Optional[str] = None, document_type: Optional[str] = None):
    """Recompute a submitted payload and report mismatches."""
    try:
        result = verify_payload(
            payload,
            engine=engine,
            tax_catalog=tax_catalog,
            supply_mode=supply_mode,
            document_type=document_type,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return VerificationResponse(
        valid=result.valid,
        errors=result.errors,
        warnings=result.warnings,
        recomputed=result.recomputed,
    )
