"""
Verification Service - recomputes a submitted document server side.

Document editors compute totals in the browser and submit them with the
payload. Before persisting, the backend should recompute from the raw
line inputs and reject payloads whose amounts do not match.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..engine.models import SupplyMode
from ..engine.pricing_engine import PricingEngine
from ..engine.tax_catalog import TaxCatalog, UnknownTaxLabelError
from .document_service import build_payload, load_payload
from .form_input import parse_amount

logger = logging.getLogger(__name__)

TOTAL_FIELDS = ('subTotal', 'cgst', 'sgst', 'igst', 'total')
ITEM_NUMBER_FIELDS = ('quantity', 'rate', 'discount', 'taxRate', 'amount')


@dataclass
class VerificationResult:
    """Result of verifying a submitted payload."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recomputed: Optional[dict] = None


def infer_supply_mode(payload: dict) -> SupplyMode:
    """Use the declared supply mode, else read it off the submitted tax split."""
    if payload.get('supplyMode'):
        return SupplyMode.parse(payload['supplyMode'])
    igst = parse_amount(payload.get('igst'))
    cgst = parse_amount(payload.get('cgst'))
    sgst = parse_amount(payload.get('sgst'))
    if igst > 0 and cgst == 0 and sgst == 0:
        return SupplyMode.INTER_STATE
    return SupplyMode.INTRA_STATE


def _is_scalar(value) -> bool:
    return isinstance(value, (int, float, str))


def check_payload_shape(payload: dict) -> list[str]:
    """
    Check the structure of an untrusted payload before recomputing it.

    Items must be a list of objects, every amount field that is present
    must be a number or a string, and documentType/supplyMode are strings.
    """
    items = payload.get('items')
    if not isinstance(items, list):
        return ["items must be a list of line objects"]

    errors = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            errors.append(f"Line {index}: expected an object, got {type(item).__name__}")
            continue
        for key in ITEM_NUMBER_FIELDS:
            if item.get(key) is not None and not _is_scalar(item[key]):
                errors.append(f"Line {index}: {key} must be a number")

    for key in TOTAL_FIELDS + ('shippingCharges', 'adjustment'):
        if key in payload and not _is_scalar(payload[key]):
            errors.append(f"{key} must be a number")
    for key in ('documentType', 'supplyMode'):
        if payload.get(key) is not None and not isinstance(payload[key], str):
            errors.append(f"{key} must be a string")
    return errors


def verify_payload(
    payload: dict,
    engine: Optional[PricingEngine] = None,
    tax_catalog: Optional[TaxCatalog] = None,
    supply_mode=None,
    document_type: Optional[str] = None,
    tolerance: Optional[float] = None,
) -> VerificationResult:
    """
    Recompute a payload and compare it with the submitted amounts.

    Line amounts and the subTotal/cgst/sgst/igst/total fields must match
    within `tolerance` (settings.verification_tolerance by default).
    """
    engine = engine or PricingEngine()
    if tolerance is None:
        tolerance = engine.settings.verification_tolerance

    result = VerificationResult(valid=True)

    raw_items = payload.get('items') or []
    if not raw_items:
        result.valid = False
        result.errors.append("Document has no line items")
        return result

    shape_errors = check_payload_shape(payload)
    if shape_errors:
        result.valid = False
        result.errors.extend(shape_errors)
        logger.warning("Malformed payload: %s", "; ".join(shape_errors))
        return result

    mode = SupplyMode.parse(supply_mode) if supply_mode is not None else infer_supply_mode(payload)
    try:
        state = load_payload(payload, document_type=document_type, supply_mode=mode, tax_catalog=tax_catalog)
    except UnknownTaxLabelError as e:
        result.valid = False
        result.errors.append(str(e))
        return result

    try:
        expected = build_payload(state, engine)
    except ValueError as e:
        result.valid = False
        result.errors.append(str(e))
        return result
    result.recomputed = expected

    for index, (submitted, recomputed) in enumerate(zip(raw_items, expected['items']), start=1):
        if 'amount' not in submitted:
            result.warnings.append(f"Line {index}: no amount submitted")
            continue
        amount = parse_amount(submitted['amount'], allow_negative=True)
        if abs(amount - recomputed['amount']) > tolerance:
            result.errors.append(
                f"Line {index}: amount {amount:.2f} does not match recomputed {recomputed['amount']:.2f}"
            )

    for key in TOTAL_FIELDS:
        if key not in payload:
            result.warnings.append(f"{key} not submitted")
            continue
        submitted_value = parse_amount(payload[key], allow_negative=True)
        if abs(submitted_value - expected[key]) > tolerance:
            result.errors.append(
                f"{key} {submitted_value:.2f} does not match recomputed {expected[key]:.2f}"
            )

    if result.errors:
        result.valid = False
        logger.warning("Payload verification failed: %s", "; ".join(result.errors))

    return result
