import logging
from decimal import Decimal, InvalidOperation

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from ..services.payment_verifier import (
    PLATFORM_ADDRESSES,
    format_currency_amount,
    get_platform_fee,
    is_valid_payment_amount,
    verify_transaction,
)
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import ConflictError, PaymentVerificationError, get_error_message
from ..utils.validation import (
    CURRENCIES,
    NETWORKS,
    PAYMENT_PURPOSES,
    PAYMENT_STATUSES,
    validate_choice,
    validate_string_field,
)
from .serializers import job_to_public, payment_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


class PaymentVerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(alias="txHash")
    amount: str | float
    currency: str
    blockchain_network: str = Field(alias="blockchainNetwork")
    purpose: str
    job_id: str | None = Field(default=None, alias="jobId")


class PaymentStatusUpdate(BaseModel):
    status: str


def _parse_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise HTTPException(status_code=400, detail="Amount must be a number")
    if not amount.is_finite() or amount <= 0:
        raise HTTPException(status_code=400, detail="Amount must be greater than 0")
    return amount


@router.post("/verify")
async def verify_payment(
    payload: PaymentVerifyRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    user_id = str(user.get("sub"))
    tx_hash = validate_string_field(payload.tx_hash, "Transaction hash", max_length=128)
    amount = _parse_amount(payload.amount)
    currency = validate_choice(payload.currency, "currency", CURRENCIES, required=True)
    network = validate_choice(payload.blockchain_network, "blockchain network", NETWORKS, required=True)
    purpose = validate_choice(payload.purpose, "purpose", PAYMENT_PURPOSES, required=True)

    if repository.get_payment(db, tx_hash) is not None:
        raise ConflictError(get_error_message("tx_already_used"))

    job = None
    if payload.job_id:
        job = repository.get_job(db, payload.job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))
        # A payment may only reference the payer's own job, whatever its purpose.
        if job.posted_by != user_id:
            raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    if purpose == "job_posting":
        if job is None:
            raise HTTPException(status_code=400, detail="jobId is required for job posting payments")
        if job.payment_status == "paid":
            raise ConflictError(get_error_message("job_already_paid"))
        if not is_valid_payment_amount(amount, currency, network):
            fee = get_platform_fee(network)
            raise HTTPException(
                status_code=400,
                detail=f"{get_error_message('insufficient_fee')} Required: {fee['amount']} {fee['currency']}",
            )

    verification = await verify_transaction(tx_hash, str(amount), currency, network)

    payment = repository.create_payment(
        db,
        {
            "user_id": user_id,
            "job_id": job.id if job is not None else None,
            "amount": amount,
            "currency": currency,
            "tx_hash": tx_hash,
            "blockchain_network": network,
            "status": "verified" if verification.is_valid else "failed",
            "purpose": purpose,
        },
    )

    if not verification.is_valid:
        logger.warning("Payment %s failed verification: %s", tx_hash, verification.error)
        raise PaymentVerificationError(
            verification.error or "Payment verification failed",
            details={"verification": verification.to_dict(), "payment": payment_to_public(payment)},
        )

    if purpose == "job_posting" and job is not None:
        job = repository.set_job_payment_status(db, job, "paid", tx_hash=tx_hash, amount=amount)

    return {
        "success": True,
        "payment": payment_to_public(payment),
        "verification": verification.to_dict(),
        "job": job_to_public(job) if job is not None else None,
    }


@router.get("/status/{tx_hash}")
def get_payment_status(
    tx_hash: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    payment = repository.get_payment(db, tx_hash)
    if payment is None or payment.user_id != str(user.get("sub")):
        raise HTTPException(status_code=404, detail=get_error_message("payment_not_found"))
    return {"success": True, "payment": payment_to_public(payment)}


@router.get("/fee")
def get_fee(network: str = Query(default="ethereum")):
    net = validate_choice(network, "blockchain network", NETWORKS) or "ethereum"
    fee = get_platform_fee(net)
    return {
        "success": True,
        "network": net,
        "amount": fee["amount"],
        "currency": fee["currency"],
        "display": format_currency_amount(fee["amount"], fee["currency"]),
        "toAddress": PLATFORM_ADDRESSES[net],
    }


@router.patch("/{payment_id}/status")
def update_payment_status(
    payment_id: str,
    payload: PaymentStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    status = validate_choice(payload.status, "status", PAYMENT_STATUSES, required=True)
    payment = repository.get_payment_by_id(db, payment_id)
    if payment is None or payment.user_id != str(user.get("sub")):
        raise HTTPException(status_code=404, detail=get_error_message("payment_not_found"))

    payment = repository.update_payment_status(db, payment_id, status)
    job = repository.get_job(db, payment.job_id) if payment.job_id else None
    return {
        "success": True,
        "payment": payment_to_public(payment),
        "job": job_to_public(job) if job is not None else None,
    }
