from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional
import uuid

app = FastAPI(title="Mock Payment Gateway", version="1.0.0")

METHODS = [
    {"id": "card", "type": "card", "name": "Cards", "enabled": True, "description": "Credit & Debit Cards"},
    {"id": "upi", "type": "upi", "name": "UPI", "enabled": True, "description": "Pay using UPI ID or QR"},
    {"id": "netbanking", "type": "netbanking", "name": "Net Banking", "enabled": True},
    {"id": "wallet", "type": "wallet", "name": "Wallets", "enabled": True},
    {"id": "bnpl", "type": "bnpl", "name": "Buy Now, Pay Later", "enabled": True},
    {"id": "fxdebitcard", "type": "fxdebitcard", "name": "FX Debit Card", "enabled": True},
    {"id": "paylater_legacy", "type": "bnpl", "name": "Pay Later (legacy)", "enabled": False},
]

SAVED_CARDS = {
    "cust_saved": [
        {"token_id": "tok_visa_4242", "last4": "4242", "brand": "visa", "expiry_month": "12", "expiry_year": "2099",
         "holder_name": "Asha Rao"},
        {"token_id": "tok_mc_0005", "last4": "0005", "brand": "mastercard", "expiry_month": "01", "expiry_year": "2020",
         "holder_name": "Asha Rao"},
    ],
}

EMI_PROVIDERS = [
    {"id": "hdfc-emi", "name": "HDFC Bank", "min_amount": 1000, "max_amount": 500000,
     "supported_tenures": [3, 6, 9, 12, 18, 24],
     "interest_rates": {"3": 12.99, "6": 13.99, "9": 14.99, "12": 15.99, "18": 16.99, "24": 17.99},
     "processing_fee": 99, "enabled": True},
    {"id": "icici-emi", "name": "ICICI Bank", "min_amount": 1000, "max_amount": 300000,
     "supported_tenures": [3, 6, 9, 12, 18],
     "interest_rates": {"3": 11.99, "6": 12.99, "9": 13.99, "12": 14.99, "18": 15.99},
     "processing_fee": 149, "enabled": True},
    {"id": "sbi-emi", "name": "SBI Credit Card", "min_amount": 500, "max_amount": 200000,
     "supported_tenures": [3, 6, 9, 12],
     "interest_rates": {"3": 14.99, "6": 15.99, "9": 16.99, "12": 17.99},
     "processing_fee": 0, "enabled": True},
    {"id": "amazonpay-emi", "name": "Amazon Pay Later", "min_amount": 100, "max_amount": 100000,
     "supported_tenures": [3, 6, 9],
     "interest_rates": {"3": 0, "6": 12.99, "9": 13.99},
     "processing_fee": 0, "enabled": True},
]

VALID_SECRETS = {"mpin": "1234", "otp": "123456"}
DECLINED_VPA = "decline@upi"

# Idempotency-Key -> response
PAYMENTS: Dict[str, Dict[str, Any]] = {}


class VerifyRequest(BaseModel):
    channel: str
    secret: str
    customer_id: Optional[str] = None


class PaymentRequest(BaseModel):
    method_type: str
    payload: Dict[str, Any]


@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/v1/payment-methods")
def payment_methods(customer_id: Optional[str] = None):
    return {"methods": METHODS}

@app.get("/v1/customers/{customer_id}/saved-cards")
def saved_cards(customer_id: str):
    return {"cards": SAVED_CARDS.get(customer_id, [])}

@app.get("/v1/emi/providers")
def emi_providers():
    return {"providers": EMI_PROVIDERS}

@app.post("/v1/verify")
def verify(body: VerifyRequest):
    if body.channel not in VALID_SECRETS:
        raise HTTPException(status_code=400, detail="unknown channel")
    return {"verified": body.secret == VALID_SECRETS[body.channel]}

@app.post("/v1/payments")
def payments(body: PaymentRequest, idempotency_key: str = Header(..., alias="Idempotency-Key")):
    if idempotency_key in PAYMENTS:
        return PAYMENTS[idempotency_key]

    if body.payload.get("vpa") == DECLINED_VPA:
        response = {"status": "failure", "transaction_id": None, "message": "Payment declined by bank"}
    else:
        response = {"status": "success", "transaction_id": f"txn_{uuid.uuid4().hex[:12]}", "message": "Payment successful"}

    PAYMENTS[idempotency_key] = response
    return response
