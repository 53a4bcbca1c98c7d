"""Pydantic request/response schemas for the bakery API.

These are external contracts — separate from the internal Protean commands.
Business rules (quantities, amounts, state) are checked by the domain so
that every rule failure surfaces the same way.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class SlotRef(BaseModel):
    order_type: str
    day: date
    start_time: str


# ---------------------------------------------------------------------------
# Availability and slots
# ---------------------------------------------------------------------------
class AvailabilitySlotSchema(BaseModel):
    date: str
    time: str
    available: bool
    remaining: int


class AvailabilityResponse(BaseModel):
    slots: list[AvailabilitySlotSchema]
    lead_time_days: int = Field(alias="leadTimeDays")
    min_date: str = Field(alias="minDate")

    model_config = {"populate_by_name": True}


class ReserveSlotRequest(SlotRef):
    order_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_type": "cake",
                    "day": "2026-03-01",
                    "start_time": "10:00",
                }
            ]
        }
    }


class ReserveSlotResponse(BaseModel):
    ok: bool = True
    hold_id: str


class ReleaseSlotRequest(SlotRef):
    hold_id: str | None = None
    order_id: str | None = None


class ReleaseSlotResponse(BaseModel):
    ok: bool = True
    hold_id: str | None = None  # None when there was nothing to release


class SetSlotCapacityRequest(SlotRef):
    capacity: int


class SlotIdResponse(BaseModel):
    slot_id: str


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class ValidateCouponRequest(BaseModel):
    code: str
    order_type: str
    subtotal: int = Field(ge=0)


class ValidateCouponResponse(BaseModel):
    ok: bool
    discount_amount: int | None = Field(default=None, alias="discountAmount")
    error: str | None = None

    model_config = {"populate_by_name": True}


class CreateCouponRequest(BaseModel):
    code: str
    discount_type: str
    discount_value: int
    description: str | None = None
    min_order_amount: int = 0
    max_uses: int | None = None
    valid_from: date | None = None
    valid_until: date | None = None
    order_types: list[str] | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SPRING10",
                    "discount_type": "percentage",
                    "discount_value": 10,
                    "max_uses": 100,
                    "valid_until": "2026-05-31",
                    "order_types": ["cookies", "cake"],
                }
            ]
        }
    }


class CouponCodeResponse(BaseModel):
    code: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    name: str
    email: str
    phone: str | None = None


class SubmitInquiryRequest(BaseModel):
    order_type: str
    customer: CustomerSchema
    requested_date: date | None = None
    requested_time: str | None = None
    fulfillment: str = "pickup"
    delivery_address: str | None = None
    details: dict = Field(default_factory=dict)
    cart: dict | None = None  # Stored cart payload, cookie orders only
    coupon_code: str | None = None
    hold_id: str | None = None
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_type": "cake",
                    "customer": {"name": "Ada Baker", "email": "ada@example.com", "phone": "555-0100"},
                    "requested_date": "2026-03-01",
                    "requested_time": "10:00",
                    "details": {
                        "occasion": "Birthday",
                        "size": "8 inch",
                        "shape": "round",
                        "flavor": "vanilla",
                    },
                }
            ]
        }
    }


class OrderIdResponse(BaseModel):
    order_id: str


class ConfirmPaymentRequest(BaseModel):
    quote_id: str
    amount: int


class OrderStatusResponse(BaseModel):
    status: str


class BalancePaymentRequest(BaseModel):
    amount: int


class CancelOrderRequest(BaseModel):
    reason: str


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------
class CreateQuoteRequest(BaseModel):
    order_id: str
    deposit_percentage: int | None = None
    valid_days: int | None = None


class QuoteIdResponse(BaseModel):
    quote_id: str


class LineItemSchema(BaseModel):
    description: str
    quantity: int
    unit_price: int  # cents
    sort_order: int | None = None


class SetLineItemsRequest(BaseModel):
    items: list[LineItemSchema]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"description": "Three-tier cake", "quantity": 1, "unit_price": 12000},
                        {"description": "Delivery", "quantity": 2, "unit_price": 1500},
                    ]
                }
            ]
        }
    }


class QuoteTermsRequest(BaseModel):
    deposit_percentage: int | None = None
    valid_until: date | None = None
    notes: str | None = None
    customer_message: str | None = None


class ApproveQuoteRequest(BaseModel):
    approval_token: str | None = None


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------
class ContractTermsSchema(BaseModel):
    contract_body: str | None = None
    event_date: date | None = None
    venue_name: str | None = None
    venue_address: str | None = None
    guest_count: int | None = None
    notes: str | None = None


class CreateContractRequest(ContractTermsSchema):
    order_id: str
    valid_days: int | None = None


class UpdateContractRequest(ContractTermsSchema):
    valid_until: date | None = None


class SignContractRequest(BaseModel):
    signer_name: str | None = None
    agreed: bool = False
    signing_token: str | None = None


class ContractIdResponse(BaseModel):
    contract_id: str


# ---------------------------------------------------------------------------
# Settings and maintenance
# ---------------------------------------------------------------------------
class UpdateSettingsRequest(BaseModel):
    pickup_hours: dict[str, dict | None] | None = None
    lead_times: dict[str, int] | None = None
    slot_duration_minutes: int | None = None
    default_slot_capacity: int | None = None
    deposit_percentage: int | None = None
    quote_validity_days: int | None = None
    contract_validity_days: int | None = None
    provisional_hold_minutes: int | None = None
    cookie_price_per_dozen: int | None = None
    heat_seal_fee_per_dozen: int | None = None


class BlackoutDateRequest(BaseModel):
    day: date
    reason: str | None = None


class ExpirySweepRequest(BaseModel):
    as_of: datetime | None = None


class ExpirySweepResponse(BaseModel):
    quotes_expired: int
    contracts_expired: int
    holds_released: int
    failures: int
