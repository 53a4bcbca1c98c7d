"""FastAPI routes for the bakery — availability, slots, coupons, orders,
quotes, contracts, settings and maintenance.

Capacity-taking and capacity-returning calls go through the locked entry
points (``reserve_slot``, ``submit_inquiry``, ``confirm_payment``,
``cancel_order``) rather than ``current_domain.process``.
"""

import json
from datetime import date

from fastapi import APIRouter
from protean.utils.globals import current_domain

from bakery.api.schemas import (
    ApproveQuoteRequest,
    AvailabilityResponse,
    BalancePaymentRequest,
    BlackoutDateRequest,
    CancelOrderRequest,
    ConfirmPaymentRequest,
    ContractIdResponse,
    CouponCodeResponse,
    CreateContractRequest,
    CreateCouponRequest,
    CreateQuoteRequest,
    ExpirySweepRequest,
    ExpirySweepResponse,
    OrderIdResponse,
    OrderStatusResponse,
    QuoteIdResponse,
    QuoteTermsRequest,
    ReleaseSlotRequest,
    ReleaseSlotResponse,
    ReserveSlotRequest,
    ReserveSlotResponse,
    SetLineItemsRequest,
    SetSlotCapacityRequest,
    SignContractRequest,
    SlotIdResponse,
    StatusResponse,
    SubmitInquiryRequest,
    UpdateContractRequest,
    UpdateSettingsRequest,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from bakery.contract.drafting import CreateContract, SendContract, UpdateContract
from bakery.contract.signing import SignContract
from bakery.coupon.management import CreateCoupon, DeactivateCoupon
from bakery.coupon.validation import validate_coupon
from bakery.maintenance.sweep import run_expiry_sweep
from bakery.order.cancellation import cancel_order
from bakery.order.completion import CompleteOrder
from bakery.order.inquiry import SubmitInquiry, submit_inquiry
from bakery.order.payment import RecordBalancePayment, confirm_payment
from bakery.quote.approval import ApproveQuote
from bakery.quote.drafting import CreateQuote, SetLineItems, UpdateQuoteTerms
from bakery.quote.sending import SendQuote
from bakery.settings.blackout import AddBlackoutDate, LiftBlackoutDate
from bakery.settings.management import UpdateSettings
from bakery.shared.order_type import parse_order_type
from bakery.slot.availability import availability_summary
from bakery.slot.reservation import release_slot, reserve_slot, set_slot_capacity

# ---------------------------------------------------------------------------
# Availability Router
# ---------------------------------------------------------------------------
availability_router = APIRouter(prefix="/availability", tags=["availability"])


@availability_router.get("", response_model=AvailabilityResponse)
async def get_availability(order_type: str, start: date, end: date) -> AvailabilityResponse:
    summary = availability_summary(parse_order_type(order_type), start, end)
    return AvailabilityResponse(**summary)


# ---------------------------------------------------------------------------
# Slot Router
# ---------------------------------------------------------------------------
slot_router = APIRouter(prefix="/slots", tags=["slots"])


@slot_router.post("/reserve", status_code=201, response_model=ReserveSlotResponse)
async def reserve(body: ReserveSlotRequest) -> ReserveSlotResponse:
    hold_id = reserve_slot(
        parse_order_type(body.order_type),
        body.day,
        body.start_time,
        order_id=body.order_id,
    )
    return ReserveSlotResponse(hold_id=hold_id)


@slot_router.post("/release", response_model=ReleaseSlotResponse)
async def release(body: ReleaseSlotRequest) -> ReleaseSlotResponse:
    released = release_slot(
        parse_order_type(body.order_type),
        body.day,
        body.start_time,
        hold_id=body.hold_id,
        order_id=body.order_id,
    )
    return ReleaseSlotResponse(hold_id=released)


@slot_router.put("/capacity", response_model=SlotIdResponse)
async def set_capacity(body: SetSlotCapacityRequest) -> SlotIdResponse:
    slot_id = set_slot_capacity(parse_order_type(body.order_type), body.day, body.start_time, body.capacity)
    return SlotIdResponse(slot_id=slot_id)


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("/validate", response_model=ValidateCouponResponse)
async def validate(body: ValidateCouponRequest) -> ValidateCouponResponse:
    check = validate_coupon(body.code, parse_order_type(body.order_type), body.subtotal)
    if check.ok:
        return ValidateCouponResponse(ok=True, discount_amount=check.discount_amount)
    return ValidateCouponResponse(ok=False, error=check.reason)


@coupon_router.post("", status_code=201, response_model=CouponCodeResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponCodeResponse:
    command = CreateCoupon(
        code=body.code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        description=body.description,
        min_order_amount=body.min_order_amount,
        max_uses=body.max_uses,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        order_types=json.dumps(body.order_types) if body.order_types is not None else None,
    )
    code = current_domain.process(command, asynchronous=False)
    return CouponCodeResponse(code=code)


@coupon_router.put("/{code}/deactivate", response_model=StatusResponse)
async def deactivate_coupon(code: str) -> StatusResponse:
    current_domain.process(DeactivateCoupon(code=code), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def create_inquiry(body: SubmitInquiryRequest) -> OrderIdResponse:
    command = SubmitInquiry(
        order_type=body.order_type,
        customer_name=body.customer.name,
        customer_email=body.customer.email,
        customer_phone=body.customer.phone,
        requested_date=body.requested_date,
        requested_time=body.requested_time,
        fulfillment=body.fulfillment,
        delivery_address=body.delivery_address,
        details=json.dumps(body.details, default=str),
        cart=json.dumps(body.cart) if body.cart is not None else None,
        coupon_code=body.coupon_code,
        hold_id=body.hold_id,
        notes=body.notes,
    )
    return OrderIdResponse(order_id=submit_inquiry(command))


@order_router.post("/{order_id}/payments", response_model=OrderStatusResponse)
async def record_deposit(order_id: str, body: ConfirmPaymentRequest) -> OrderStatusResponse:
    status = confirm_payment(order_id, body.quote_id, body.amount)
    return OrderStatusResponse(status=status)


@order_router.post("/{order_id}/balance-payments", response_model=StatusResponse)
async def record_balance(order_id: str, body: BalancePaymentRequest) -> StatusResponse:
    current_domain.process(RecordBalancePayment(order_id=order_id, amount=body.amount), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/complete", response_model=StatusResponse)
async def complete(order_id: str) -> StatusResponse:
    current_domain.process(CompleteOrder(order_id=order_id), asynchronous=False)
    return StatusResponse()


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    cancel_order(order_id, body.reason)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Quote Router
# ---------------------------------------------------------------------------
quote_router = APIRouter(prefix="/quotes", tags=["quotes"])


@quote_router.post("", status_code=201, response_model=QuoteIdResponse)
async def create_quote(body: CreateQuoteRequest) -> QuoteIdResponse:
    command = CreateQuote(
        order_id=body.order_id,
        deposit_percentage=body.deposit_percentage,
        valid_days=body.valid_days,
    )
    quote_id = current_domain.process(command, asynchronous=False)
    return QuoteIdResponse(quote_id=quote_id)


@quote_router.put("/{quote_id}/line-items", response_model=StatusResponse)
async def set_line_items(quote_id: str, body: SetLineItemsRequest) -> StatusResponse:
    items = [item.model_dump(exclude_none=True) for item in body.items]
    current_domain.process(SetLineItems(quote_id=quote_id, line_items=json.dumps(items)), asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/terms", response_model=StatusResponse)
async def update_terms(quote_id: str, body: QuoteTermsRequest) -> StatusResponse:
    command = UpdateQuoteTerms(
        quote_id=quote_id,
        deposit_percentage=body.deposit_percentage,
        valid_until=body.valid_until,
        notes=body.notes,
        customer_message=body.customer_message,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/send", response_model=StatusResponse)
async def send_quote(quote_id: str) -> StatusResponse:
    current_domain.process(SendQuote(quote_id=quote_id), asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/approve", response_model=StatusResponse)
async def approve_quote(quote_id: str, body: ApproveQuoteRequest | None = None) -> StatusResponse:
    command = ApproveQuote(
        quote_id=quote_id,
        approval_token=body.approval_token if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Contract Router
# ---------------------------------------------------------------------------
contract_router = APIRouter(prefix="/contracts", tags=["contracts"])


@contract_router.post("", status_code=201, response_model=ContractIdResponse)
async def create_contract(body: CreateContractRequest) -> ContractIdResponse:
    command = CreateContract(**body.model_dump(exclude_none=True))
    contract_id = current_domain.process(command, asynchronous=False)
    return ContractIdResponse(contract_id=contract_id)


@contract_router.put("/{contract_id}", response_model=StatusResponse)
async def update_contract(contract_id: str, body: UpdateContractRequest) -> StatusResponse:
    command = UpdateContract(contract_id=contract_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@contract_router.put("/{contract_id}/send", response_model=StatusResponse)
async def send_contract(contract_id: str) -> StatusResponse:
    current_domain.process(SendContract(contract_id=contract_id), asynchronous=False)
    return StatusResponse()


@contract_router.put("/{contract_id}/sign", response_model=StatusResponse)
async def sign_contract(contract_id: str, body: SignContractRequest) -> StatusResponse:
    command = SignContract(
        contract_id=contract_id,
        signer_name=body.signer_name,
        agreed=body.agreed,
        signing_token=body.signing_token,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Settings Router
# ---------------------------------------------------------------------------
settings_router = APIRouter(tags=["settings"])


@settings_router.put("/settings", response_model=StatusResponse)
async def update_settings(body: UpdateSettingsRequest) -> StatusResponse:
    changes = body.model_dump(exclude_unset=True)
    for field in ("pickup_hours", "lead_times"):
        if field in changes:
            changes[field] = json.dumps(changes[field])
    current_domain.process(UpdateSettings(**changes), asynchronous=False)
    return StatusResponse()


@settings_router.post("/blackout-dates", status_code=201, response_model=StatusResponse)
async def add_blackout_date(body: BlackoutDateRequest) -> StatusResponse:
    current_domain.process(AddBlackoutDate(day=body.day, reason=body.reason), asynchronous=False)
    return StatusResponse()


@settings_router.delete("/blackout-dates/{day}", response_model=StatusResponse)
async def lift_blackout_date(day: date) -> StatusResponse:
    current_domain.process(LiftBlackoutDate(day=day), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/expire", response_model=ExpirySweepResponse)
async def expire(body: ExpirySweepRequest | None = None) -> ExpirySweepResponse:
    """Run the expiry sweep. Meant for an external scheduler."""
    counts = run_expiry_sweep(as_of=body.as_of if body else None)
    return ExpirySweepResponse(**counts)
