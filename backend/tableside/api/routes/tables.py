"""Customer table endpoints: bill, orders, payments, waiter calls and feedback."""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from pydantic import TypeAdapter, ValidationError

from tableside.api.deps import KeyValueStore, Notifications, TableNumber, VenueStore
from tableside.core.config import settings
from tableside.core.exceptions import ValidationFailure
from tableside.core.rate_limit import limiter
from tableside.db.base import utcnow
from tableside.schemas.feedback import FeedbackCreate, FeedbackRecord
from tableside.schemas.order import (
    BillPaymentResponse,
    CartLine,
    PaymentInstructions,
    PaymentMethod,
    PendingOrderResponse,
    PlaceOrderRequest,
    SubmissionResponse,
    TableBillResponse,
    TableRequestResponse,
    TableSnapshotResponse,
)
from tableside.services.feedback_store import KeyValueFeedbackStore
from tableside.services.menu_service import build_cart
from tableside.services.order_workflow import OrderWorkflow
from tableside.services.payment_service import PaymentConfirmationFlow, Screenshot, payment_instructions
from tableside.services.table_bill_service import TableBillService
from tableside.services.table_request_service import TableRequestService
from tableside.services.table_session import StoreSnapshotSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/venues/{tenant_id}/tables/{table_number}")

EMPTY_CART = "Your cart is empty"

_cart_lines = TypeAdapter(List[CartLine])


def _submission_response(result) -> SubmissionResponse:
    if result is None:
        return SubmissionResponse(submitted=False, notified=False, message=EMPTY_CART)
    return SubmissionResponse(
        submitted=True,
        notified=result.notified,
        message=result.message,
        order=PendingOrderResponse.model_validate(result.order),
    )


async def _read_screenshot(upload: Optional[UploadFile]) -> Optional[Screenshot]:
    if upload is None:
        return None
    # Read one byte past the limit so oversize files are detected without buffering them whole
    content = await upload.read(settings.max_upload_size_bytes + 1)
    return Screenshot(
        content=content,
        filename=upload.filename or "payment.jpg",
        content_type=upload.content_type,
    )


@router.get("/bill", response_model=Optional[TableBillResponse])
@limiter.limit("60/minute")
def get_table_bill(request: Request, table_number: TableNumber, store: VenueStore):
    """The table's open bill, or null when nothing has been approved yet."""
    return TableBillService(store).get_open_bill(table_number)


@router.get("/snapshot", response_model=TableSnapshotResponse)
@limiter.limit("60/minute")
def get_table_snapshot(request: Request, table_number: TableNumber, store: VenueStore):
    """Open bill plus pending orders; polled by the diner's page."""
    return StoreSnapshotSource(store).fetch(table_number)


@router.post("/orders", response_model=SubmissionResponse)
@limiter.limit("20/minute")
async def place_order(
    request: Request,
    table_number: TableNumber,
    body: PlaceOrderRequest,
    store: VenueStore,
    notifications: Notifications,
):
    """Submit cart lines for staff approval."""
    cart = await asyncio.to_thread(build_cart, store, body.items)
    result = await OrderWorkflow(store, notifications).submit_order(table_number, cart)
    return _submission_response(result)


@router.post("/payments/checkout", response_model=SubmissionResponse)
@limiter.limit("10/minute")
async def checkout_with_screenshot(
    request: Request,
    table_number: TableNumber,
    store: VenueStore,
    notifications: Notifications,
    method: PaymentMethod = Form(...),
    items: str = Form(..., description="JSON list of {menu_item_id, quantity}"),
    screenshot: Optional[UploadFile] = File(None),
):
    """Submit the cart together with a payment screenshot."""
    try:
        lines = _cart_lines.validate_json(items)
    except ValidationError as e:
        raise ValidationFailure(f"Invalid cart items: {e.errors()[0]['msg']}")

    cart = await asyncio.to_thread(build_cart, store, lines)
    workflow = OrderWorkflow(store, notifications)
    flow = PaymentConfirmationFlow(store, workflow, notifications)
    result = await flow.checkout(table_number, cart, await _read_screenshot(screenshot), method)
    return _submission_response(result)


@router.post("/payments/bill", response_model=BillPaymentResponse)
@limiter.limit("10/minute")
async def pay_open_bill(
    request: Request,
    table_number: TableNumber,
    store: VenueStore,
    notifications: Notifications,
    method: PaymentMethod = Form(...),
    screenshot: Optional[UploadFile] = File(None),
):
    """Send a payment screenshot for the open bill. Staff close the bill separately."""
    flow = PaymentConfirmationFlow(store, OrderWorkflow(store, notifications), notifications)
    result = await flow.settle_bill(table_number, await _read_screenshot(screenshot), method)
    return BillPaymentResponse(
        notified=result.notified,
        message=result.message,
        bill=TableBillResponse.model_validate(result.bill),
    )


@router.get("/payments/instructions", response_model=PaymentInstructions)
@limiter.limit("60/minute")
def get_payment_instructions(
    request: Request,
    table_number: TableNumber,
    store: VenueStore,
    method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
):
    return payment_instructions(method, table_number)


@router.post("/waiter-call", response_model=TableRequestResponse)
@limiter.limit("5/minute")
async def call_waiter(
    request: Request,
    table_number: TableNumber,
    store: VenueStore,
    notifications: Notifications,
):
    result = await TableRequestService(store, notifications).call_waiter(table_number)
    return TableRequestResponse(kind=result.kind, notified=result.notified, message=result.message)


@router.post("/bill-request", response_model=TableRequestResponse)
@limiter.limit("5/minute")
async def request_bill(
    request: Request,
    table_number: TableNumber,
    store: VenueStore,
    notifications: Notifications,
):
    result = await TableRequestService(store, notifications).request_bill(table_number)
    return TableRequestResponse(kind=result.kind, notified=result.notified, message=result.message)


@router.post("/feedback", response_model=FeedbackRecord, status_code=201)
@limiter.limit("10/minute")
def leave_feedback(
    request: Request,
    table_number: TableNumber,
    body: FeedbackCreate,
    store: VenueStore,
    kv: KeyValueStore,
):
    record = FeedbackRecord(
        order_id=body.order_id,
        table_number=table_number,
        rating=body.rating,
        comment=body.comment,
        created_at=utcnow(),
    )
    KeyValueFeedbackStore(kv, store.tenant_id).store(record)
    return record
