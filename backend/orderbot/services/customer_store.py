"""Customer and order persistence. Used by the webhook handler around decide()."""
import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional

from orderbot.agent.conversation_state import ConversationStage
from orderbot.agent.decision_engine import CustomerState, Mutation, PromoteDraft, SetDraft
from orderbot.core.exceptions import StoreError
from orderbot.models.customer import Customer
from orderbot.models.order import Order
from orderbot.schemas.order import DraftOrder

logger = logging.getLogger(__name__)


def find_or_create(db: Session, whatsapp_number: str) -> Customer:
    """
    Return the customer for this number, creating it on first contact.

    Idempotent: the unique constraint on whatsapp_number means a concurrent
    insert for the same number fails; we roll back and read the winner's row.
    """
    try:
        customer = db.query(Customer).filter(Customer.whatsapp_number == whatsapp_number).first()
        if customer:
            return customer

        customer = Customer(whatsapp_number=whatsapp_number, stage=ConversationStage.IDLE.value)
        db.add(customer)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"[STORE] Customer {whatsapp_number} created concurrently, reloading")
            customer = db.query(Customer).filter(Customer.whatsapp_number == whatsapp_number).one()
            return customer

        db.refresh(customer)
        logger.info(f"[STORE] New customer created: id={customer.id}, number={whatsapp_number}")
        return customer
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"find_or_create failed for {whatsapp_number}: {e}") from e


def save(db: Session, customer: Customer) -> Customer:
    try:
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Saving customer {customer.id} failed: {e}") from e


def create_order(db: Session, customer_id: int, draft: DraftOrder, address: str, auto_commit: bool = True) -> Order:
    """Create the immutable Order from a copy of the draft's items and total."""
    order = Order(
        customer_id=customer_id,
        items=[item.model_dump() for item in draft.items],
        total_price=draft.total_price,
        address=address,
    )
    try:
        db.add(order)
        if auto_commit:
            db.commit()
            db.refresh(order)
        else:
            db.flush()
        return order
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Creating order for customer {customer_id} failed: {e}") from e


def to_state(customer: Customer) -> CustomerState:
    draft = DraftOrder.model_validate(customer.current_order) if customer.current_order else None
    return CustomerState(
        stage=ConversationStage(customer.stage or ConversationStage.IDLE.value),
        current_order=draft,
        address=customer.address,
    )


def apply_mutation(db: Session, customer: Customer, mutation: Mutation) -> Optional[Order]:
    """
    Persist one engine mutation.

    SetDraft:     store draft, stage -> awaiting_address
    PromoteDraft: create Order, clear draft/address, stage -> idle (single commit)

    Returns the created Order for PromoteDraft, else None.
    """
    if isinstance(mutation, SetDraft):
        customer.current_order = mutation.draft.model_dump()
        customer.address = None
        customer.stage = ConversationStage.AWAITING_ADDRESS.value
        save(db, customer)
        logger.info(
            f"[STORE] Draft stored for customer {customer.id}: "
            f"items={customer.current_order['items']}, total={mutation.draft.total_price}"
        )
        return None

    if isinstance(mutation, PromoteDraft):
        if not customer.current_order:
            raise StoreError(f"Customer {customer.id} has no draft to promote")
        draft = DraftOrder.model_validate(customer.current_order)

        order = create_order(db, customer.id, draft, mutation.address, auto_commit=False)
        customer.current_order = None
        customer.address = None
        customer.stage = ConversationStage.IDLE.value
        try:
            db.commit()
            db.refresh(order)
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(f"Promoting draft for customer {customer.id} failed: {e}") from e

        logger.info(
            f"[STORE] Order {order.id} saved for customer {customer.id}: "
            f"total={order.total_price}, address={order.address!r}"
        )
        return order

    raise TypeError(f"Unknown mutation: {mutation!r}")
