"""Order service layer (Use Cases).

``place_order`` is the single entry point for both online checkout and
staff-logged in-person sales. Inside one transaction it resolves the buyer,
locks and decrements variant stock, prices every line, and persists the
order with its item snapshots. Any failure rolls every write back,
stock included. Notifications are published only after commit.

``update_status`` drives the back-office state machine.
"""

from __future__ import annotations

from decimal import Decimal
from functools import partial
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.customers.identity import Identity, IdentityResolver
from modules.notifications.services import ReceiptNotifier
from modules.orders.constants import OrderChannel, OrderStatus
from modules.orders.dtos import PlacementResult
from modules.orders.events import OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import (
    InsufficientStock,
    InvalidDeliveryOption,
    InvalidOrderStatus,
    OrderNotFound,
    PaymentReferenceConflict,
    VariantNotFound,
)
from modules.orders.pricing import (
    ZERO,
    LinePrice,
    order_total,
    price_line,
    quantize,
    round_reference_total,
)
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CartItemDTO, PlaceOrderDTO, StatusUpdateDTO
    from modules.orders.models import DeliveryOption, Order
    from modules.orders.repositories.interfaces import (
        IDeliveryOptionRepository,
        IOrderRepository,
    )
    from modules.products.models import Variant
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
        delivery_option_repository: Optional[IDeliveryOptionRepository] = None,
        receipt_notifier: Optional[ReceiptNotifier] = None,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository
        self._delivery_repo = delivery_option_repository
        self._receipts = receipt_notifier or ReceiptNotifier()
        self._event_bus = event_bus or default_event_bus
        self._identity = IdentityResolver(customer_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_order(self, dto: PlaceOrderDTO, user: Any = None) -> PlacementResult:
        """Place an order, or return the one already placed for the same
        ``payment_reference`` (``created=False``).

        ``user`` is the authenticated requester; on the online channel a
        customer linked to that login takes precedence over the payload.

        A replay is only answered for the original buyer: the same
        customer (by id or linked login) or the same contact email.

        Raises:
            PaymentReferenceConflict: the reference belongs to another buyer.
            CustomerNotFound: in-person sale names an unknown customer.
            InvalidDeliveryOption: option missing or inactive.
            VariantNotFound: a cart line matches no variant.
            InsufficientStock: a variant cannot cover its line.
            MissingPrice: strict pricing and a product lacks the currency.
            OrderNumberExhausted: no free order number could be allocated.
        """
        try:
            return self._place_order(dto, user)
        except IntegrityError:
            # a concurrent request committed the same payment reference first
            if dto.payment_reference:
                existing = self._order_repo.get_by_payment_reference(
                    dto.payment_reference
                )
                if existing:
                    self._ensure_same_buyer(existing, dto, user)
                    logger.info(
                        "order.idempotency_race_resolved",
                        order_number=existing.order_number,
                    )
                    return PlacementResult(order=existing, created=False)
            raise

    @transaction.atomic
    def _place_order(self, dto: PlaceOrderDTO, user: Any = None) -> PlacementResult:
        log = logger.bind(
            channel=dto.channel,
            currency=dto.currency,
            item_count=len(dto.items),
        )
        log.info("order.placement_started")

        # 0. Idempotency
        if dto.payment_reference:
            existing = self._order_repo.get_by_payment_reference(dto.payment_reference)
            if existing:
                self._ensure_same_buyer(existing, dto, user)
                log.info("order.idempotency_hit", order_number=existing.order_number)
                return PlacementResult(order=existing, created=False)

        # 1. Buyer identity
        identity = self._identity.resolve(
            user=user if dto.is_online else None,
            customer_id=dto.customer_id,
            contact=dto.contact,
            allow_guest_fallback=dto.is_online,
        )

        # 2. Delivery
        delivery_option = self._resolve_delivery_option(dto)
        delivery_fee = self._resolve_delivery_fee(dto, delivery_option)

        # 3-4. Lock and decrement stock
        variants = self._reserve_stock(dto.items, log)

        # 5-7. Price each line in cart order
        priced: List[LinePrice] = [
            price_line(
                variant.product,
                dto.currency,
                item.quantity,
                dto.channel,
                has_size_mod=item.has_size_mod,
                size_mod_fee=item.size_mod_fee,
            )
            for item, variant in zip(dto.items, variants)
        ]
        subtotal = sum((line.line_total for line in priced), ZERO)
        reference_total = sum((line.reference_total for line in priced), ZERO)

        # 8. Total
        total_amount = order_total(subtotal, delivery_fee, dto.channel)

        # 9-10. Persist (order number allocated on save)
        placed_at = dto.placed_at or timezone.now()
        order = self._order_repo.create(
            {
                "status": OrderStatus.PROCESSING,
                "channel": dto.channel,
                "currency": dto.currency,
                "total_amount": total_amount,
                "total_ngn": round_reference_total(reference_total),
                "delivery_fee": delivery_fee,
                "payment_method": dto.payment_method,
                "payment_reference": dto.payment_reference,
                "placed_at": placed_at,
                "customer": identity.customer,
                "guest_info": identity.guest if identity.is_guest else None,
                "staff_id": None if dto.is_online else dto.staff_id,
                "delivery_option": delivery_option,
                "delivery_details": self._delivery_details(
                    dto, variants, delivery_option
                ),
                "items": [
                    self._item_snapshot(item, variant, line, dto.currency)
                    for item, variant, line in zip(dto.items, variants, priced)
                ],
            }
        )
        actor_id = self._actor_id(dto, user)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PROCESSING,
            notes="Order placed",
            user_id=actor_id,
        )
        if not dto.is_online:
            self._order_repo.record_offline_sale(order, dto.staff_id, placed_at)
        self._receipts.track(order, delivery_fee)

        # 11. Refresh a registered customer's contact details
        self._sync_contact(identity, dto, log)

        # 12. Notify after commit
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                order_number=order.order_number,
                channel=dto.channel,
            )
        )
        transaction.on_commit(partial(self._publish_events, order))

        log.info(
            "order.placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(total_amount),
            total_ngn=order.total_ngn,
            guest=identity.is_guest,
        )
        return PlacementResult(
            order=self._order_repo.get_by_id(str(order.id)) or order, created=True
        )

    @transaction.atomic
    def update_status(
        self, order_number: str, dto: StatusUpdateDTO, user_id: Optional[int] = None
    ) -> Order:
        """Transition an order to a new status under a row lock.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: transition is not allowed.
        """
        order = self._order_repo.get_for_update(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found.")

        new_status = dto.status
        log = logger.bind(
            order_number=order_number,
            current_status=order.status,
            new_status=new_status,
        )
        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        old_status = order.status
        order.status = new_status
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=dto.notes,
            old_status=old_status,
            user_id=user_id,
        )

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=str(new_status),
            )
        )
        transaction.on_commit(partial(self._publish_events, order))

        log.info("order.status_updated")
        return self._order_repo.get_by_order_number(order_number) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_number: str) -> Order:
        """Raises ``OrderNotFound`` if the order does not exist."""
        order = self._order_repo.get_by_order_number(order_number)
        if not order:
            raise OrderNotFound(f"Order {order_number} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._order_repo.list(filters)

    def customer_orders(self, customer_id: Any) -> QuerySet:
        return self._order_repo.list({"customer_id": customer_id}).order_by(
            "-placed_at", "-id"
        )

    def customer_summary(self, customer_id: Any) -> Dict[str, Any]:
        return self._order_repo.customer_summary(customer_id)

    # ------------------------------------------------------------------
    # Placement steps
    # ------------------------------------------------------------------

    def _ensure_same_buyer(self, existing: Order, dto: PlaceOrderDTO, user: Any) -> None:
        if existing.customer_id is not None:
            if dto.customer_id and str(dto.customer_id) == str(existing.customer_id):
                return
            if dto.is_online and getattr(user, "is_authenticated", False):
                linked = self._customer_repo.get_by_user(user.pk)
                if linked and linked.id == existing.customer_id:
                    return
        email = (dto.contact.email or "") if dto.contact else ""
        if email and email.lower() == existing.contact_email.lower():
            return
        logger.warning(
            "order.payment_reference_conflict",
            order_id=str(existing.id),
            channel=dto.channel,
        )
        raise PaymentReferenceConflict("Payment reference is already in use.")

    def _resolve_delivery_option(self, dto: PlaceOrderDTO) -> Optional[DeliveryOption]:
        if dto.delivery_option_id is None:
            return None
        option = None
        if self._delivery_repo is not None:
            option = self._delivery_repo.get_by_id(str(dto.delivery_option_id))
        if option is None or not option.active:
            raise InvalidDeliveryOption(
                f"Delivery option {dto.delivery_option_id} is not available."
            )
        return option

    @staticmethod
    def _resolve_delivery_fee(
        dto: PlaceOrderDTO, option: Optional[DeliveryOption]
    ) -> Decimal:
        if dto.delivery_fee is not None:
            return quantize(dto.delivery_fee)
        if option is not None and option.base_fee is not None:
            return quantize(option.base_fee)
        return ZERO

    def _reserve_stock(self, items: List[CartItemDTO], log: Any) -> List[Variant]:
        """Lock and decrement every line's variant.

        Lines are resolved to variant ids first; the rows are then locked in
        id order so concurrent carts touching the same variants cannot
        deadlock, however their lines are written. Returns the variants
        aligned with ``items``.
        """
        variant_ids = []
        for item in items:
            found = self._product_repo.find_variant(item.product_id, item.color, item.size)
            if found is None:
                raise VariantNotFound(
                    f"Variant not found for product {item.product_id} "
                    f"(color={item.color}, size={item.size})."
                )
            variant_ids.append(found.id)

        locked = self._product_repo.lock_variants(variant_ids)
        resolved: List[Variant] = []
        for item, variant_id in zip(items, variant_ids):
            variant = locked.get(variant_id)
            if variant is None:
                raise VariantNotFound(
                    f"Variant {variant_id} of product {item.product_id} "
                    "is no longer available."
                )
            if variant.stock < item.quantity or not self._product_repo.decrement_stock(
                variant.id, item.quantity
            ):
                log.warning(
                    "order.insufficient_stock",
                    variant_id=str(variant.id),
                    requested=item.quantity,
                    available=variant.stock,
                )
                raise InsufficientStock(
                    f"Insufficient stock for {variant.product.name}: "
                    f"requested {item.quantity}, available {variant.stock}."
                )
            # lines sharing a variant see each other's decrement
            variant.stock -= item.quantity
            log.info(
                "order.stock_reserved",
                variant_id=str(variant.id),
                quantity=item.quantity,
                remaining=variant.stock,
            )
            resolved.append(variant)
        return resolved

    @staticmethod
    def _item_snapshot(
        item: CartItemDTO, variant: Variant, line: LinePrice, currency: str
    ) -> Dict[str, Any]:
        product = variant.product
        custom_size = dict(item.custom_size) if item.custom_size else None
        if custom_size is not None and variant.weight is not None:
            custom_size["unit_weight"] = str(variant.weight)
            custom_size["total_weight"] = str(variant.weight * item.quantity)
        return {
            "variant": variant,
            "name": product.name,
            "image": product.primary_image or "",
            "category": product.category_id,
            "color": variant.color,
            "size": variant.size,
            "quantity": item.quantity,
            "currency": currency,
            "unit_price": line.unit_price,
            "line_total": line.line_total,
            "has_size_mod": line.has_size_mod,
            "size_mod_fee": line.size_mod_fee,
            "custom_size": custom_size,
        }

    @staticmethod
    def _delivery_details(
        dto: PlaceOrderDTO,
        variants: List[Variant],
        option: Optional[DeliveryOption],
    ) -> Dict[str, Any]:
        details = dict(dto.delivery_details)
        weights = [
            variant.weight * item.quantity
            for item, variant in zip(dto.items, variants)
            if variant.weight is not None
        ]
        if weights:
            details["aggregated_weight"] = str(sum(weights))
        if option is not None:
            details["delivery_option_id"] = str(option.id)
            details["delivery_option_name"] = option.name
        return details

    @staticmethod
    def _actor_id(dto: PlaceOrderDTO, user: Any) -> Optional[int]:
        if not dto.is_online:
            return dto.staff_id
        if user is not None and getattr(user, "is_authenticated", False):
            return user.pk
        return None

    def _sync_contact(self, identity: Identity, dto: PlaceOrderDTO, log: Any) -> None:
        if identity.is_guest or dto.contact is None:
            return
        customer = identity.customer
        changed = customer.apply_contact(dto.contact.model_dump())
        if changed:
            self._customer_repo.save(customer)
            log.info(
                "order.customer_contact_synced",
                customer_id=str(customer.id),
                fields=changed,
            )

    def _publish_events(self, order: Order) -> None:
        self._event_bus.publish_all(order.pull_domain_events())
