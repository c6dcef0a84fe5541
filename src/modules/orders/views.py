"""Order API views.

- ``CheckoutView``: public online checkout (JWT optional).
- ``OfflineSaleView``: staff-logged in-person sales.
- ``OrderViewSet``: staff order inventory and status transitions.
- ``DeliveryOptionViewSet``: public list of delivery options.

Domain exceptions are caught and translated into HTTP status codes; the
views never swallow generic exceptions (those reach the API exception
handler as an opaque 500).
"""

from __future__ import annotations

from typing import Any

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.permissions import IsStaff
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.notifications.services import ReceiptNotifier
from modules.orders.constants import OrderChannel
from modules.orders.dtos import PlaceOrderDTO, StatusUpdateDTO
from modules.orders.exceptions import (
    CustomerNotFound,
    InsufficientStock,
    InvalidDeliveryOption,
    InvalidOrderStatus,
    MissingPrice,
    OrderNotFound,
    PaymentReferenceConflict,
    VariantNotFound,
)
from modules.orders.filters import DeliveryOptionFilter, OrderFilter
from modules.orders.models import DeliveryOption, Order
from modules.orders.repositories.django_repository import (
    DeliveryOptionDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.serializers import (
    DeliveryOptionSerializer,
    OrderListSerializer,
    OrderSerializer,
    PlaceOrderSerializer,
    PlacementSerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository

ORDER_NOT_FOUND = {"detail": "Order not found."}


def _detail(exc: Exception, code: int) -> Response:
    return Response({"detail": str(exc)}, status=code)


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        delivery_option_repository=DeliveryOptionDjangoRepository(),
    )


class PlaceOrderView(APIView):
    """Shared POST handling for checkout and in-person sales."""

    channel: str = OrderChannel.ONLINE

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_dto_data(self, request: Request, validated: dict) -> dict[str, Any]:
        return {**validated, "channel": self.channel}

    def post(self, request: Request) -> Response:
        serializer = PlaceOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = PlaceOrderDTO.model_validate(
                self.get_dto_data(request, serializer.validated_data)
            )
        except PydanticValidationError as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)

        try:
            result = self._service.place_order(dto, user=request.user)
        except (CustomerNotFound, VariantNotFound) as exc:
            return _detail(exc, status.HTTP_404_NOT_FOUND)
        except (InsufficientStock, MissingPrice, InvalidDeliveryOption) as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        except PaymentReferenceConflict as exc:
            return _detail(exc, status.HTTP_409_CONFLICT)

        return Response(
            PlacementSerializer(result.order).data,
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )


class CheckoutView(PlaceOrderView):
    """POST /api/v1/checkout/

    Anonymous buyers are welcome; a valid JWT links the order to the
    customer record of that login. Replaying a ``payment_reference`` answers
    200 with the original order.
    """

    permission_classes = [AllowAny]
    throttle_scope = "checkout"
    channel = OrderChannel.ONLINE


class OfflineSaleView(PlaceOrderView):
    """POST /api/v1/offline-sales/ (staff only)"""

    permission_classes = [IsStaff]
    throttle_scope = "offline_sale"
    channel = OrderChannel.OFFLINE

    def get_dto_data(self, request: Request, validated: dict) -> dict[str, Any]:
        return {**super().get_dto_data(request, validated), "staff_id": request.user.pk}


class OrderViewSet(ListModelMixin, GenericViewSet):
    """Staff order inventory.

    Orders are addressed by ``order_number``. All ORM access goes through
    ``OrderService``.
    """

    permission_classes = [IsStaff]
    lookup_field = "order_number"
    filterset_class = OrderFilter
    search_fields = [
        "order_number",
        "payment_reference",
        "customer__email",
        "customer__last_name",
    ]
    ordering_fields = ["placed_at", "created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Order.objects.none()
    serializer_class = OrderListSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = (
            "order_listing" if self.action in {"list", "retrieve"} else None
        )
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    def retrieve(self, request: Request, order_number: str | None = None) -> Response:
        """GET /api/v1/orders/{order_number}/"""
        try:
            order = self._service.get_order(order_number)
        except OrderNotFound:
            return Response(ORDER_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    def partial_update(
        self, request: Request, order_number: str | None = None
    ) -> Response:
        """PATCH /api/v1/orders/{order_number}/ with ``{"status", "notes"}``"""
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = StatusUpdateDTO.model_validate(serializer.validated_data)
        except PydanticValidationError as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)

        try:
            order = self._service.update_status(
                order_number, dto, user_id=request.user.pk
            )
        except OrderNotFound:
            return Response(ORDER_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return _detail(exc, status.HTTP_400_BAD_REQUEST)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["post"], url_path="retry-receipts")
    def retry_receipts(self, request: Request) -> Response:
        """POST /api/v1/orders/retry-receipts/"""
        return Response(ReceiptNotifier().retry_pending())


class DeliveryOptionViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    """GET /api/v1/delivery-options/ (public, unpaginated)"""

    permission_classes = [AllowAny]
    serializer_class = DeliveryOptionSerializer
    filterset_class = DeliveryOptionFilter
    filter_backends = [DjangoFilterBackend]
    pagination_class = None
    queryset = DeliveryOption.objects.none()

    def get_queryset(self):
        return DeliveryOptionDjangoRepository().list()
