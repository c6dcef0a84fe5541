"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import (
    CheckoutView,
    DeliveryOptionViewSet,
    OfflineSaleView,
    OrderViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")
router.register("delivery-options", DeliveryOptionViewSet, basename="delivery-option")

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("offline-sales/", OfflineSaleView.as_view(), name="offline-sale"),
    *router.urls,
]
