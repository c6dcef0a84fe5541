"""Product API views.

Public catalog reads; staff-only writes. Domain exceptions raised by
``ProductService`` are translated here into HTTP responses.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin, RetrieveModelMixin
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.permissions import IsStaffOrReadOnly
from modules.products.dtos import (
    CreateProductDTO,
    SetStockDTO,
    UpdateProductDTO,
    VariantInputDTO,
)
from modules.products.exceptions import (
    CategoryNotFound,
    ProductNotFound,
    VariantAlreadyExists,
    VariantNotFound,
)
from modules.products.filters import ProductFilter
from modules.products.models import Category, Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import (
    CategorySerializer,
    ProductSerializer,
    VariantSerializer,
)
from modules.products.services import ProductService

PRODUCT_NOT_FOUND = {"detail": "Product not found."}


def _bad_request(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


class ProductViewSet(ListModelMixin, GenericViewSet):
    """Catalog CRUD plus variant management.

    All ORM access goes through ``ProductService``; this is not a
    ``ModelViewSet`` on purpose.
    """

    permission_classes = [IsStaffOrReadOnly]
    filterset_class = ProductFilter
    search_fields = ["name", "category__name", "description"]
    ordering_fields = ["name", "price_ngn", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.none()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_queryset(self):
        return self._service.list_products()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        try:
            product = self._service.get_product(pk)
        except ProductNotFound:
            return Response(PRODUCT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        try:
            dto = CreateProductDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return _bad_request(exc)

        try:
            product = self._service.create_product(dto)
        except CategoryNotFound as exc:
            return _bad_request(exc)
        return Response(
            ProductSerializer(product).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        try:
            dto = UpdateProductDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return _bad_request(exc)

        try:
            product = self._service.update_product(pk, dto)
        except ProductNotFound:
            return Response(PRODUCT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except (CategoryNotFound, ValueError) as exc:
            return _bad_request(exc)
        return Response(ProductSerializer(product).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (soft delete)"""
        try:
            self._service.delete_product(pk)
        except ProductNotFound:
            return Response(PRODUCT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="variants")
    def add_variant(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/products/{pk}/variants/"""
        try:
            dto = VariantInputDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return _bad_request(exc)

        try:
            variant = self._service.add_variant(pk, dto)
        except ProductNotFound:
            return Response(PRODUCT_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except VariantAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(
            VariantSerializer(variant).data, status=status.HTTP_201_CREATED
        )

    @action(
        detail=True,
        methods=["patch"],
        url_path=r"variants/(?P<variant_id>[^/.]+)/stock",
    )
    def set_stock(
        self, request: Request, pk: str | None = None, variant_id: str | None = None
    ) -> Response:
        """PATCH /api/v1/products/{pk}/variants/{variant_id}/stock/

        Body: ``{"stock": N}``; sets an absolute value.
        """
        try:
            dto = SetStockDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return _bad_request(exc)

        try:
            variant = self._service.set_stock(pk, variant_id, dto)
        except VariantNotFound:
            return Response(
                {"detail": "Variant not found."}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(VariantSerializer(variant).data)


class CategoryViewSet(ListModelMixin, RetrieveModelMixin, GenericViewSet):
    """GET /api/v1/categories/ (public, unpaginated)

    Listing shows active categories only; a slug look-up also resolves
    inactive ones so old product links keep working.
    """

    permission_classes = [AllowAny]
    serializer_class = CategorySerializer
    pagination_class = None
    lookup_field = "slug"
    queryset = Category.objects.none()

    def get_queryset(self):
        service = ProductService(repository=ProductDjangoRepository())
        return service.list_categories(active_only=self.action == "list")
