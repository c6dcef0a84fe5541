from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.customers.dtos import ContactDTO
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import DeliveryType, OrderChannel
from modules.orders.dtos import CartItemDTO, PlaceOrderDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.models import DeliveryOption, Order
from modules.orders.repositories.django_repository import (
    DeliveryOptionDjangoRepository,
    OrderDjangoRepository,
)
from modules.orders.services import OrderService
from modules.products.constants import NOT_APPLICABLE
from modules.products.models import Category, Product, ProductStatus, Variant
from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.infrastructure.bus import InMemoryEventBus

CATEGORIES = [
    # slug, name, sort order
    ("kaftans", "Kaftans", 10),
    ("dresses", "Dresses", 20),
    ("agbada", "Agbada", 30),
    ("accessories", "Accessories", 40),
]

CATALOG = [
    # name, category, NGN, USD, EUR, GBP, size mods, colors, sizes
    ("Adire Kaftan", "kaftans", "45000", "55", "50", "43", True, ["Indigo", "Rust"], ["M", "L", "XL"]),
    ("Ankara Wrap Dress", "dresses", "38000", "48", "44", "38", True, ["Sunset", "Teal"], ["S", "M", "L"]),
    ("Aso Oke Cap", "accessories", "12000", "15", None, None, False, ["Gold", "Wine"], [NOT_APPLICABLE]),
    ("Beaded Clutch", "accessories", "18500", "23", "21", "18", False, [NOT_APPLICABLE], [NOT_APPLICABLE]),
    ("Linen Agbada Set", "agbada", "120000", "150", "138", "118", True, ["Cream", "Navy"], ["L", "XL", "XXL"]),
    ("Kampala Scarf", "accessories", "8000", "10", "9", "8", False, ["Blue", "Green", "Red"], [NOT_APPLICABLE]),
]

CUSTOMERS = [
    ("Adaeze", "Okafor", "adaeze@example.com", "+2348030000001", "NG", "Lagos"),
    ("Tunde", "Bakare", "tunde@example.com", "+2348030000002", "NG", "Oyo"),
    ("Amara", "Nwosu", "amara@example.com", "+447700900003", "GB", "London"),
    ("Kofi", "Mensah", "kofi@example.com", "+233200000004", "GH", "Accra"),
    ("Grace", "Eze", "grace@example.com", "+12025550105", "US", "Maryland"),
]

DELIVERY_OPTIONS = [
    ("Lagos Same Day", "GIG Logistics", DeliveryType.COURIER, "3500", {"countries": ["NG"]}),
    ("Nationwide Courier", "DHL", DeliveryType.COURIER, "6000", {"countries": ["NG"]}),
    ("International Express", "DHL", DeliveryType.COURIER, "45000", {}),
    ("Studio Pickup (Lekki)", "", DeliveryType.PICKUP, "0", {"countries": ["NG"]}),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders", type=int, default=20, help="Number of orders to place."
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        staff = self._seed_users()
        customers = self._seed_customers()
        self._seed_categories()
        products = self._seed_products()
        options_ = self._seed_delivery_options()
        orders_created = self._seed_orders(
            options["orders"], staff, customers, products, options_
        )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"delivery_options={len(options_)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self):
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
        staff = User.objects.filter(username="shopfloor").first()
        if staff is None:
            staff = User.objects.create_user(
                "shopfloor",
                password="shopfloor123",
                first_name="Shop",
                last_name="Floor",
                is_staff=True,
            )
        return staff

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        customers: list[Customer] = []
        for first, last, email, phone, country, state in CUSTOMERS:
            customer, _ = Customer.objects.get_or_create(
                email=email,
                defaults={
                    "first_name": first,
                    "last_name": last,
                    "phone": phone,
                    "country": country,
                    "state": state,
                    "delivery_address": f"12 Example Street, {state}",
                },
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_categories(self) -> None:
        self.stdout.write("Creating categories...")
        for slug, name, sort_order in CATEGORIES:
            Category.objects.get_or_create(
                slug=slug,
                defaults={
                    "name": name,
                    "sort_order": sort_order,
                    "banner_image": f"https://cdn.example.com/categories/{slug}.jpg",
                },
            )
        self.stdout.write(self.style.SUCCESS("Creating categories... Done!"))

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products and variants...")
        products: list[Product] = []
        for name, category, ngn, usd, eur, gbp, size_mods, colors, sizes in CATALOG:
            product, created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "category_id": category,
                    "price_ngn": Decimal(ngn),
                    "price_usd": Decimal(usd) if usd else None,
                    "price_eur": Decimal(eur) if eur else None,
                    "price_gbp": Decimal(gbp) if gbp else None,
                    "size_mods": size_mods,
                    "status": ProductStatus.ACTIVE,
                    "images": [
                        f"https://cdn.example.com/products/{category}/{name.lower().replace(' ', '-')}.jpg"
                    ],
                },
            )
            if created:
                Variant.objects.bulk_create(
                    [
                        Variant(
                            product=product,
                            color=color,
                            size=size,
                            stock=random.randint(5, 40),
                            weight=Decimal(random.choice(["0.350", "0.800", "1.200"])),
                        )
                        for color in colors
                        for size in sizes
                    ]
                )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products and variants... Done!"))
        return products

    def _seed_delivery_options(self) -> list[DeliveryOption]:
        self.stdout.write("Creating delivery options...")
        created_options: list[DeliveryOption] = []
        for name, provider, type_, fee, metadata in DELIVERY_OPTIONS:
            option, _ = DeliveryOption.objects.get_or_create(
                name=name,
                defaults={
                    "provider": provider,
                    "type": type_,
                    "base_fee": Decimal(fee),
                    "metadata": metadata,
                },
            )
            created_options.append(option)
        self.stdout.write(self.style.SUCCESS("Creating delivery options... Done!"))
        return created_options

    def _seed_orders(self, count, staff, customers, products, delivery_options) -> int:
        self.stdout.write("Placing orders...")
        if Order.objects.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        # no receipts are enqueued for seed orders
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            delivery_option_repository=DeliveryOptionDjangoRepository(),
            event_bus=InMemoryEventBus(),
        )

        placed = 0
        for i in range(count):
            lines = []
            for product in random.sample(products, k=random.randint(1, 3)):
                variant = random.choice(list(product.variants.all()))
                lines.append(
                    CartItemDTO(
                        product_id=product.id,
                        color=variant.color,
                        size=variant.size,
                        quantity=random.randint(1, 2),
                    )
                )

            customer = random.choice(customers)
            offline = i % 4 == 0
            dto = PlaceOrderDTO(
                items=lines,
                channel=OrderChannel.OFFLINE if offline else OrderChannel.ONLINE,
                currency=random.choice(["NGN", "NGN", "USD", "GBP"]),
                payment_method="Cash" if offline else "Paystack",
                customer_id=customer.id,
                contact=ContactDTO(email=customer.email),
                delivery_option_id=random.choice(delivery_options).id,
                payment_reference=None if offline else f"seed-{i + 1:04d}",
                placed_at=timezone.now() - timedelta(days=random.randint(0, 30)),
                staff_id=staff.pk if offline else None,
            )
            try:
                service.place_order(dto)
            except InsufficientStock as exc:
                self.stdout.write(self.style.WARNING(f"Order {i + 1} skipped: {exc}"))
                continue
            placed += 1

        self.stdout.write(self.style.SUCCESS("Placing orders... Done!"))
        return placed
