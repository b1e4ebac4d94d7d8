# src/inventory_domain/application/inventory_report_service.py
"""Read-only figures for the dashboard: stock levels, alerts, investment and assignment trends."""

import logging
from collections import OrderedDict
from datetime import date
from typing import Optional

from src.assignment_domain.application.assignment_register import AssignmentRegister
from src.assignment_domain.domain.entities.assignment import EntryKind
from src.common.config.settings import settings
from src.common.dtos.inventory_dtos import DashboardSummaryDTO, ExpiringProductDTO, LowStockVariantDTO
from src.common.utils.date_utils import days_between, parse_date, today
from src.inventory_domain.domain.entities.product import Product
from src.inventory_domain.domain.repositories.inventory_repository import IInventoryRepository

logger = logging.getLogger(__name__)

STATUS_CRITICAL = "critical"
STATUS_WARNING = "warning"
STATUS_OK = "ok"


class InventoryReportService:
    def __init__(self, inventory_repo: IInventoryRepository, register: AssignmentRegister) -> None:
        self.inventory_repo = inventory_repo
        self.register = register

    @staticmethod
    def total_stock(product: Product) -> int:
        return product.total_on_hand()

    def low_stock_products(self) -> list[Product]:
        """Products whose total on-hand is below their global minimum."""
        return [
            product
            for product in self.inventory_repo.get_all_products()
            if product.total_on_hand() < product.min_stock_global
        ]

    def low_stock_variants(self) -> list[LowStockVariantDTO]:
        return [
            LowStockVariantDTO(
                product_name=product.name,
                variant_name=variant.name,
                on_hand=variant.on_hand,
                min_stock=variant.min_stock,
            )
            for product in self.inventory_repo.get_all_products()
            for variant in product.variants
            if variant.is_below_min_stock()
        ]

    @staticmethod
    def days_until_expiration(product: Product, reference_date: date | str | None = None) -> Optional[int]:
        if product.expiration_date is None:
            return None
        return days_between(parse_date(reference_date) or today(), product.expiration_date)

    def expiration_status(self, product: Product, reference_date: date | str | None = None) -> str:
        days_left = self.days_until_expiration(product, reference_date)
        if days_left is None:
            return STATUS_OK
        if days_left <= settings.EXPIRATION_CRITICAL_DAYS:
            return STATUS_CRITICAL
        if days_left <= settings.EXPIRATION_WARNING_DAYS:
            return STATUS_WARNING
        return STATUS_OK

    def expiring_products(
        self, within_days: Optional[int] = None, reference_date: date | str | None = None
    ) -> list[ExpiringProductDTO]:
        """Products expiring within the window, already-expired ones included, soonest first."""
        window = settings.EXPIRATION_WARNING_DAYS if within_days is None else within_days
        expiring = []
        for product in self.inventory_repo.get_all_products():
            days_left = self.days_until_expiration(product, reference_date)
            if days_left is not None and days_left <= window:
                expiring.append(
                    ExpiringProductDTO(
                        product_name=product.name,
                        expiration_date=product.expiration_date,
                        days_left=days_left,
                        status=self.expiration_status(product, reference_date),
                    )
                )
        return sorted(expiring, key=lambda item: item.days_left)

    def total_investment(self) -> float:
        """Value of the stock on hand at each product's unit price."""
        return round(
            sum(product.total_on_hand() * product.price_per_unit for product in self.inventory_repo.get_all_products()),
            2,
        )

    def stock_by_category(self) -> dict[str, int]:
        totals: dict[str, int] = {category: 0 for category in self.inventory_repo.get_categories()}
        for product in self.inventory_repo.get_all_products():
            totals[product.category] = totals.get(product.category, 0) + product.total_on_hand()
        return totals

    def assignments_by_month(self, year: Optional[int] = None) -> "OrderedDict[int, int]":
        """Units handed out per month (1-12) of the given year; waste exits are not counted."""
        target_year = year or today().year
        per_month: OrderedDict[int, int] = OrderedDict((month, 0) for month in range(1, 13))
        for record in self.register.list_records(kind=EntryKind.ASSIGNED):
            if record.assignment_date.year == target_year:
                per_month[record.assignment_date.month] += record.quantity
        return per_month

    def dashboard_summary(self, reference_date: date | str | None = None) -> DashboardSummaryDTO:
        reference = parse_date(reference_date) or today()
        products = self.inventory_repo.get_all_products()
        summary = DashboardSummaryDTO(
            product_count=len(products),
            assignment_count=len(self.register.list_records(kind=EntryKind.ASSIGNED)),
            total_units_on_hand=sum(product.total_on_hand() for product in products),
            total_units_in_transit=sum(product.total_in_transit() for product in products),
            total_investment=self.total_investment(),
            low_stock_products=[product.name for product in self.low_stock_products()],
            low_stock_variants=self.low_stock_variants(),
            expiring_products=self.expiring_products(reference_date=reference),
            upcoming_renewals=len(self.register.upcoming_renewals(settings.RENEWAL_WARNING_DAYS, reference)),
        )
        logger.debug(
            f"Dashboard: {summary.product_count} products, {len(summary.low_stock_products)} low, "
            f"{len(summary.expiring_products)} expiring"
        )
        return summary
