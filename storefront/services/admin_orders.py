"""
Admin Orders Table

Client-side filtering, status changes and export over the order cache.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from storefront.core.constants import ALL_STATUSES, OrderStatus
from storefront.schemas import Order
from storefront.services.export_manager import CSV_MEDIA_TYPE, XLSX_MEDIA_TYPE, ExportManager
from storefront.services.pricing import DEFAULT_TIMEZONE
from storefront.services.store import Notice, OrderStore, StatusChangeResult

logger = logging.getLogger(__name__)

StatusFilter = Union[OrderStatus, str]


def matches_search(order: Order, search_term: str) -> bool:
    """Case-insensitive substring match on name or address; plain match on phone."""
    term = search_term.lower()
    return (
        term in order.customer_name.lower()
        or search_term in order.phone
        or term in order.address.lower()
    )


def matches_status(order: Order, status_filter: StatusFilter) -> bool:
    if status_filter == ALL_STATUSES:
        return True
    value = status_filter.value if isinstance(status_filter, OrderStatus) else status_filter
    return order.status.value == value


def filter_orders(
    orders: Iterable[Order],
    search_term: str = "",
    status_filter: StatusFilter = ALL_STATUSES,
) -> list[Order]:
    """Orders matching both the search text and the status filter, in list order."""
    return [
        order for order in orders
        if matches_search(order, search_term) and matches_status(order, status_filter)
    ]


@dataclass
class ExportFile:
    filename: str
    content: bytes
    media_type: str
    rows: int


class OrdersTable:
    """The admin view of the order cache."""

    def __init__(
        self,
        store: OrderStore,
        search_term: str = "",
        status_filter: StatusFilter = ALL_STATUSES,
        tz_name: str = DEFAULT_TIMEZONE,
    ):
        self.store = store
        self.search_term = search_term
        self.status_filter = status_filter
        self.tz_name = tz_name

    @property
    def loading(self) -> bool:
        return self.store.loading

    @property
    def filtered_orders(self) -> list[Order]:
        return filter_orders(self.store.orders, self.search_term, self.status_filter)

    async def refresh(self) -> bool:
        return await self.store.refetch()

    async def change_status(self, order_id: str, new_status: StatusFilter) -> StatusChangeResult:
        result = await self.store.update_order_status(order_id, new_status)
        if result.success:
            result.notice = Notice.success("تم تحديث حالة الطلب بنجاح", result.notice.description)
        return result

    def export_csv(self, day: Optional[date] = None) -> ExportFile:
        orders = self.filtered_orders
        logger.info(f"Exporting {len(orders)} order(s) to CSV")
        return ExportFile(
            filename=ExportManager.filename("csv", day),
            content=ExportManager.to_csv_bytes(orders, self.tz_name),
            media_type=CSV_MEDIA_TYPE,
            rows=len(orders),
        )

    def export_xlsx(self, day: Optional[date] = None) -> ExportFile:
        orders = self.filtered_orders
        logger.info(f"Exporting {len(orders)} order(s) to XLSX")
        return ExportFile(
            filename=ExportManager.filename("xlsx", day),
            content=ExportManager.to_xlsx_bytes(orders, self.tz_name),
            media_type=XLSX_MEDIA_TYPE,
            rows=len(orders),
        )

    def archive(self, extension: str = "csv", data_dir: Optional[Path] = None) -> dict:
        return ExportManager.archive(self.filtered_orders, extension, data_dir=data_dir)
