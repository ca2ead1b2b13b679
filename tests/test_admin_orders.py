import asyncio
import io
from datetime import date

import pandas as pd
import pytest

from storefront.core.constants import ALL_STATUSES, OrderStatus
from storefront.services.admin_orders import OrdersTable, filter_orders
from storefront.services.export_manager import BOM, ExportManager
from storefront.services.store import OrderStore

EXPORT_DAY = date(2026, 10, 17)


@pytest.fixture
def store(order_repository, change_feed):
    store = OrderStore(order_repository, change_feed)
    asyncio.run(store.start())
    return store


@pytest.mark.parametrize(
    "search,status",
    [
        ("", ALL_STATUSES),
        ("سارة", ALL_STATUSES),
        ("0129", ALL_STATUSES),
        ("hoda", ALL_STATUSES),
        ("سموحة", OrderStatus.SHIPPED.value),
        ("", OrderStatus.DELIVERED),
        ("لا يوجد", ALL_STATUSES),
    ],
)
def test_filter_is_subset_matching_both_predicates(store, search, status):
    result = filter_orders(store.orders, search, status)

    assert all(order in store.orders for order in result)
    value = status.value if isinstance(status, OrderStatus) else status
    for order in result:
        assert (
            search.lower() in order.customer_name.lower()
            or search in order.phone
            or search.lower() in order.address.lower()
        )
        assert value == ALL_STATUSES or order.status.value == value


def test_filter_examples(store):
    assert [o.id for o in filter_orders(store.orders)] == ["order-3", "order-2", "order-1"]
    assert [o.id for o in filter_orders(store.orders, "HODA")] == ["order-3"]
    assert [o.id for o in filter_orders(store.orders, "01298")] == ["order-2"]
    assert [o.id for o in filter_orders(store.orders, "", "جديد")] == ["order-1"]
    assert filter_orders(store.orders, "منى", "جديد") == []


def test_change_status_modifies_only_that_order(store):
    table = OrdersTable(store)
    before = {o.id: o.model_dump() for o in store.orders}

    result = asyncio.run(table.change_status("order-1", "تم الشحن"))

    assert result.success
    assert result.notice.title == "تم تحديث حالة الطلب بنجاح"
    for order in store.orders:
        dumped = order.model_dump()
        if order.id == "order-1":
            assert order.status == OrderStatus.SHIPPED
            dumped.pop("status")
            expected = dict(before[order.id])
            expected.pop("status")
            # The change feed reload carries the store's new updated_at
            dumped.pop("updated_at")
            expected.pop("updated_at")
            assert dumped == expected
        else:
            assert dumped == before[order.id]


def test_change_status_rejects_unknown_value(store):
    result = asyncio.run(OrdersTable(store).change_status("order-1", "مفقود"))
    assert not result.success
    assert store.get("order-1").status == OrderStatus.NEW


def test_export_csv(store):
    table = OrdersTable(store, status_filter=OrderStatus.NEW.value)

    export = table.export_csv(EXPORT_DAY)

    text = export.content.decode("utf-8")
    assert text.startswith(BOM)
    lines = text[len(BOM):].strip().split("\n")
    assert lines[0] == "اسم العميل,الهاتف,العنوان,المحافظة,المبلغ,الحالة,التاريخ"
    assert len(lines) == 2
    assert lines[1] == "سارة أحمد,01012345678,15 شارع التحرير، الدقي,القاهرة,280,جديد,١٧/١٠/٢٠٢٦"
    assert export.filename == "طلبات-2026-10-17.csv"
    assert export.rows == 1


def test_export_xlsx(store):
    export = OrdersTable(store).export_xlsx(EXPORT_DAY)

    frame = pd.read_excel(io.BytesIO(export.content), sheet_name="الطلبات", dtype=str)
    assert list(frame.columns) == ExportManager.ORDER_COLUMNS
    assert len(frame) == 3
    assert export.filename.endswith(".xlsx")


def test_archive_writes_to_data_directory(store, tmp_path):
    result = ExportManager.archive(store.orders, "csv", EXPORT_DAY, tmp_path)

    assert result["success"]
    assert result["rows"] == 3
    assert (tmp_path / "طلبات-2026-10-17.csv").read_bytes().startswith(BOM.encode("utf-8"))


def test_archive_unsupported_format(store, tmp_path):
    result = ExportManager.archive(store.orders, "pdf", EXPORT_DAY, tmp_path)
    assert not result["success"]
