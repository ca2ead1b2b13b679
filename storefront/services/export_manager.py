"""
Order Export Manager

Serializes order lists for download and archiving:
- CSV (UTF-8 with BOM so spreadsheet apps detect Arabic text)
- XLSX (openpyxl engine)
- Archive copies in the data directory, written under a file lock
"""

import io
import logging
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional

import pandas as pd
from filelock import FileLock, Timeout

from storefront.core.config import get_settings
from storefront.schemas import Order
from storefront.services.pricing import DEFAULT_TIMEZONE, format_short_date

logger = logging.getLogger(__name__)

BOM = "\ufeff"

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ARCHIVE_FORMATS = ("csv", "xlsx")


def _amount(value: float) -> Any:
    """Whole amounts are written without a trailing ``.0``."""
    return int(value) if float(value).is_integer() else value


class ExportManager:
    """Order list exporter."""

    ORDER_COLUMNS = [
        "اسم العميل",
        "الهاتف",
        "العنوان",
        "المحافظة",
        "المبلغ",
        "الحالة",
        "التاريخ",
    ]

    @classmethod
    def to_frame(cls, orders: Iterable[Order], tz_name: str = DEFAULT_TIMEZONE) -> pd.DataFrame:
        rows = [
            [
                order.customer_name,
                order.phone,
                order.address,
                order.governorate or "",
                _amount(order.total_amount),
                order.status.value,
                format_short_date(order.created_at, tz_name),
            ]
            for order in orders
        ]
        return pd.DataFrame(rows, columns=cls.ORDER_COLUMNS)

    @classmethod
    def to_csv_bytes(cls, orders: Iterable[Order], tz_name: str = DEFAULT_TIMEZONE) -> bytes:
        """Comma-separated table with the Arabic header row, prefixed by a BOM."""
        text = cls.to_frame(orders, tz_name).to_csv(index=False, lineterminator="\n")
        return (BOM + text).encode("utf-8")

    @classmethod
    def to_xlsx_bytes(cls, orders: Iterable[Order], tz_name: str = DEFAULT_TIMEZONE) -> bytes:
        buffer = io.BytesIO()
        cls.to_frame(orders, tz_name).to_excel(
            buffer, index=False, sheet_name="الطلبات", engine="openpyxl"
        )
        return buffer.getvalue()

    @staticmethod
    def filename(extension: str = "csv", day: Optional[date] = None) -> str:
        return f"طلبات-{(day or date.today()).isoformat()}.{extension}"

    @classmethod
    def archive(
        cls,
        orders: Iterable[Order],
        extension: str = "csv",
        day: Optional[date] = None,
        data_dir: Optional[Path] = None,
    ) -> dict[str, Any]:
        """Write an export into the data directory with file locking."""
        settings = get_settings()
        data_dir = Path(data_dir or settings.data_directory)
        data_dir.mkdir(parents=True, exist_ok=True)

        target = data_dir / cls.filename(extension, day)
        lock_path = target.with_name(target.name + ".lock")
        result = {"success": False, "message": "", "path": None, "rows": 0}

        orders = list(orders)
        if extension == "csv":
            content = cls.to_csv_bytes(orders, settings.timezone)
        elif extension == "xlsx":
            content = cls.to_xlsx_bytes(orders, settings.timezone)
        else:
            result["message"] = f"Unsupported export format: {extension}"
            return result

        try:
            with FileLock(str(lock_path), timeout=settings.export_lock_timeout):
                target.write_bytes(content)
        except Timeout:
            result["message"] = f"Lock timeout ({settings.export_lock_timeout}s)"
            logger.error(f"Lock timeout archiving {target}")
            return result
        except OSError as e:
            result["message"] = str(e)
            logger.exception(f"Error archiving {target}")
            return result

        logger.info(f"Archived {len(orders)} order(s) to {target}")
        result.update(success=True, message=f"Exported {len(orders)} order(s)", path=str(target), rows=len(orders))
        return result
