"""
Catalog source reading a spreadsheet export of the catalog.

One sheet per tenant (the sheet name is the tenant id) and one row per product.
Columns are matched case-insensitively against the metadata API field names.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pandas as pd

from ..logging_utils import get_logger
from ..models import CatalogItem, Tenant
from .base import CatalogSource
from .http_catalog_source import is_indexable_product, map_product


logger = get_logger(__name__)

PRODUCT_COLUMNS: List[str] = [
    "product_id",
    "name",
    "name_es",
    "short_description",
    "description",
    "sku",
    "unit_price",
    "weight",
    "time_to_serve",
    "status",
    "deleted_at",
]


class ExcelCatalogSource(CatalogSource):
    def __init__(self, excel_path: str) -> None:
        self.excel_path = excel_path

    def _sheet_names(self) -> List[str]:
        with pd.ExcelFile(self.excel_path) as workbook:
            return [str(name) for name in workbook.sheet_names]

    def _load_rows(self, tenant_id: str) -> Optional[List[Dict[str, object]]]:
        if tenant_id not in self._sheet_names():
            return None

        logger.info("Loading catalog sheet '%s' from '%s'", tenant_id, self.excel_path)
        df = pd.read_excel(self.excel_path, sheet_name=tenant_id, dtype=str)

        # Allow case-insensitive matching between expected and actual column names.
        lower_to_actual = {str(c).strip().lower(): c for c in df.columns}
        if "product_id" not in lower_to_actual:
            raise ValueError(
                f"Sheet '{tenant_id}' has no product_id column. "
                f"Available columns: {list(df.columns)}"
            )

        rows: List[Dict[str, object]] = []
        for _, row in df.iterrows():
            record: Dict[str, object] = {}
            for column in PRODUCT_COLUMNS:
                actual = lower_to_actual.get(column)
                value = row[actual] if actual is not None else None
                record[column] = "" if value is None or pd.isna(value) else str(value).strip()
            if record["product_id"]:
                rows.append(record)
        return rows

    async def fetch_tenant(self, tenant_id: str) -> Optional[Tenant]:
        sheet_names = await asyncio.to_thread(self._sheet_names)
        if tenant_id not in sheet_names:
            return None
        return Tenant(tenant_id=tenant_id)

    async def fetch_catalog_items(self, tenant_id: str) -> List[CatalogItem]:
        rows = await asyncio.to_thread(self._load_rows, tenant_id)
        if rows is None:
            return []
        # Spreadsheets usually omit the status column; rows without one are active.
        items = [
            map_product(row)
            for row in rows
            if is_indexable_product({**row, "status": row["status"] or "active"})
        ]
        logger.info("Loaded %d catalog items for tenant '%s'", len(items), tenant_id)
        return items
