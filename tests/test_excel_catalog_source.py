"""Tests for the spreadsheet catalog source."""

import pandas as pd
import pytest

from catalog_vectordb.catalog.excel_catalog_source import ExcelCatalogSource


@pytest.fixture
def workbook(tmp_path):
    path = tmp_path / "catalog.xlsx"
    shop = pd.DataFrame(
        {
            "Product_ID": ["p1", "p2", "p3", None],
            "Name": ["Mug", "Plate", "Bowl", "Ghost"],
            "Description": ["Blue mug", None, "Deep bowl", "no id"],
            "Unit_Price": ["4.5", "7", "3", "1"],
            "Status": [None, "disabled", "active", "active"],
        }
    )
    no_ids = pd.DataFrame({"name": ["Mug"]})
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        shop.to_excel(writer, sheet_name="shop", index=False)
        no_ids.to_excel(writer, sheet_name="broken", index=False)
    return str(path)


class TestExcelCatalogSource:
    @pytest.mark.asyncio
    async def test_fetch_tenant_by_sheet_name(self, workbook):
        source = ExcelCatalogSource(workbook)

        tenant = await source.fetch_tenant("shop")

        assert tenant.tenant_id == "shop"
        assert await source.fetch_tenant("other") is None

    @pytest.mark.asyncio
    async def test_rows_become_catalog_items(self, workbook):
        items = await ExcelCatalogSource(workbook).fetch_catalog_items("shop")

        assert [item.item_id for item in items] == ["p1", "p3"]
        mug = items[0]
        assert mug.name == "Mug"
        assert mug.description == "Blue mug"
        assert mug.unit_price == 4.5
        assert mug.name_es == ""

    @pytest.mark.asyncio
    async def test_unknown_sheet_has_no_items(self, workbook):
        assert await ExcelCatalogSource(workbook).fetch_catalog_items("other") == []

    @pytest.mark.asyncio
    async def test_sheet_without_product_id_column(self, workbook):
        with pytest.raises(ValueError, match="product_id"):
            await ExcelCatalogSource(workbook).fetch_catalog_items("broken")
