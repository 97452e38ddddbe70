"""Tests for flash sale campaigns."""

from datetime import datetime, timedelta, timezone

import pytest

from storefront.core.errors import NotFound, ValidationError
from storefront.repositories.flash_sale_repo import FlashSaleRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.flash_sale import (
    FlashSaleCreate,
    FlashSaleItemCreate,
    FlashSaleItemsAdd,
    FlashSaleUpdate,
)
from storefront.models.flash_sale import as_utc
from storefront.services.flash_sale_service import FlashSaleService

API = "/api/v1"

NOW = datetime(2024, 6, 1, 12, 0)


@pytest.fixture
def flash_sales():
    return FlashSaleService(FlashSaleRepository(), ProductRepository())


def window(start_hours, end_hours, base=NOW):
    return base + timedelta(hours=start_hours), base + timedelta(hours=end_hours)


def new_sale(service, session, name, start_hours, end_hours, is_active=True):
    start, end = window(start_hours, end_hours)
    return service.create_sale(
        session,
        FlashSaleCreate(name=name, start_time=start, end_time=end, is_active=is_active),
    )


class TestAsUtc:
    def test_aware_is_converted(self):
        hanoi = timezone(timedelta(hours=7))
        value = datetime(2024, 6, 1, 19, 0, tzinfo=hanoi)
        assert as_utc(value) == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert as_utc(value).utcoffset() == timedelta(0)

    def test_naive_is_read_as_utc(self):
        assert as_utc(NOW) == NOW.replace(tzinfo=timezone.utc)


class TestActiveSale:
    def test_none_when_nothing_runs(self, session, flash_sales):
        new_sale(flash_sales, session, "Tomorrow", 24, 48)
        new_sale(flash_sales, session, "Yesterday", -48, -24)
        assert flash_sales.get_active(session, now=NOW) is None

    def test_most_recently_started_wins(self, session, flash_sales):
        new_sale(flash_sales, session, "Week long", -72, 72)
        new_sale(flash_sales, session, "Lunch deal", -1, 2)
        active = flash_sales.get_active(session, now=NOW)
        assert active.name == "Lunch deal"

    def test_disabled_sale_is_ignored(self, session, flash_sales):
        new_sale(flash_sales, session, "Paused", -1, 1, is_active=False)
        assert flash_sales.get_active(session, now=NOW) is None

    def test_end_is_exclusive(self, session, flash_sales):
        new_sale(flash_sales, session, "Ends at noon", -2, 0)
        assert flash_sales.get_active(session, now=NOW) is None

    def test_aware_now_is_normalized(self, session, flash_sales):
        new_sale(flash_sales, session, "Lunch deal", -1, 2)
        hanoi_noon = NOW.replace(tzinfo=timezone.utc).astimezone(timezone(timedelta(hours=7)))
        assert flash_sales.get_active(session, now=hanoi_noon).name == "Lunch deal"

    def test_aware_window_is_stored_as_utc(self, session, flash_sales):
        hanoi = timezone(timedelta(hours=7))
        start = datetime(2024, 6, 1, 18, 0, tzinfo=hanoi)
        end = datetime(2024, 6, 1, 21, 0, tzinfo=hanoi)
        flash_sales.create_sale(
            session, FlashSaleCreate(name="Evening", start_time=start, end_time=end)
        )
        sale = flash_sales.get_active(session, now=NOW)
        assert sale.name == "Evening"
        assert as_utc(sale.start_time) == datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc)

    def test_mixed_window_is_accepted(self, session, flash_sales):
        flash_sales.create_sale(
            session,
            FlashSaleCreate(
                name="Mixed",
                start_time=NOW - timedelta(hours=1),
                end_time=(NOW + timedelta(hours=1)).replace(tzinfo=timezone.utc),
            ),
        )
        assert flash_sales.get_active(session, now=NOW).name == "Mixed"


class TestSaleItems:
    def test_add_items_and_replace_price(self, session, flash_sales, make_product):
        product = make_product(name="Headphones", price=200.0)
        sale = new_sale(flash_sales, session, "Audio week", -1, 24)

        sale = flash_sales.add_items(
            session,
            sale.id,
            FlashSaleItemsAdd(items=[FlashSaleItemCreate(product_id=product.id, sale_price=150.0)]),
        )
        assert sale.name == "Audio week"
        assert [(i.product_name, i.sale_price) for i in sale.items] == [("Headphones", 150.0)]

        sale = flash_sales.add_items(
            session,
            sale.id,
            FlashSaleItemsAdd(
                items=[FlashSaleItemCreate(product_id=product.id, sale_price=120.0, item_limit=5)]
            ),
        )
        assert len(sale.items) == 1
        assert sale.items[0].sale_price == 120.0
        assert sale.items[0].item_limit == 5

    def test_sale_price_must_undercut(self, session, flash_sales, make_product):
        product = make_product(price=100.0)
        sale = new_sale(flash_sales, session, "Bad deal", -1, 1)
        with pytest.raises(ValidationError):
            flash_sales.add_items(
                session,
                sale.id,
                FlashSaleItemsAdd(items=[FlashSaleItemCreate(product_id=product.id, sale_price=100.0)]),
            )

    def test_unknown_product(self, session, flash_sales):
        sale = new_sale(flash_sales, session, "Empty", -1, 1)
        with pytest.raises(NotFound):
            flash_sales.add_items(
                session,
                sale.id,
                FlashSaleItemsAdd(items=[FlashSaleItemCreate(product_id=999, sale_price=1.0)]),
            )

    def test_remove_item(self, session, flash_sales, make_product):
        product = make_product(price=100.0)
        sale = new_sale(flash_sales, session, "Short", -1, 1)
        flash_sales.add_items(
            session,
            sale.id,
            FlashSaleItemsAdd(items=[FlashSaleItemCreate(product_id=product.id, sale_price=50.0)]),
        )
        flash_sales.remove_item(session, sale.id, product.id)
        assert flash_sales.get_sale(session, sale.id).items == []
        with pytest.raises(NotFound):
            flash_sales.remove_item(session, sale.id, product.id)


class TestUpdateSale:
    def test_window_must_stay_ordered(self, session, flash_sales):
        sale = new_sale(flash_sales, session, "Weekend", 0, 48)
        with pytest.raises(ValidationError):
            flash_sales.update_sale(
                session, sale.id, FlashSaleUpdate(end_time=NOW - timedelta(hours=1))
            )

    def test_repository_status_listing(self, session, flash_sales):
        running = new_sale(flash_sales, session, "Running", -1, 1)
        new_sale(flash_sales, session, "Later", 24, 48)
        sales = FlashSaleRepository().list_sales(
            session, now=NOW.replace(tzinfo=timezone.utc), status="active"
        )
        assert [s.id for s in sales] == [running.id]

    def test_partial_update(self, session, flash_sales):
        sale = new_sale(flash_sales, session, "Weekend", 0, 48)
        updated = flash_sales.update_sale(
            session, sale.id, FlashSaleUpdate(name="Long weekend", is_active=False)
        )
        assert updated.name == "Long weekend"
        assert updated.is_active is False
        assert updated.end_time == sale.end_time

    def test_update_with_aware_times(self, session, flash_sales):
        sale = new_sale(flash_sales, session, "Weekend", 0, 48)
        updated = flash_sales.update_sale(
            session,
            sale.id,
            FlashSaleUpdate(end_time=(NOW + timedelta(hours=72)).replace(tzinfo=timezone.utc)),
        )
        assert as_utc(updated.end_time) == (NOW + timedelta(hours=72)).replace(tzinfo=timezone.utc)


class TestFlashSaleRoutes:
    def test_no_active_sale_returns_null(self, client):
        body = client.get(f"{API}/products/flash-sale/active").json()
        assert body == {"message": "No active flash sale", "data": None}

    def test_admin_lifecycle(self, client, admin_headers, make_product):
        product = make_product(name="Kettle", price=80.0)
        now = datetime.now(timezone.utc)
        created = client.post(
            f"{API}/admin/flash-sales",
            json={
                "name": "Kitchen hour",
                "start_time": (now - timedelta(minutes=5)).isoformat(),
                "end_time": (now + timedelta(hours=1)).isoformat(),
            },
            headers=admin_headers,
        )
        assert created.status_code == 201
        sale_id = created.json()["data"]["id"]

        added = client.post(
            f"{API}/admin/flash-sales/{sale_id}/items",
            json={"items": [{"product_id": product.id, "sale_price": 60}]},
            headers=admin_headers,
        )
        assert added.status_code == 200

        active = client.get(f"{API}/products/flash-sale/active").json()["data"]
        assert active["id"] == sale_id
        assert active["items"][0]["product_name"] == "Kettle"

        listing = client.get(
            f"{API}/admin/flash-sales", params={"status": "active"}, headers=admin_headers
        ).json()["data"]
        assert [s["id"] for s in listing["flash_sales"]] == [sale_id]

        removed = client.delete(
            f"{API}/admin/flash-sales/{sale_id}/items/{product.id}", headers=admin_headers
        )
        assert removed.status_code == 200
        assert client.get(f"{API}/products/flash-sale/active").json()["data"]["items"] == []

    def test_reversed_window_rejected(self, client, admin_headers):
        response = client.post(
            f"{API}/admin/flash-sales",
            json={
                "name": "Backwards",
                "start_time": "2024-06-02T00:00:00",
                "end_time": "2024-06-01T00:00:00",
            },
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_customer_cannot_manage(self, client, user_headers):
        assert client.get(f"{API}/admin/flash-sales", headers=user_headers).status_code == 401
