import pytest

from restaurant import services
from restaurant.receipts import build_receipt, ReceiptUnavailable

pytestmark = pytest.mark.django_db


def test_billed_order_renders_pdf(table, burger, juice, place, cashier):
    order = place(table, [(burger, 1), (juice, 2)], customer_name='Rahim & Sons <VIP>')
    order = services.bill_order(order, cashier)
    pdf = build_receipt(order)
    assert pdf.startswith(b'%PDF')
    assert len(pdf) > 1000


def test_completed_order_renders_pdf(table, burger, place, cashier):
    order = place(table, [(burger, 1)])
    services.bill_order(order, cashier)
    order = services.complete_order(order, cashier)
    assert build_receipt(order).startswith(b'%PDF')


def test_open_order_has_no_receipt(table, burger, place):
    order = place(table, [(burger, 1)])
    with pytest.raises(ReceiptUnavailable):
        build_receipt(order)


@pytest.mark.parametrize('symbol', ['$', 'EUR'])
def test_currency_symbol_comes_from_settings(settings, table, burger, place, cashier, symbol):
    settings.SMARTSERVE = dict(settings.SMARTSERVE, CURRENCY_SYMBOL=symbol)
    order = services.bill_order(place(table, [(burger, 1)]), cashier)
    assert build_receipt(order).startswith(b'%PDF')
