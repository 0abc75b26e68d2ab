from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from restaurant import lifecycle, services
from restaurant.models import Category, MenuItem, Table, StaffProfile

User = get_user_model()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_staff(db):
    def make(username, role, status=lifecycle.STAFF_ACTIVE):
        user = User.objects.create_user(username=username, password='pass12345')
        StaffProfile.objects.create(user=user, role=role, status=status)
        return user
    return make


@pytest.fixture
def admin_user(make_staff):
    return make_staff('admin', lifecycle.ROLE_ADMIN)


@pytest.fixture
def waiter(make_staff):
    return make_staff('waiter', lifecycle.ROLE_WAITER)


@pytest.fixture
def chef(make_staff):
    return make_staff('chef', lifecycle.ROLE_CHEF)


@pytest.fixture
def cashier(make_staff):
    return make_staff('cashier', lifecycle.ROLE_CASHIER)


@pytest.fixture
def client_for(api_client):
    def login(user):
        api_client.force_authenticate(user=user)
        return api_client
    return login


@pytest.fixture
def table(db):
    return Table.objects.create(table_number=1, capacity=4)


@pytest.fixture
def mains(db):
    return Category.objects.create(name='Mains')


@pytest.fixture
def burger(mains):
    return MenuItem.objects.create(name='Burger', category=mains, price=Decimal('10.00'))


@pytest.fixture
def juice(mains):
    return MenuItem.objects.create(name='Juice', category=mains, price=Decimal('2.50'), is_vegetarian=True)


@pytest.fixture
def hidden_item(mains):
    return MenuItem.objects.create(name='Secret Stew', category=mains, price=Decimal('7.00'), is_visible=False)


@pytest.fixture
def place(waiter):
    """Place an order through the service layer."""
    def place_order(table, lines, customer_name='Rahim', confirm=True):
        return services.place_order(
            table,
            customer_name,
            [{'menu_item': item, 'quantity': qty} for item, qty in lines],
            placed_by=waiter,
            confirm=confirm,
        )
    return place_order
