import pytest

from restaurant.models import Category, MenuItem

pytestmark = pytest.mark.django_db


class TestCategories:
    def test_public_list_hides_inactive(self, api_client, mains):
        Category.objects.create(name='Seasonal', is_active=False)
        response = api_client.get('/api/categories/')
        assert response.status_code == 200
        assert [c['name'] for c in response.data] == ['Mains']

    def test_subcategories_are_nested(self, api_client, mains):
        Category.objects.create(name='Burgers', parent=mains)
        response = api_client.get('/api/categories/', {'top_level': 'true'})
        assert [c['name'] for c in response.data] == ['Mains']
        assert response.data[0]['subcategories'][0]['name'] == 'Burgers'

    def test_public_list_hides_inactive_subcategories(self, api_client, mains):
        Category.objects.create(name='Burgers', parent=mains)
        Category.objects.create(name='Secret', parent=mains, is_active=False)
        response = api_client.get('/api/categories/', {'top_level': 'true'})
        assert [s['name'] for s in response.data[0]['subcategories']] == ['Burgers']

    def test_admin_sees_inactive_subcategories(self, client_for, admin_user, mains):
        Category.objects.create(name='Secret', parent=mains, is_active=False)
        response = client_for(admin_user).get('/api/categories/', {'top_level': 'true'})
        assert [s['name'] for s in response.data[0]['subcategories']] == ['Secret']

    def test_top_level_names_are_unique(self, client_for, admin_user, mains):
        response = client_for(admin_user).post('/api/categories/', {'name': 'Mains'}, format='json')
        assert response.status_code == 400
        assert 'name' in response.data
        assert Category.objects.filter(name='Mains').count() == 1

    def test_same_name_under_different_parents(self, client_for, admin_user, mains):
        drinks = Category.objects.create(name='Drinks')
        Category.objects.create(name='Specials', parent=mains)
        response = client_for(admin_user).post('/api/categories/', {'name': 'Specials', 'parent': drinks.pk}, format='json')
        assert response.status_code == 201

    def test_admin_creates_subcategory(self, client_for, admin_user, mains):
        response = client_for(admin_user).post('/api/categories/', {'name': 'Curries', 'parent': mains.pk}, format='json')
        assert response.status_code == 201
        assert Category.objects.get(name='Curries').parent == mains

    def test_only_one_level_of_nesting(self, client_for, admin_user, mains):
        sub = Category.objects.create(name='Burgers', parent=mains)
        response = client_for(admin_user).post('/api/categories/', {'name': 'Smash', 'parent': sub.pk}, format='json')
        assert response.status_code == 400

    def test_category_with_items_cannot_be_deleted(self, client_for, admin_user, burger, mains):
        response = client_for(admin_user).delete(f'/api/categories/{mains.pk}/')
        assert response.status_code == 400
        assert Category.objects.filter(pk=mains.pk).exists()


class TestMenuItems:
    def test_public_menu_shows_visible_items_only(self, api_client, burger, hidden_item):
        response = api_client.get('/api/menu-items/')
        assert response.status_code == 200
        assert [i['name'] for i in response.data['results']] == ['Burger']

    def test_admin_sees_hidden_items(self, client_for, admin_user, burger, hidden_item):
        response = client_for(admin_user).get('/api/menu-items/')
        assert {i['name'] for i in response.data['results']} == {'Burger', 'Secret Stew'}

    def test_filter_and_search(self, api_client, burger, juice):
        response = api_client.get('/api/menu-items/', {'is_vegetarian': 'true'})
        assert [i['name'] for i in response.data['results']] == ['Juice']

        response = api_client.get('/api/menu-items/', {'search': 'burg'})
        assert [i['name'] for i in response.data['results']] == ['Burger']

    def test_anonymous_cannot_create(self, api_client, mains):
        response = api_client.post('/api/menu-items/', {'name': 'Soup', 'category': mains.pk, 'price': '5.00'}, format='json')
        assert response.status_code in (401, 403)

    def test_waiter_cannot_create(self, client_for, waiter, mains):
        response = client_for(waiter).post('/api/menu-items/', {'name': 'Soup', 'category': mains.pk, 'price': '5.00'}, format='json')
        assert response.status_code == 403

    def test_admin_creates_item(self, client_for, admin_user, mains):
        sub = Category.objects.create(name='Soups', parent=mains)
        response = client_for(admin_user).post('/api/menu-items/', {
            'name': 'Lentil Soup',
            'category': mains.pk,
            'subcategory': sub.pk,
            'price': '5.50',
            'is_vegetarian': True,
        }, format='json')
        assert response.status_code == 201
        assert response.data['subcategory_name'] == 'Soups'

    def test_price_must_be_positive(self, client_for, admin_user, mains):
        response = client_for(admin_user).post('/api/menu-items/', {
            'name': 'Free Lunch', 'category': mains.pk, 'price': '0.00',
        }, format='json')
        assert response.status_code == 400

    def test_subcategory_must_belong_to_category(self, client_for, admin_user, mains):
        drinks = Category.objects.create(name='Drinks')
        tea = Category.objects.create(name='Tea', parent=drinks)
        response = client_for(admin_user).post('/api/menu-items/', {
            'name': 'Chai Burger', 'category': mains.pk, 'subcategory': tea.pk, 'price': '4.00',
        }, format='json')
        assert response.status_code == 400
        assert 'subcategory' in response.data

    def test_toggle_visibility(self, client_for, admin_user, burger):
        response = client_for(admin_user).post(f'/api/menu-items/{burger.pk}/toggle_visibility/')
        assert response.status_code == 200
        assert response.data['item']['is_visible'] is False
        assert MenuItem.objects.get(pk=burger.pk).is_visible is False
