import pytest
from rest_framework.authtoken.models import Token

from restaurant import lifecycle
from restaurant.models import StaffProfile

pytestmark = pytest.mark.django_db


class TestLogin:
    def test_approved_staff_gets_token(self, api_client, waiter):
        response = api_client.post('/api/auth/login/', {'username': 'waiter', 'password': 'pass12345'}, format='json')
        assert response.status_code == 200
        assert response.data['token'] == Token.objects.get(user=waiter).key
        assert response.data['user']['staff_profile']['role'] == lifecycle.ROLE_WAITER

    def test_wrong_password_is_unauthorized(self, api_client, waiter):
        response = api_client.post('/api/auth/login/', {'username': 'waiter', 'password': 'nope'}, format='json')
        assert response.status_code == 401

    def test_missing_fields(self, api_client, db):
        response = api_client.post('/api/auth/login/', {}, format='json')
        assert response.status_code == 400

    @pytest.mark.parametrize('status, fragment', [
        (lifecycle.STAFF_PENDING, 'awaiting admin approval'),
        (lifecycle.STAFF_REJECTED, 'rejected'),
    ])
    def test_unapproved_staff_is_refused(self, api_client, make_staff, status, fragment):
        make_staff('newbie', lifecycle.ROLE_CHEF, status=status)
        response = api_client.post('/api/auth/login/', {'username': 'newbie', 'password': 'pass12345'}, format='json')
        assert response.status_code == 403
        assert fragment in response.data['error']
        assert not Token.objects.exists()

    def test_logout_deletes_token(self, api_client, waiter):
        token = Token.objects.create(user=waiter)
        api_client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
        response = api_client.post('/api/auth/logout/')
        assert response.status_code == 200
        assert not Token.objects.filter(user=waiter).exists()

    def test_me_returns_current_user(self, client_for, chef):
        response = client_for(chef).get('/api/users/me/')
        assert response.status_code == 200
        assert response.data['username'] == 'chef'


class TestRegister:
    def test_registration_is_pending(self, api_client, db):
        response = api_client.post('/api/auth/register/', {
            'username': 'newwaiter',
            'password': 'long-password',
            'role': lifecycle.ROLE_WAITER,
            'first_name': 'Tanvir',
        }, format='json')
        assert response.status_code == 201
        assert response.data['staff']['status'] == lifecycle.STAFF_PENDING
        assert StaffProfile.objects.get(user__username='newwaiter').role == lifecycle.ROLE_WAITER

    def test_cannot_register_as_admin(self, api_client, db):
        response = api_client.post('/api/auth/register/', {
            'username': 'boss', 'password': 'long-password', 'role': lifecycle.ROLE_ADMIN,
        }, format='json')
        assert response.status_code == 400

    def test_taken_username(self, api_client, waiter):
        response = api_client.post('/api/auth/register/', {
            'username': 'waiter', 'password': 'long-password', 'role': lifecycle.ROLE_CHEF,
        }, format='json')
        assert response.status_code == 400
        assert 'username' in response.data['details']


class TestStaffAdmin:
    def test_list_filters_by_status(self, client_for, admin_user, make_staff):
        make_staff('pending1', lifecycle.ROLE_CHEF, status=lifecycle.STAFF_PENDING)
        response = client_for(admin_user).get('/api/staff/', {'status': lifecycle.STAFF_PENDING})
        assert response.status_code == 200
        assert [s['username'] for s in response.data['results']] == ['pending1']

    def test_approve(self, client_for, admin_user, make_staff):
        user = make_staff('pending1', lifecycle.ROLE_CHEF, status=lifecycle.STAFF_PENDING)
        response = client_for(admin_user).post(f'/api/staff/{user.staff_profile.pk}/approve/')
        assert response.status_code == 200
        assert response.data['staff']['status'] == lifecycle.STAFF_ACTIVE

    def test_reject(self, client_for, admin_user, make_staff):
        user = make_staff('pending1', lifecycle.ROLE_CHEF, status=lifecycle.STAFF_PENDING)
        response = client_for(admin_user).post(f'/api/staff/{user.staff_profile.pk}/reject/')
        assert response.status_code == 200
        assert StaffProfile.objects.get(pk=user.staff_profile.pk).status == lifecycle.STAFF_REJECTED

    def test_approving_twice_returns_error_code(self, client_for, admin_user, waiter):
        response = client_for(admin_user).post(f'/api/staff/{waiter.staff_profile.pk}/approve/')
        assert response.status_code == 400
        assert response.data['code'] == 'staff_decision_error'

    def test_delete(self, client_for, admin_user, waiter):
        response = client_for(admin_user).delete(f'/api/staff/{waiter.staff_profile.pk}/')
        assert response.status_code == 204
        assert not StaffProfile.objects.filter(user__username='waiter').exists()

    def test_admin_cannot_delete_self(self, client_for, admin_user):
        response = client_for(admin_user).delete(f'/api/staff/{admin_user.staff_profile.pk}/')
        assert response.status_code == 400

    def test_non_admin_is_forbidden(self, client_for, waiter):
        response = client_for(waiter).get('/api/staff/')
        assert response.status_code == 403

    def test_pending_staff_cannot_use_the_api(self, client_for, make_staff):
        user = make_staff('pending1', lifecycle.ROLE_WAITER, status=lifecycle.STAFF_PENDING)
        response = client_for(user).get('/api/orders/')
        assert response.status_code == 403
