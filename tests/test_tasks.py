from datetime import timedelta
from unittest import mock

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from restaurant import lifecycle, services, tasks
from restaurant.models import Notification, Order, Table

User = get_user_model()
pytestmark = pytest.mark.django_db


class TestNotificationTasks:
    def test_kitchen_gets_new_order(self, table, burger, place, chef, admin_user, cashier):
        order = place(table, [(burger, 1)])
        result = tasks.notify_kitchen_order_task(order.pk)

        assert result == f"Kitchen notified for order #{order.pk}"
        recipients = set(Notification.objects.filter(notification_type='order_placed').values_list('user__username', flat=True))
        assert recipients == {'chef', 'admin'}

    def test_waiters_hear_order_ready(self, table, burger, place, waiter):
        order = place(table, [(burger, 1)])
        tasks.notify_order_ready_task(order.pk)
        notification = Notification.objects.get(user=waiter)
        assert notification.notification_type == 'order_ready'
        assert notification.order_id == order.pk
        assert notification.table_id == table.pk

    def test_unapproved_staff_are_skipped(self, table, burger, place, make_staff):
        make_staff('newchef', lifecycle.ROLE_CHEF, status=lifecycle.STAFF_PENDING)
        order = place(table, [(burger, 1)])
        tasks.notify_kitchen_order_task(order.pk)
        assert not Notification.objects.exists()

    def test_missing_order_is_not_retried(self, db):
        assert tasks.notify_order_completed_task(424242) == "Order 424242 not found"

    def test_failure_is_retried(self, table, burger, place):
        order = place(table, [(burger, 1)])
        with mock.patch('restaurant.notifications.notify_order_cancelled', side_effect=RuntimeError('db down')):
            with mock.patch.object(tasks.notify_order_cancelled_task, 'retry', side_effect=RuntimeError('retry')) as retry:
                with pytest.raises(RuntimeError, match='retry'):
                    tasks.notify_order_cancelled_task(order.pk)
        assert retry.call_args.kwargs['countdown'] == 60

    def test_superuser_without_profile_counts_as_admin(self, table, burger, place, chef):
        User.objects.create_superuser('root', 'root@example.com', 'pass12345')
        order = place(table, [(burger, 1)])
        tasks.notify_kitchen_order_task(order.pk)
        recipients = set(Notification.objects.values_list('user__username', flat=True))
        assert recipients == {'chef', 'root'}

    def test_superuser_hears_about_pending_staff(self, waiter):
        User.objects.create_superuser('root', 'root@example.com', 'pass12345')
        profile = services.register_staff('newchef', 'long-password', lifecycle.ROLE_CHEF)
        tasks.notify_staff_pending_task(profile.pk)
        assert list(Notification.objects.values_list('user__username', flat=True)) == ['root']

    def test_admins_hear_about_pending_staff(self, admin_user):
        profile = services.register_staff('newwaiter', 'long-password', lifecycle.ROLE_WAITER)
        tasks.notify_staff_pending_task(profile.pk)
        notification = Notification.objects.get(user=admin_user)
        assert notification.notification_type == 'staff_pending'
        assert 'newwaiter' in notification.message


class TestStaleBills:
    def test_reports_each_stale_bill_once(self, table, burger, place, cashier):
        order = place(table, [(burger, 1)])
        services.bill_order(order, cashier)
        Order.objects.filter(pk=order.pk).update(billed_at=timezone.now() - timedelta(hours=3))

        assert tasks.check_stale_bills() == "Reported 1 stale bills"
        assert tasks.check_stale_bills() == "Reported 0 stale bills"
        assert Notification.objects.filter(notification_type='bill_pending', user=cashier).count() == 1

    def test_recent_bills_are_ignored(self, table, burger, place, cashier):
        services.bill_order(place(table, [(burger, 1)]), cashier)
        assert tasks.check_stale_bills() == "Reported 0 stale bills"


class TestIdleTables:
    def test_occupied_table_without_orders_is_released(self, table, admin_user):
        Table.objects.filter(pk=table.pk).update(
            status=lifecycle.TABLE_OCCUPIED, updated_at=timezone.now() - timedelta(hours=2)
        )
        assert tasks.release_idle_tables() == "Released 1 idle tables"
        table.refresh_from_db()
        assert table.status == lifecycle.TABLE_AVAILABLE
        assert Notification.objects.filter(notification_type='table_released', user=admin_user).exists()

    def test_table_with_open_order_is_kept(self, table, burger, place):
        place(table, [(burger, 1)])
        Table.objects.filter(pk=table.pk).update(updated_at=timezone.now() - timedelta(hours=2))
        assert tasks.release_idle_tables() == "Released 0 idle tables"

    def test_conflict_on_one_table_does_not_stop_the_rest(self, table):
        second = Table.objects.create(table_number=2, capacity=2)
        Table.objects.filter(pk__in=[table.pk, second.pk]).update(
            status=lifecycle.TABLE_OCCUPIED, updated_at=timezone.now() - timedelta(hours=2)
        )
        set_table_status = services.set_table_status

        def seated_meanwhile(target, status, actor=None):
            if target.pk == table.pk:
                raise lifecycle.TableConflict('Table 1 has active orders.')
            return set_table_status(target, status, actor)

        with mock.patch('restaurant.services.set_table_status', side_effect=seated_meanwhile):
            assert tasks.release_idle_tables() == "Released 1 idle tables"

        assert Table.objects.get(pk=table.pk).status == lifecycle.TABLE_OCCUPIED
        assert Table.objects.get(pk=second.pk).status == lifecycle.TABLE_AVAILABLE

    def test_recently_seated_table_is_kept(self, table):
        Table.objects.filter(pk=table.pk).update(status=lifecycle.TABLE_OCCUPIED)
        assert tasks.release_idle_tables() == "Released 0 idle tables"


class TestPeriodic:
    def test_cleanup_removes_old_read_notifications(self, waiter):
        old = Notification.objects.create(user=waiter, notification_type='order_ready', title='old', message='old')
        Notification.objects.filter(pk=old.pk).update(is_read=True, read_at=timezone.now() - timedelta(days=45))
        Notification.objects.create(user=waiter, notification_type='order_ready', title='unread', message='unread')

        assert tasks.cleanup_old_notifications() == "Cleaned up 1 old notifications"
        assert list(Notification.objects.values_list('title', flat=True)) == ['unread']

    def test_daily_report_is_json_ready(self, table, burger, place, cashier):
        order = place(table, [(burger, 3)])
        services.bill_order(order, cashier)
        services.complete_order(order, cashier)

        report = tasks.generate_daily_report()
        assert report['total_revenue'] == '30.00'
        assert report['completed_orders'] == 1
        assert report['date'] == timezone.localdate().isoformat()


class TestNotificationEndpoints:
    def test_staff_see_only_their_own(self, client_for, waiter, chef):
        Notification.objects.create(user=waiter, notification_type='order_ready', title='mine', message='m')
        Notification.objects.create(user=chef, notification_type='order_placed', title='theirs', message='t')
        response = client_for(waiter).get('/api/notifications/')
        assert [n['title'] for n in response.data['results']] == ['mine']

    def test_mark_read(self, client_for, waiter):
        notification = Notification.objects.create(user=waiter, notification_type='order_ready', title='t', message='m')
        response = client_for(waiter).post(f'/api/notifications/{notification.pk}/mark_read/')
        assert response.status_code == 200
        assert response.data['is_read'] is True
        assert response.data['read_at'] is not None

    def test_cannot_mark_someone_elses(self, client_for, waiter, chef):
        notification = Notification.objects.create(user=chef, notification_type='order_placed', title='t', message='m')
        response = client_for(waiter).post(f'/api/notifications/{notification.pk}/mark_read/')
        assert response.status_code == 404

    def test_mark_all_read(self, client_for, waiter, chef):
        for title in ('one', 'two'):
            Notification.objects.create(user=waiter, notification_type='order_ready', title=title, message='m')
        Notification.objects.create(user=chef, notification_type='order_placed', title='theirs', message='t')

        response = client_for(waiter).post('/api/notifications/mark_all_read/')
        assert response.status_code == 200
        assert response.data['count'] == 2
        assert not Notification.objects.filter(user=waiter, is_read=False).exists()
        assert not Notification.objects.filter(user=waiter, read_at__isnull=True).exists()
        assert Notification.objects.get(user=chef).is_read is False
