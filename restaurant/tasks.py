"""
Celery tasks for background operations.
Handles notifications, stale bill and idle table detection, and periodic reports.
"""
from celery import shared_task
from django.conf import settings
from django.utils import timezone
from datetime import timedelta
import logging

from . import lifecycle, notifications, reports, services
from .models import Order, Table, StaffProfile, Notification

logger = logging.getLogger(__name__)


def _notify_for_order(task, order_id, notifier, label):
    try:
        order = Order.objects.select_related('table').get(id=order_id)
        notifier(order)
        return f"{label} for order #{order_id}"
    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found")
        return f"Order {order_id} not found"
    except Exception as exc:
        logger.error(f"Error sending {label.lower()} for order #{order_id}: {exc}")
        raise task.retry(exc=exc, countdown=60)


# ============================================================================
# ORDER NOTIFICATION TASKS
# ============================================================================

@shared_task(bind=True, max_retries=3)
def notify_kitchen_order_task(self, order_id):
    """Notify the kitchen when an order is placed."""
    return _notify_for_order(self, order_id, notifications.notify_kitchen_new_order, 'Kitchen notified')


@shared_task(bind=True, max_retries=3)
def notify_order_ready_task(self, order_id):
    """Notify waiters when the kitchen marks an order ready."""
    return _notify_for_order(self, order_id, notifications.notify_order_ready, 'Waiters notified')


@shared_task(bind=True, max_retries=3)
def notify_order_cancelled_task(self, order_id):
    return _notify_for_order(self, order_id, notifications.notify_order_cancelled, 'Cancellation sent')


@shared_task(bind=True, max_retries=3)
def notify_order_completed_task(self, order_id):
    """Notify cashiers and admins once an order is paid."""
    return _notify_for_order(self, order_id, notifications.notify_order_completed, 'Payment notification sent')


# ============================================================================
# STAFF TASKS
# ============================================================================

@shared_task(bind=True, max_retries=3)
def notify_staff_pending_task(self, profile_id):
    """Ask admins to review a new registration."""
    try:
        profile = StaffProfile.objects.select_related('user').get(id=profile_id)
        notifications.notify_staff_pending(profile)
        return f"Admins notified about staff {profile.user.username}"
    except StaffProfile.DoesNotExist:
        logger.error(f"Staff profile {profile_id} not found")
        return f"Staff profile {profile_id} not found"
    except Exception as exc:
        logger.error(f"Error notifying admins about staff {profile_id}: {exc}")
        raise self.retry(exc=exc, countdown=60)


# ============================================================================
# MONITORING TASKS
# ============================================================================

@shared_task
def check_stale_bills():
    """
    Periodic task for orders billed but not completed after the configured
    number of hours. Each order is reported once.
    """
    hours = settings.SMARTSERVE['STALE_BILL_HOURS']
    threshold = timezone.now() - timedelta(hours=hours)
    already_reported = Notification.objects.filter(
        notification_type='bill_pending', order_id__isnull=False
    ).values_list('order_id', flat=True)

    stale_orders = Order.objects.select_related('table').filter(
        status=lifecycle.BILLED,
        billed_at__lte=threshold,
    ).exclude(id__in=list(already_reported))

    reported = 0
    for order in stale_orders:
        notifications.notify_stale_bill(order, hours_pending=hours)
        reported += 1

    logger.info(f"Reported {reported} stale bills")
    return f"Reported {reported} stale bills"


@shared_task
def release_idle_tables():
    """
    Periodic task for tables left occupied with no active order.
    After the grace period they are set back to available.
    """
    grace = timedelta(minutes=settings.SMARTSERVE['IDLE_TABLE_MINUTES'])
    threshold = timezone.now() - grace

    released = 0
    candidates = Table.objects.filter(status=lifecycle.TABLE_OCCUPIED, updated_at__lte=threshold)
    for table in candidates:
        if table.active_orders().exists():
            continue
        try:
            services.set_table_status(table, lifecycle.TABLE_AVAILABLE)
        except lifecycle.LifecycleError as exc:
            # an order arrived after the check above
            logger.warning(f"Table {table.table_number} kept occupied: {exc}")
            continue
        notifications.notify_table_released(table)
        released += 1

    logger.info(f"Released {released} idle tables")
    return f"Released {released} idle tables"


# ============================================================================
# PERIODIC CLEANUP TASKS
# ============================================================================

@shared_task
def cleanup_old_notifications():
    """Delete read notifications older than the retention window."""
    days = settings.SMARTSERVE['NOTIFICATION_RETENTION_DAYS']
    cutoff_date = timezone.now() - timedelta(days=days)
    deleted_count, _ = Notification.objects.filter(
        is_read=True,
        read_at__lt=cutoff_date
    ).delete()

    logger.info(f"Cleaned up {deleted_count} old notifications")
    return f"Cleaned up {deleted_count} old notifications"


@shared_task
def generate_daily_report():
    """Log and return today's sales figures."""
    sales = reports.daily_sales()
    report = {
        'date': sales['date'].isoformat(),
        'total_revenue': str(sales['total_revenue']),
        'completed_orders': sales['completed_orders'],
        'orders_placed': sales['orders_placed'],
        'cancelled_orders': sales['cancelled_orders'],
        'tables_used': sales['tables_used'],
        'average_order_value': str(sales['average_order_value']),
    }
    logger.info(f"Daily report generated: {report}")
    return report
