"""
Notifications system for restaurant operations.
Creates in-app notification records for the staff who need to act.
"""
from django.contrib.auth import get_user_model
from django.db.models import Q
import logging

from . import lifecycle

logger = logging.getLogger(__name__)


def _recipients(*roles):
    """Approved staff holding any of ``roles``; superusers count as admins."""
    query = Q(staff_profile__status=lifecycle.STAFF_ACTIVE, staff_profile__role__in=roles)
    if lifecycle.ROLE_ADMIN in roles:
        query |= Q(is_superuser=True)
    return get_user_model().objects.filter(query, is_active=True)


def _notify(users, notification_type, title, message, table_id=None, order_id=None):
    from .models import Notification

    created = Notification.objects.bulk_create([
        Notification(
            user=user,
            notification_type=notification_type,
            title=title,
            message=message,
            table_id=table_id,
            order_id=order_id,
        )
        for user in users
    ])
    return len(created)


# ============================================================================
# ORDER NOTIFICATIONS
# ============================================================================

def notify_kitchen_new_order(order):
    """Tell chefs (and admins) about a new order."""
    count = _notify(
        _recipients(lifecycle.ROLE_CHEF, lifecycle.ROLE_ADMIN),
        'order_placed',
        f"New Order #{order.id} - Table {order.table.table_number}",
        f"{order.customer_name} ordered {order.items.count()} item(s) at Table {order.table.table_number}",
        table_id=order.table_id,
        order_id=order.id,
    )
    logger.info(f"Kitchen notified of new order #{order.id} ({count} recipients)")
    return count


def notify_order_ready(order):
    """Tell waiters an order is ready to be served."""
    count = _notify(
        _recipients(lifecycle.ROLE_WAITER, lifecycle.ROLE_ADMIN),
        'order_ready',
        f"Order #{order.id} Ready - Table {order.table.table_number}",
        f"Order for {order.customer_name} at Table {order.table.table_number} is ready to be served",
        table_id=order.table_id,
        order_id=order.id,
    )
    logger.info(f"Waiters notified that order #{order.id} is ready")
    return count


def notify_order_cancelled(order):
    """Tell the kitchen to stop working on a cancelled order."""
    count = _notify(
        _recipients(lifecycle.ROLE_CHEF, lifecycle.ROLE_ADMIN),
        'order_cancelled',
        f"Order #{order.id} Cancelled - Table {order.table.table_number}",
        f"Order for {order.customer_name} at Table {order.table.table_number} was cancelled",
        table_id=order.table_id,
        order_id=order.id,
    )
    logger.info(f"Kitchen notified that order #{order.id} was cancelled")
    return count


def notify_order_completed(order):
    """Tell cashiers and admins a payment has been taken."""
    count = _notify(
        _recipients(lifecycle.ROLE_CASHIER, lifecycle.ROLE_ADMIN),
        'order_completed',
        f"Payment Received - Table {order.table.table_number}",
        f"Order #{order.id} for {order.customer_name} ({order.total_amount}) paid and completed",
        table_id=order.table_id,
        order_id=order.id,
    )
    logger.info(f"Staff notified about payment for order #{order.id}")
    return count


def notify_stale_bill(order, hours_pending):
    """Warn admins and cashiers about a bill left unpaid."""
    count = _notify(
        _recipients(lifecycle.ROLE_CASHIER, lifecycle.ROLE_ADMIN),
        'bill_pending',
        f"Order #{order.id} Awaiting Payment - Table {order.table.table_number}",
        f"Order for {order.customer_name} ({order.total_amount}) was billed over {hours_pending} hour(s) ago",
        table_id=order.table_id,
        order_id=order.id,
    )
    logger.info(f"Staff notified about unpaid bill on order #{order.id}")
    return count


# ============================================================================
# TABLE AND STAFF NOTIFICATIONS
# ============================================================================

def notify_table_released(table):
    count = _notify(
        _recipients(lifecycle.ROLE_ADMIN),
        'table_released',
        f"Table {table.table_number} Released",
        f"Table {table.table_number} was occupied with no active orders and is available again",
        table_id=table.id,
    )
    logger.info(f"Admins notified that table {table.table_number} was released")
    return count


def notify_staff_pending(profile):
    """Ask admins to review a new staff registration."""
    name = profile.user.get_full_name() or profile.user.username
    count = _notify(
        _recipients(lifecycle.ROLE_ADMIN),
        'staff_pending',
        f"New {profile.get_role_display()} Awaiting Approval",
        f"{name} registered as {profile.get_role_display().lower()} and is waiting for approval",
    )
    logger.info(f"Admins notified about pending staff {profile.user.username}")
    return count
