"""
Write operations for orders, tables and staff accounts.

Each operation runs in one transaction and locks the Order and Table rows
it touches, so the order/table pair changes together or not at all.
Status rules live in ``restaurant.lifecycle``.
"""
import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from . import lifecycle
from .models import Order, OrderItem, Table, StaffProfile

logger = logging.getLogger(__name__)

STATUS_STAMPS = {
    lifecycle.CONFIRMED: ('confirmed_by', 'confirmed_at'),
    lifecycle.BILLED: ('billed_by', 'billed_at'),
    lifecycle.COMPLETED: ('completed_by', 'completed_at'),
    lifecycle.CANCELLED: ('cancelled_by', 'cancelled_at'),
}

STATUS_TASKS = {
    lifecycle.READY: 'notify_order_ready_task',
    lifecycle.COMPLETED: 'notify_order_completed_task',
    lifecycle.CANCELLED: 'notify_order_cancelled_task',
}

SELF_SERVICE_ROLES = (lifecycle.ROLE_WAITER, lifecycle.ROLE_CHEF, lifecycle.ROLE_CASHIER)


# ============================================================================
# HELPERS
# ============================================================================

def _queue(task_name, *args):
    """Send a notification task once the surrounding transaction commits."""
    def dispatch():
        from . import tasks
        try:
            getattr(tasks, task_name).delay(*args)
        except Exception:
            logger.exception("Could not queue %s for %s", task_name, args)

    transaction.on_commit(dispatch)


def _actor_name(actor):
    if actor is None:
        return 'system'
    return actor.get_full_name() or actor.get_username()


def _positive_quantity(value):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError({'quantity': 'Quantity must be a positive integer.'})
    if quantity < 1:
        raise ValidationError({'quantity': 'Quantity must be a positive integer.'})
    return quantity


def _check_orderable(menu_item):
    if not menu_item.can_be_ordered:
        raise ValidationError({'menu_item': f'"{menu_item.name}" is not available.'})


def _merge_lines(items):
    """Collapse repeated menu items into one line each, keeping first-seen order."""
    merged = {}
    for entry in items:
        menu_item = entry['menu_item']
        _check_orderable(menu_item)
        quantity = _positive_quantity(entry.get('quantity', 1))
        line = merged.get(menu_item.pk)
        if line is None:
            merged[menu_item.pk] = {
                'menu_item': menu_item,
                'quantity': quantity,
                'special_notes': entry.get('special_notes', ''),
            }
        else:
            line['quantity'] += quantity
    return list(merged.values())


def _lock_order(order):
    return Order.objects.select_for_update().select_related('table').get(pk=order.pk)


def _refresh_total(order, actor):
    order.total_amount = order.calculate_total()
    order.updated_by = actor
    order.save(update_fields=['total_amount', 'updated_by', 'updated_at'])


def _release_table(table, actor):
    table = Table.objects.select_for_update().get(pk=table.pk)
    new_status = lifecycle.released_status(table.status, table.active_orders().count())
    if new_status != table.status:
        table.status = new_status
        table.updated_by = actor
        table.save(update_fields=['status', 'updated_by', 'updated_at'])
        logger.info("Table %s released to %s", table.table_number, new_status)
    return table


def _apply_status(order, target, actor):
    """Move a locked order to ``target``; caller holds the transaction."""
    lifecycle.validate_transition(order.status, target)
    previous = order.status
    order.status = target
    stamp = STATUS_STAMPS.get(target)
    if stamp:
        by_field, at_field = stamp
        setattr(order, by_field, actor)
        setattr(order, at_field, timezone.now())
    order.updated_by = actor
    order.save()

    if target in lifecycle.TERMINAL_STATUSES:
        _release_table(order.table, actor)

    logger.info(
        "Order #%s moved %s -> %s by %s", order.pk, previous, target, _actor_name(actor)
    )
    task_name = STATUS_TASKS.get(target)
    if task_name:
        _queue(task_name, order.pk)
    return order


# ============================================================================
# ORDERS
# ============================================================================

def place_order(table, customer_name, items, placed_by=None, notes='', confirm=True):
    """
    Create an order for ``table`` and mark the table occupied.

    ``items`` is a list of dicts with ``menu_item`` (a MenuItem), ``quantity``
    and optional ``special_notes``. Orders placed by staff are confirmed
    straight away; ``confirm=False`` leaves the order pending.
    """
    customer_name = (customer_name or '').strip()
    if not customer_name:
        raise ValidationError({'customer_name': 'Customer name is required.'})
    if not items:
        raise ValidationError({'items': 'Add at least one item to the order.'})
    lines = _merge_lines(items)

    with transaction.atomic():
        table = Table.objects.select_for_update().get(pk=table.pk)
        table_status = lifecycle.occupy_status(table.status)

        order = Order.objects.create(
            table=table,
            customer_name=customer_name,
            notes=notes or '',
            placed_by=placed_by,
            updated_by=placed_by,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                menu_item=line['menu_item'],
                name=line['menu_item'].name,
                price=line['menu_item'].price,
                quantity=line['quantity'],
                special_notes=line['special_notes'] or '',
            )
            for line in lines
        ])
        order.total_amount = lifecycle.calculate_total(
            (line['menu_item'].price, line['quantity']) for line in lines
        )
        if confirm:
            order.status = lifecycle.CONFIRMED
            order.confirmed_by = placed_by
            order.confirmed_at = timezone.now()
        order.save()

        if table.status != table_status:
            table.status = table_status
            table.updated_by = placed_by
            table.save(update_fields=['status', 'updated_by', 'updated_at'])

        logger.info(
            "Order #%s placed on table %s for %s (%s, total %s)",
            order.pk, table.table_number, customer_name, order.status, order.total_amount
        )
        _queue('notify_kitchen_order_task', order.pk)
    return order


def change_status(order, target, actor=None):
    """Validated status change with actor and timestamp stamping."""
    with transaction.atomic():
        order = _lock_order(order)
        return _apply_status(order, target, actor)


def confirm_order(order, actor=None):
    return change_status(order, lifecycle.CONFIRMED, actor)


def start_preparing(order, actor=None):
    return change_status(order, lifecycle.PREPARING, actor)


def mark_ready(order, actor=None):
    return change_status(order, lifecycle.READY, actor)


def mark_served(order, actor=None):
    return change_status(order, lifecycle.SERVED, actor)


def cancel_order(order, actor=None):
    return change_status(order, lifecycle.CANCELLED, actor)


def bill_order(order, actor=None):
    """Cashier step one: lock in the bill for an active order."""
    with transaction.atomic():
        order = _lock_order(order)
        if not order.items.exists():
            raise ValidationError({'items': 'Cannot bill an order with no items.'})
        return _apply_status(order, lifecycle.BILLED, actor)


def complete_order(order, actor=None):
    """Cashier step two: payment taken, order closed."""
    return change_status(order, lifecycle.COMPLETED, actor)


def add_item(order, menu_item, quantity, actor=None, special_notes=''):
    """Add ``quantity`` of ``menu_item``; an existing line for it grows instead."""
    quantity = _positive_quantity(quantity)
    _check_orderable(menu_item)

    with transaction.atomic():
        order = _lock_order(order)
        lifecycle.validate_editable(order.status)
        line = order.items.filter(menu_item=menu_item).first()
        if line is None:
            OrderItem.objects.create(
                order=order,
                menu_item=menu_item,
                name=menu_item.name,
                price=menu_item.price,
                quantity=quantity,
                special_notes=special_notes or '',
            )
        else:
            line.quantity += quantity
            if special_notes:
                line.special_notes = special_notes
            line.save(update_fields=['quantity', 'special_notes'])
        _refresh_total(order, actor)
    return order


def update_item_quantity(order, item_id, quantity, actor=None):
    """
    Set a line's quantity. Zero or less removes the line, and removing
    the last line cancels the order.

    Raises OrderItem.DoesNotExist when the line is not on this order.
    """
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError({'quantity': 'Quantity must be an integer.'})

    with transaction.atomic():
        order = _lock_order(order)
        lifecycle.validate_editable(order.status)
        line = order.items.get(pk=item_id)
        if quantity <= 0:
            line.delete()
        else:
            line.quantity = quantity
            line.save(update_fields=['quantity'])

        _refresh_total(order, actor)
        if not order.items.exists():
            logger.info("Order #%s has no items left, cancelling", order.pk)
            _apply_status(order, lifecycle.CANCELLED, actor)
    return order


def settle_customer(customer_name, actor=None):
    """
    Close every open order for a customer: unbilled ones are billed first,
    then all of them are completed.

    Returns ``(orders, billed_first)``.
    """
    customer_name = (customer_name or '').strip()
    settle_statuses = lifecycle.BILLABLE_STATUSES | {lifecycle.BILLED}

    with transaction.atomic():
        orders = list(
            Order.objects.select_for_update()
            .select_related('table')
            .filter(customer_name=customer_name, status__in=settle_statuses)
            .order_by('created_at')
        )
        if not orders:
            raise ValidationError({'customer_name': 'No open orders to settle for this customer.'})

        billed_first = 0
        for order in orders:
            if order.status in lifecycle.BILLABLE_STATUSES:
                _apply_status(order, lifecycle.BILLED, actor)
                billed_first += 1
            _apply_status(order, lifecycle.COMPLETED, actor)

    logger.info(
        "Settled %d order(s) for %s (%d billed first)", len(orders), customer_name, billed_first
    )
    return orders, billed_first


# ============================================================================
# TABLES
# ============================================================================

def set_table_status(table, status, actor=None):
    with transaction.atomic():
        table = Table.objects.select_for_update().get(pk=table.pk)
        lifecycle.validate_table_status(table.status, status, table.active_orders().count())
        table.status = status
        table.updated_by = actor
        table.save(update_fields=['status', 'updated_by', 'updated_at'])
    logger.info("Table %s set to %s by %s", table.table_number, status, _actor_name(actor))
    return table


# ============================================================================
# STAFF APPROVAL
# ============================================================================

def register_staff(username, password, role, email='', first_name='', last_name='',
                   phone='', experience='', shift=''):
    """Create a staff account that waits for admin approval."""
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError({'role': f'Role must be one of: {", ".join(SELF_SERVICE_ROLES)}.'})
    User = get_user_model()
    if User.objects.filter(username=username).exists():
        raise ValidationError({'username': 'This username is already taken.'})

    with transaction.atomic():
        user = User.objects.create_user(
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        profile = StaffProfile.objects.create(
            user=user,
            role=role,
            phone=phone,
            experience=experience,
            shift=shift,
        )
        _queue('notify_staff_pending_task', profile.pk)

    logger.info("Registered %s account %s, pending approval", role, username)
    return profile


def approve_staff(profile, actor=None):
    with transaction.atomic():
        profile = StaffProfile.objects.select_for_update().get(pk=profile.pk)
        lifecycle.validate_staff_decision(profile.status, lifecycle.STAFF_ACTIVE)
        profile.status = lifecycle.STAFF_ACTIVE
        profile.approved_at = timezone.now()
        profile.rejected_at = None
        profile.save()
    logger.info("Staff %s approved by %s", profile.user.username, _actor_name(actor))
    return profile


def reject_staff(profile, actor=None):
    with transaction.atomic():
        profile = StaffProfile.objects.select_for_update().get(pk=profile.pk)
        lifecycle.validate_staff_decision(profile.status, lifecycle.STAFF_REJECTED)
        profile.status = lifecycle.STAFF_REJECTED
        profile.rejected_at = timezone.now()
        profile.save()
    logger.info("Staff %s rejected by %s", profile.user.username, _actor_name(actor))
    return profile


def delete_staff(profile, actor=None):
    """Remove the staff account together with its login."""
    if actor is not None and profile.user_id == actor.pk:
        raise lifecycle.StaffDecisionError('You cannot delete your own account.')
    username = profile.user.username
    profile.user.delete()
    logger.info("Staff %s deleted by %s", username, _actor_name(actor))
