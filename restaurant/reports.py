"""
Read-only aggregations behind the dashboards and reports.
"""
from decimal import Decimal

from django.db.models import Count, Sum
from django.utils import timezone

from . import lifecycle
from .models import Order

ZERO = Decimal('0.00')


def customer_summaries(orders):
    """
    Per-customer totals, richest first.

    Revenue leaves out pending and cancelled orders; ``active_orders``
    counts everything that is neither completed nor cancelled.
    """
    summaries = {}
    for order in orders:
        name = (order.customer_name or '').strip() or 'Guest'
        summary = summaries.setdefault(name, {
            'customer_name': name,
            'total_orders': 0,
            'total_amount': ZERO,
            'active_orders': 0,
            'last_order_at': None,
        })
        summary['total_orders'] += 1
        if order.status not in (lifecycle.PENDING, lifecycle.CANCELLED):
            summary['total_amount'] += order.total_amount
        if lifecycle.is_active(order.status):
            summary['active_orders'] += 1
        if summary['last_order_at'] is None or order.created_at > summary['last_order_at']:
            summary['last_order_at'] = order.created_at

    return sorted(summaries.values(), key=lambda s: s['total_amount'], reverse=True)


def status_summary(orders):
    """Order count and amount for every status, zero-filled."""
    summary = {
        status: {'status': status, 'label': label, 'count': 0, 'total_amount': ZERO}
        for status, label in lifecycle.ORDER_STATUS_CHOICES
    }
    rows = orders.order_by().values('status').annotate(
        count=Count('id'), total=Sum('total_amount')
    )
    for row in rows:
        entry = summary.get(row['status'])
        if entry is not None:
            entry['count'] = row['count']
            entry['total_amount'] = (row['total'] or ZERO).quantize(ZERO)
    return list(summary.values())


def table_occupancy(tables):
    """Count and whole-number percentage of tables in each status."""
    counts = {status: 0 for status in lifecycle.TABLE_STATUSES}
    for row in tables.order_by().values('status').annotate(count=Count('id')):
        counts[row['status']] = row['count']
    total = sum(counts.values())

    return {
        'total_tables': total,
        'statuses': [
            {
                'status': status,
                'label': label,
                'count': counts[status],
                'percentage': round(counts[status] * 100 / total) if total else 0,
            }
            for status, label in lifecycle.TABLE_STATUS_CHOICES
        ],
    }


def billing_groups(orders):
    """Orders waiting on the cashier, grouped by customer name."""
    groups = {}
    for order in orders:
        name = (order.customer_name or '').strip() or 'Guest'
        group = groups.setdefault(name, {
            'customer_name': name,
            'orders': [],
            'total_amount': ZERO,
            'unbilled': 0,
        })
        group['orders'].append(order)
        group['total_amount'] += order.total_amount
        if order.status in lifecycle.BILLABLE_STATUSES:
            group['unbilled'] += 1
    return list(groups.values())


def daily_sales(day=None):
    """Revenue and table usage for one calendar day (today by default)."""
    day = day or timezone.localdate()

    completed = Order.objects.filter(status=lifecycle.COMPLETED, completed_at__date=day)
    totals = completed.aggregate(revenue=Sum('total_amount'), count=Count('id'))
    revenue = (totals['revenue'] or ZERO).quantize(ZERO)
    completed_count = totals['count']

    placed = Order.objects.filter(created_at__date=day)

    return {
        'date': day,
        'total_revenue': revenue,
        'completed_orders': completed_count,
        'orders_placed': placed.count(),
        'cancelled_orders': placed.filter(status=lifecycle.CANCELLED).count(),
        'tables_used': completed.values('table').distinct().count(),
        'average_order_value': (revenue / completed_count).quantize(ZERO) if completed_count else ZERO,
    }
