"""
Order, table and staff status rules.

Plain Python with no ORM access so the rules can be checked in isolation.
The service layer calls into this module before it writes anything.

Order flow:  pending -> confirmed -> preparing -> ready -> served
Billing:     confirmed/preparing/ready/served -> billed -> completed
Any order that is not yet billed can be cancelled.
"""
from decimal import Decimal, ROUND_HALF_UP

# ============================================================================
# ORDER STATUSES
# ============================================================================

PENDING = 'pending'
CONFIRMED = 'confirmed'
PREPARING = 'preparing'
READY = 'ready'
SERVED = 'served'
BILLED = 'billed'
COMPLETED = 'completed'
CANCELLED = 'cancelled'

ORDER_STATUS_CHOICES = [
    (PENDING, 'Pending'),
    (CONFIRMED, 'Confirmed'),
    (PREPARING, 'Preparing'),
    (READY, 'Ready'),
    (SERVED, 'Served'),
    (BILLED, 'Billed'),
    (COMPLETED, 'Completed'),
    (CANCELLED, 'Cancelled'),
]

TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})
ACTIVE_STATUSES = frozenset(
    value for value, _ in ORDER_STATUS_CHOICES if value not in TERMINAL_STATUSES
)
BILLABLE_STATUSES = frozenset({CONFIRMED, PREPARING, READY, SERVED})
EDITABLE_STATUSES = frozenset({PENDING}) | BILLABLE_STATUSES

ORDER_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({PREPARING, BILLED, CANCELLED}),
    PREPARING: frozenset({READY, BILLED, CANCELLED}),
    READY: frozenset({SERVED, BILLED, CANCELLED}),
    SERVED: frozenset({BILLED, CANCELLED}),
    BILLED: frozenset({COMPLETED}),
    COMPLETED: frozenset(),
    CANCELLED: frozenset(),
}

# ============================================================================
# TABLE STATUSES
# ============================================================================

TABLE_AVAILABLE = 'available'
TABLE_OCCUPIED = 'occupied'
TABLE_RESERVED = 'reserved'
TABLE_MAINTENANCE = 'maintenance'

TABLE_STATUS_CHOICES = [
    (TABLE_AVAILABLE, 'Available'),
    (TABLE_OCCUPIED, 'Occupied'),
    (TABLE_RESERVED, 'Reserved'),
    (TABLE_MAINTENANCE, 'Maintenance'),
]

TABLE_STATUSES = frozenset(value for value, _ in TABLE_STATUS_CHOICES)

# ============================================================================
# STAFF APPROVAL
# ============================================================================

STAFF_PENDING = 'pending'
STAFF_ACTIVE = 'active'
STAFF_REJECTED = 'rejected'

STAFF_STATUS_CHOICES = [
    (STAFF_PENDING, 'Pending'),
    (STAFF_ACTIVE, 'Active'),
    (STAFF_REJECTED, 'Rejected'),
]

STAFF_DECISIONS = {
    STAFF_ACTIVE: frozenset({STAFF_PENDING, STAFF_REJECTED}),
    STAFF_REJECTED: frozenset({STAFF_PENDING, STAFF_ACTIVE}),
}

ROLE_ADMIN = 'admin'
ROLE_WAITER = 'waiter'
ROLE_CHEF = 'chef'
ROLE_CASHIER = 'cashier'

ROLE_CHOICES = [
    (ROLE_ADMIN, 'Admin'),
    (ROLE_WAITER, 'Waiter'),
    (ROLE_CHEF, 'Chef'),
    (ROLE_CASHIER, 'Cashier'),
]


# ============================================================================
# ERRORS
# ============================================================================

class LifecycleError(Exception):
    """Base class for refused status changes."""
    code = 'lifecycle_error'


class InvalidTransition(LifecycleError):
    code = 'invalid_transition'

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f'Cannot move order from "{current}" to "{target}".')


class OrderNotEditable(LifecycleError):
    code = 'order_not_editable'

    def __init__(self, status):
        self.status = status
        super().__init__(f'Items cannot be changed on a {status} order.')


class TableUnavailable(LifecycleError):
    code = 'table_unavailable'


class TableConflict(LifecycleError):
    code = 'table_conflict'


class StaffDecisionError(LifecycleError):
    code = 'staff_decision_error'


# ============================================================================
# ORDER RULES
# ============================================================================

def allowed_transitions(status):
    """Statuses an order in ``status`` may move to."""
    return ORDER_TRANSITIONS.get(status, frozenset())


def can_transition(current, target):
    return target in allowed_transitions(current)


def validate_transition(current, target):
    """Raise InvalidTransition unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidTransition(current, target)


def is_active(status):
    return status in ACTIVE_STATUSES


def is_editable(status):
    return status in EDITABLE_STATUSES


def validate_editable(status):
    if not is_editable(status):
        raise OrderNotEditable(status)


def calculate_total(lines):
    """
    Sum ``price * quantity`` over ``(price, quantity)`` pairs.
    Result is quantised to cents.
    """
    total = sum(
        (Decimal(str(price)) * int(quantity) for price, quantity in lines),
        Decimal('0.00'),
    )
    return total.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


# ============================================================================
# TABLE RULES
# ============================================================================

def occupy_status(current):
    """Status a table takes when an order is placed on it."""
    if current == TABLE_MAINTENANCE:
        raise TableUnavailable('Table is under maintenance.')
    return TABLE_OCCUPIED


def validate_table_status(current, target, active_orders):
    """Check a manual table status change against the table's open orders."""
    if target not in TABLE_STATUSES:
        raise TableConflict(f'Unknown table status "{target}".')
    if active_orders and target != TABLE_OCCUPIED:
        raise TableConflict(
            f'Table has {active_orders} active order(s) and must stay occupied.'
        )
    if current == TABLE_MAINTENANCE and target not in (TABLE_MAINTENANCE, TABLE_AVAILABLE):
        raise TableUnavailable('Table is under maintenance; make it available first.')


def released_status(current, active_orders):
    """Status a table falls back to once one of its orders has closed."""
    if current == TABLE_OCCUPIED and not active_orders:
        return TABLE_AVAILABLE
    return current


# ============================================================================
# STAFF RULES
# ============================================================================

def validate_staff_decision(current, target):
    if current not in STAFF_DECISIONS.get(target, frozenset()):
        raise StaffDecisionError(f'Cannot change staff status from "{current}" to "{target}".')
