from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone
from decimal import Decimal

from . import lifecycle

# ============================================================================
# MENU MANAGEMENT
# ============================================================================

class Category(models.Model):
    """
    Menu category. A category with a parent is a subcategory;
    only one level of nesting is allowed.
    """
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='subcategories'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'Categories'
        unique_together = ('name', 'parent')
        constraints = [
            # unique_together never matches rows whose parent is NULL
            models.UniqueConstraint(
                fields=['name'],
                condition=models.Q(parent__isnull=True),
                name='unique_top_level_category_name',
            ),
        ]

    def __str__(self):
        if self.parent_id:
            return f"{self.parent.name} / {self.name}"
        return self.name

    def clean(self):
        if self.parent_id is None:
            return
        if self.pk and self.parent_id == self.pk:
            raise ValidationError({'parent': 'A category cannot be its own parent.'})
        if self.parent.parent_id is not None:
            raise ValidationError({'parent': 'Subcategories cannot have subcategories.'})
        if self.pk and self.subcategories.exists():
            raise ValidationError({'parent': 'A category with subcategories cannot become a subcategory.'})


class MenuItem(models.Model):
    """Menu items shown to customers and ordered by waiters."""
    name = models.CharField(max_length=100)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='items')
    subcategory = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subcategory_items'
    )
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    description = models.TextField(blank=True)
    is_vegetarian = models.BooleanField(default=False)
    is_spicy = models.BooleanField(default=False)
    is_visible = models.BooleanField(default=True)
    is_available = models.BooleanField(default=True)
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal('0.0'),
        validators=[MinValueValidator(Decimal('0.0')), MaxValueValidator(Decimal('5.0'))]
    )
    image_url = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['category__name', 'name']

    def __str__(self):
        return f"{self.name} - {self.price}"

    def clean(self):
        if self.subcategory_id and self.subcategory.parent_id != self.category_id:
            raise ValidationError({'subcategory': 'Subcategory must belong to the selected category.'})

    @property
    def can_be_ordered(self):
        return self.is_visible and self.is_available


# ============================================================================
# TABLE MANAGEMENT
# ============================================================================

class Table(models.Model):
    """
    Restaurant table with occupancy tracking.
    Status flow: Available/Reserved -> Occupied -> Available
    """
    table_number = models.IntegerField(unique=True)
    capacity = models.IntegerField(validators=[MinValueValidator(1)])
    status = models.CharField(
        max_length=20,
        choices=lifecycle.TABLE_STATUS_CHOICES,
        default=lifecycle.TABLE_AVAILABLE
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['table_number']
        verbose_name_plural = 'Tables'

    def __str__(self):
        return f"Table {self.table_number} ({self.get_status_display()})"

    def active_orders(self):
        return self.orders.filter(status__in=lifecycle.ACTIVE_STATUSES)


# ============================================================================
# ORDER MANAGEMENT
# ============================================================================

class Order(models.Model):
    """Order placed for a table on behalf of a customer."""
    table = models.ForeignKey(Table, on_delete=models.PROTECT, related_name='orders')
    customer_name = models.CharField(max_length=120)
    status = models.CharField(
        max_length=20,
        choices=lifecycle.ORDER_STATUS_CHOICES,
        default=lifecycle.PENDING
    )
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)

    placed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    confirmed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    billed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    billed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Order #{self.id} - Table {self.table.table_number}"

    @property
    def is_active(self):
        return lifecycle.is_active(self.status)

    def calculate_total(self):
        """Calculate total from order items."""
        return lifecycle.calculate_total(
            (item.price, item.quantity) for item in self.items.all()
        )


class OrderItem(models.Model):
    """
    Line on an order. Name and price are copied from the menu item
    when the line is added so later menu edits do not change the bill.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    menu_item = models.ForeignKey(MenuItem, on_delete=models.SET_NULL, null=True, blank=True)
    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=8, decimal_places=2)
    quantity = models.IntegerField(validators=[MinValueValidator(1)])
    special_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.name} x{self.quantity}"

    def get_total_price(self):
        """Get total price for this order item."""
        return self.price * self.quantity


# ============================================================================
# STAFF
# ============================================================================

class StaffProfile(models.Model):
    """Role and approval state for a staff account."""
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='staff_profile'
    )
    role = models.CharField(max_length=20, choices=lifecycle.ROLE_CHOICES)
    status = models.CharField(
        max_length=20,
        choices=lifecycle.STAFF_STATUS_CHOICES,
        default=lifecycle.STAFF_PENDING
    )
    phone = models.CharField(max_length=30, blank=True)
    experience = models.CharField(max_length=100, blank=True)
    shift = models.CharField(max_length=50, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.get_full_name() or self.user.username} ({self.get_role_display()}, {self.status})"

    @property
    def is_approved(self):
        return self.status == lifecycle.STAFF_ACTIVE


# ============================================================================
# NOTIFICATIONS
# ============================================================================

class Notification(models.Model):
    """In-app notifications for staff."""
    NOTIFICATION_TYPES = [
        ('order_placed', 'Order Placed'),
        ('order_ready', 'Order Ready'),
        ('order_cancelled', 'Order Cancelled'),
        ('order_completed', 'Order Completed'),
        ('bill_pending', 'Bill Pending'),
        ('table_released', 'Table Released'),
        ('staff_pending', 'Staff Pending Approval'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    notification_type = models.CharField(max_length=50, choices=NOTIFICATION_TYPES)
    title = models.CharField(max_length=200)
    message = models.TextField()

    # Related objects
    table_id = models.IntegerField(null=True, blank=True)
    order_id = models.IntegerField(null=True, blank=True)

    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} - {self.user.username}"

    def mark_as_read(self):
        """Mark notification as read."""
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=['is_read', 'read_at'])
