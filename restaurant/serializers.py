from decimal import Decimal

from rest_framework import serializers
from django.contrib.auth import get_user_model

from . import lifecycle
from .models import Category, MenuItem, Table, Order, OrderItem, StaffProfile, Notification

User = get_user_model()


# ============================================================================
# USER SERIALIZERS
# ============================================================================

class StaffProfileSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffProfile
        fields = ['role', 'status', 'phone', 'shift']


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model."""
    staff_profile = StaffProfileSummarySerializer(read_only=True)
    full_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'full_name', 'staff_profile']
        read_only_fields = ['id']

    def get_full_name(self, obj):
        return obj.get_full_name() or obj.username


class StaffRegistrationSerializer(serializers.Serializer):
    """Input for staff self sign-up."""
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=[lifecycle.ROLE_WAITER, lifecycle.ROLE_CHEF, lifecycle.ROLE_CASHIER])
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    first_name = serializers.CharField(required=False, allow_blank=True, default='')
    last_name = serializers.CharField(required=False, allow_blank=True, default='')
    phone = serializers.CharField(required=False, allow_blank=True, default='')
    experience = serializers.CharField(required=False, allow_blank=True, default='')
    shift = serializers.CharField(required=False, allow_blank=True, default='')


class StaffProfileSerializer(serializers.ModelSerializer):
    """Staff record as seen by admins."""
    username = serializers.CharField(source='user.username', read_only=True)
    email = serializers.CharField(source='user.email', read_only=True)
    full_name = serializers.SerializerMethodField(read_only=True)
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = StaffProfile
        fields = [
            'id', 'username', 'email', 'full_name', 'role', 'role_display',
            'status', 'status_display', 'phone', 'experience', 'shift',
            'approved_at', 'rejected_at', 'created_at'
        ]
        read_only_fields = fields

    def get_full_name(self, obj):
        return obj.user.get_full_name() or obj.user.username


# ============================================================================
# MENU SERIALIZERS
# ============================================================================

class SubcategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'is_active']


class CategorySerializer(serializers.ModelSerializer):
    """Serializer for Category model."""
    subcategories = SubcategorySerializer(many=True, read_only=True)

    class Meta:
        model = Category
        fields = [
            'id', 'name', 'description', 'parent', 'is_active',
            'subcategories', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_parent(self, value):
        if value is None:
            return value
        if value.parent_id is not None:
            raise serializers.ValidationError("Subcategories cannot have subcategories.")
        if self.instance is not None:
            if value.pk == self.instance.pk:
                raise serializers.ValidationError("A category cannot be its own parent.")
            if self.instance.subcategories.exists():
                raise serializers.ValidationError(
                    "A category with subcategories cannot become a subcategory."
                )
        return value

    def validate(self, attrs):
        name = attrs.get('name', getattr(self.instance, 'name', None))
        if 'parent' in attrs:
            parent = attrs['parent']
        else:
            parent = getattr(self.instance, 'parent', None)
        siblings = Category.objects.filter(name=name, parent=parent)
        if self.instance is not None:
            siblings = siblings.exclude(pk=self.instance.pk)
        if siblings.exists():
            raise serializers.ValidationError({'name': "A category with this name already exists here."})
        return attrs


class MenuItemSerializer(serializers.ModelSerializer):
    """Serializer for MenuItem model."""
    category_name = serializers.CharField(source='category.name', read_only=True)
    subcategory_name = serializers.CharField(source='subcategory.name', read_only=True, default=None)

    class Meta:
        model = MenuItem
        fields = [
            'id', 'name', 'category', 'category_name', 'subcategory', 'subcategory_name',
            'price', 'description', 'is_vegetarian', 'is_spicy', 'is_visible',
            'is_available', 'rating', 'image_url', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Price must be greater than 0.")
        return value

    def validate_category(self, value):
        if value.parent_id is not None:
            raise serializers.ValidationError("Choose a top-level category; use subcategory for the rest.")
        return value

    def validate(self, data):
        category = data.get('category', getattr(self.instance, 'category', None))
        subcategory = data.get('subcategory', getattr(self.instance, 'subcategory', None))
        if subcategory is not None and category is not None and subcategory.parent_id != category.pk:
            raise serializers.ValidationError({
                'subcategory': f'"{subcategory.name}" is not a subcategory of "{category.name}".'
            })
        return data


# ============================================================================
# TABLE SERIALIZERS
# ============================================================================

class TableSerializer(serializers.ModelSerializer):
    """Serializer for Table model. Status changes go through set_status."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Table
        fields = [
            'id', 'table_number', 'capacity', 'status',
            'status_display', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'status', 'updated_by', 'created_at', 'updated_at']

    def validate_capacity(self, value):
        if value < 1:
            raise serializers.ValidationError("Capacity must be at least 1.")
        return value


class TableStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=lifecycle.TABLE_STATUS_CHOICES)


# ============================================================================
# ORDER SERIALIZERS
# ============================================================================

class OrderItemSerializer(serializers.ModelSerializer):
    """Serializer for OrderItem model."""
    total_price = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'menu_item', 'name', 'price', 'quantity',
            'total_price', 'special_notes', 'created_at'
        ]
        read_only_fields = fields

    def get_total_price(self, obj):
        return str(obj.get_total_price())


class OrderLineInputSerializer(serializers.Serializer):
    """One line of a new order."""
    menu_item = serializers.PrimaryKeyRelatedField(queryset=MenuItem.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    special_notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_menu_item(self, value):
        if not value.can_be_ordered:
            raise serializers.ValidationError(f'"{value.name}" is not available.')
        return value


class OrderCreateSerializer(serializers.Serializer):
    """Input for placing an order."""
    table = serializers.PrimaryKeyRelatedField(queryset=Table.objects.all())
    customer_name = serializers.CharField(max_length=120)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    confirm = serializers.BooleanField(required=False, default=True)
    items = OrderLineInputSerializer(many=True)

    def validate_customer_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Customer name is required.")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Add at least one item to the order.")
        return value


class OrderItemChangeSerializer(serializers.Serializer):
    menu_item = serializers.PrimaryKeyRelatedField(queryset=MenuItem.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    special_notes = serializers.CharField(required=False, allow_blank=True, default='')


class OrderItemQuantitySerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    quantity = serializers.IntegerField()


class OrderListSerializer(serializers.ModelSerializer):
    """Simplified serializer for Order list view."""
    table_number = serializers.IntegerField(source='table.table_number', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    items_count = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'table', 'table_number', 'customer_name', 'status', 'status_display',
            'total_amount', 'items_count', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_items_count(self, obj):
        return obj.items.count()


class OrderDetailSerializer(serializers.ModelSerializer):
    """Detailed serializer for Order with items and attribution."""
    table_number = serializers.IntegerField(source='table.table_number', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    allowed_transitions = serializers.SerializerMethodField(read_only=True)
    placed_by = serializers.StringRelatedField(read_only=True)
    confirmed_by = serializers.StringRelatedField(read_only=True)
    billed_by = serializers.StringRelatedField(read_only=True)
    completed_by = serializers.StringRelatedField(read_only=True)
    cancelled_by = serializers.StringRelatedField(read_only=True)
    updated_by = serializers.StringRelatedField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'table', 'table_number', 'customer_name', 'status', 'status_display',
            'allowed_transitions', 'items', 'total_amount', 'notes',
            'placed_by', 'confirmed_by', 'billed_by', 'completed_by', 'cancelled_by', 'updated_by',
            'created_at', 'updated_at', 'confirmed_at', 'billed_at', 'completed_at', 'cancelled_at'
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        return sorted(lifecycle.allowed_transitions(obj.status))


class SettleCustomerSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=120)


# ============================================================================
# DASHBOARD SERIALIZERS
# ============================================================================

class DashboardTableSerializer(serializers.ModelSerializer):
    """Serializer for dashboard showing tables with their current orders."""
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    active_orders = serializers.SerializerMethodField(read_only=True)
    open_amount = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Table
        fields = [
            'id', 'table_number', 'capacity', 'status', 'status_display',
            'active_orders', 'open_amount', 'updated_at'
        ]

    def _active(self, obj):
        return [o for o in obj.orders.all() if o.status in lifecycle.ACTIVE_STATUSES]

    def get_active_orders(self, obj):
        return OrderListSerializer(self._active(obj), many=True).data

    def get_open_amount(self, obj):
        return str(sum((o.total_amount for o in self._active(obj)), Decimal('0.00')))


# ============================================================================
# NOTIFICATION SERIALIZERS
# ============================================================================

class NotificationSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_notification_type_display', read_only=True)

    class Meta:
        model = Notification
        fields = [
            'id', 'notification_type', 'type_display', 'title', 'message',
            'table_id', 'order_id', 'is_read', 'created_at', 'read_at'
        ]
        read_only_fields = fields
