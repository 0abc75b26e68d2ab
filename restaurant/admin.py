from django.contrib import admin
from .models import Category, MenuItem, Table, Order, OrderItem, StaffProfile, Notification

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'is_active', 'updated_at']
    list_filter = ['is_active', 'parent']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']

@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'subcategory', 'price', 'is_visible', 'is_available', 'updated_at']
    list_filter = ['category', 'is_visible', 'is_available', 'is_vegetarian', 'is_spicy']
    search_fields = ['name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    fieldsets = (
        ('Menu Item Details', {
            'fields': ('name', 'category', 'subcategory', 'price', 'description', 'image_url')
        }),
        ('Flags', {
            'fields': ('is_vegetarian', 'is_spicy', 'is_visible', 'is_available', 'rating')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

@admin.register(Table)
class TableAdmin(admin.ModelAdmin):
    list_display = ['table_number', 'capacity', 'status', 'updated_by', 'updated_at']
    list_filter = ['status']
    search_fields = ['table_number']
    readonly_fields = ['created_at', 'updated_at']

class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['name', 'price', 'created_at']

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['id', 'table', 'customer_name', 'status', 'total_amount', 'created_at', 'items_count']
    list_filter = ['status', 'created_at']
    search_fields = ['customer_name', 'table__table_number', 'notes']
    readonly_fields = [
        'total_amount', 'created_at', 'updated_at', 'confirmed_at',
        'billed_at', 'completed_at', 'cancelled_at'
    ]
    inlines = [OrderItemInline]
    fieldsets = (
        ('Order Details', {
            'fields': ('table', 'customer_name', 'status', 'total_amount', 'notes')
        }),
        ('Staff', {
            'fields': ('placed_by', 'confirmed_by', 'billed_by', 'completed_by', 'cancelled_by', 'updated_by'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'confirmed_at', 'billed_at', 'completed_at', 'cancelled_at'),
            'classes': ('collapse',)
        }),
    )

    def items_count(self, obj):
        return obj.items.count()
    items_count.short_description = 'Items'

@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'status', 'shift', 'created_at']
    list_filter = ['role', 'status']
    search_fields = ['user__username', 'user__first_name', 'user__last_name', 'phone']
    readonly_fields = ['approved_at', 'rejected_at', 'created_at', 'updated_at']

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'notification_type', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read']
    search_fields = ['title', 'message', 'user__username']
    readonly_fields = ['created_at', 'read_at']
