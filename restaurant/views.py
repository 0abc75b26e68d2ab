from io import BytesIO

from rest_framework import viewsets, mixins, status, filters
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.authtoken.models import Token
from django_filters.rest_framework import DjangoFilterBackend
from django.contrib.auth import get_user_model
from django.db.models import Prefetch
from django.http import FileResponse
from django.utils import timezone
from django.utils.dateparse import parse_date
import logging

from . import lifecycle, reports, services
from .filters import MenuItemFilter, OrderFilter, TableFilter
from .models import Category, MenuItem, Table, Order, StaffProfile, Notification
from .permissions import (
    has_role, staff_role, IsAdmin, IsWaiter, IsChef, IsCashier, IsApprovedStaff,
    IsAdminOrStaffReadOnly, IsAdminOrPublicReadOnly
)
from .receipts import build_receipt
from .serializers import (
    UserSerializer, StaffRegistrationSerializer, StaffProfileSerializer,
    CategorySerializer, MenuItemSerializer, TableSerializer, TableStatusSerializer,
    OrderListSerializer, OrderDetailSerializer, OrderCreateSerializer,
    OrderItemChangeSerializer, OrderItemQuantitySerializer, SettleCustomerSerializer,
    DashboardTableSerializer, NotificationSerializer
)

User = get_user_model()
logger = logging.getLogger(__name__)

LOGIN_REFUSALS = {
    lifecycle.STAFF_PENDING: 'Your account is awaiting admin approval.',
    lifecycle.STAFF_REJECTED: 'Your registration was rejected. Contact an administrator.',
}

# ============================================================================
# AUTHENTICATION VIEWS
# ============================================================================

@api_view(['POST'])
@permission_classes([AllowAny])
def obtain_token(request):
    """
    Get authentication token for a staff member.
    POST /api/auth/login/
    {
        "username": "waiter1",
        "password": "password123"
    }
    """
    username = request.data.get('username')
    password = request.data.get('password')

    if not username or not password:
        return Response(
            {'error': 'Username and password are required.'},
            status=status.HTTP_400_BAD_REQUEST
        )

    try:
        user = User.objects.get(username=username)
    except User.DoesNotExist:
        return Response(
            {'error': 'Invalid credentials.'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    if not user.is_active or not user.check_password(password):
        return Response(
            {'error': 'Invalid credentials.'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    if staff_role(user) is None:
        profile = getattr(user, 'staff_profile', None)
        message = LOGIN_REFUSALS.get(
            profile.status if profile else None,
            'This account is not registered as staff.'
        )
        logger.warning(f"Login refused for {username}: {message}")
        return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)

    token, created = Token.objects.get_or_create(user=user)
    return Response({
        'token': token.key,
        'user': UserSerializer(user).data
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def logout(request):
    """Logout and delete token."""
    if request.user.is_authenticated:
        Token.objects.filter(user=request.user).delete()
    return Response({'message': 'Logged out successfully.'})


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """
    Staff sign-up. The account stays pending until an admin approves it.
    POST /api/auth/register/
    {
        "username": "chef2",
        "password": "a-long-password",
        "role": "chef"
    }
    """
    serializer = StaffRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    profile = services.register_staff(**serializer.validated_data)
    return Response(
        {
            'message': 'Registration received. An admin will review your account.',
            'staff': StaffProfileSerializer(profile).data
        },
        status=status.HTTP_201_CREATED
    )

# ============================================================================
# USER VIEWS
# ============================================================================

class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for User accounts.
    Only Admin can list users; everyone can read their own record.
    """
    queryset = User.objects.select_related('staff_profile').order_by('username')
    serializer_class = UserSerializer
    permission_classes = [IsAdmin]

    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated])
    def me(self, request):
        """Get current user info."""
        serializer = UserSerializer(request.user)
        return Response(serializer.data)

# ============================================================================
# MENU VIEWS
# ============================================================================

class CategoryViewSet(viewsets.ModelViewSet):
    """
    ViewSet for menu categories.
    Anyone can browse active categories; only Admin can edit.
    """
    serializer_class = CategorySerializer
    permission_classes = [IsAdminOrPublicReadOnly]
    pagination_class = None

    def get_queryset(self):
        if has_role(self.request.user):
            queryset = Category.objects.prefetch_related('subcategories')
        else:
            queryset = Category.objects.filter(is_active=True).prefetch_related(
                Prefetch('subcategories', queryset=Category.objects.filter(is_active=True))
            )
        if self.request.query_params.get('top_level', '').lower() in ('1', 'true'):
            queryset = queryset.filter(parent__isnull=True)
        return queryset


class MenuItemViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Menu Item management.
    Customers see visible items only; Admin sees and edits everything.
    """
    serializer_class = MenuItemSerializer
    permission_classes = [IsAdminOrPublicReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_class = MenuItemFilter
    search_fields = ['name', 'description']

    def get_queryset(self):
        queryset = MenuItem.objects.select_related('category', 'subcategory')
        if not has_role(self.request.user):
            queryset = queryset.filter(is_visible=True)
        return queryset

    @action(detail=True, methods=['post'], permission_classes=[IsAdmin])
    def toggle_visibility(self, request, pk=None):
        """Show or hide an item on the customer menu."""
        item = self.get_object()
        item.is_visible = not item.is_visible
        item.save(update_fields=['is_visible', 'updated_at'])
        state = 'visible' if item.is_visible else 'hidden'
        logger.info(f"Menu item {item.name} is now {state}")
        return Response({
            'message': f'"{item.name}" is now {state}.',
            'item': MenuItemSerializer(item).data
        })

# ============================================================================
# TABLE VIEWS
# ============================================================================

class TableViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Table management.
    Only Admin can create/edit/delete. Staff can view; waiters change status.
    """
    queryset = Table.objects.all()
    serializer_class = TableSerializer
    permission_classes = [IsAdminOrStaffReadOnly]
    filterset_class = TableFilter

    @action(detail=True, methods=['post'], permission_classes=[IsWaiter])
    def set_status(self, request, pk=None):
        """
        Change a table's status by hand.
        POST /api/tables/{id}/set_status/
        {
            "status": "maintenance"
        }
        """
        table = self.get_object()
        serializer = TableStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        table = services.set_table_status(table, serializer.validated_data['status'], request.user)
        return Response({
            'message': f'Table {table.table_number} is now {table.get_status_display()}.',
            'table': TableSerializer(table).data
        })

    @action(detail=False, methods=['get'], permission_classes=[IsApprovedStaff])
    def dashboard(self, request):
        """Get live dashboard of all tables with their open orders."""
        tables = self.filter_queryset(self.get_queryset()).prefetch_related(
            Prefetch('orders', queryset=Order.objects.filter(status__in=lifecycle.ACTIVE_STATUSES))
        )
        serializer = DashboardTableSerializer(tables, many=True)
        return Response(serializer.data)

# ============================================================================
# ORDER VIEWS
# ============================================================================

class OrderViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Order management.
    Orders only change through the lifecycle actions below.
    """
    queryset = Order.objects.select_related('table')
    permission_classes = [IsApprovedStaff]
    filterset_class = OrderFilter
    http_method_names = ['get', 'post', 'head', 'options']

    def get_serializer_class(self):
        """Use different serializers for list and detail views."""
        if self.action == 'list':
            return OrderListSerializer
        return OrderDetailSerializer

    def get_permissions(self):
        if self.action == 'create':
            return [IsWaiter()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        """
        Place an order for a table.
        POST /api/orders/
        {
            "table": 1,
            "customer_name": "Rahim",
            "items": [{"menu_item": 3, "quantity": 2}]
        }
        """
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = services.place_order(
            data['table'],
            data['customer_name'],
            data['items'],
            placed_by=request.user,
            notes=data['notes'],
            confirm=data['confirm'],
        )
        return Response(
            OrderDetailSerializer(order).data,
            status=status.HTTP_201_CREATED
        )

    def _transition(self, request, operation, message):
        order = operation(self.get_object(), request.user)
        return Response({
            'message': message,
            'order': OrderDetailSerializer(order).data
        })

    @action(detail=True, methods=['post'], permission_classes=[IsWaiter])
    def confirm(self, request, pk=None):
        return self._transition(request, services.confirm_order, 'Order confirmed.')

    @action(detail=True, methods=['post'], permission_classes=[IsChef])
    def start_preparing(self, request, pk=None):
        return self._transition(request, services.start_preparing, 'Order is being prepared.')

    @action(detail=True, methods=['post'], permission_classes=[IsChef])
    def mark_ready(self, request, pk=None):
        """Kitchen marks the order ready; waiters are notified."""
        return self._transition(request, services.mark_ready, 'Order is ready to serve.')

    @action(detail=True, methods=['post'], permission_classes=[IsWaiter])
    def mark_served(self, request, pk=None):
        return self._transition(request, services.mark_served, 'Order marked as served.')

    @action(detail=True, methods=['post'], permission_classes=[IsWaiter])
    def cancel(self, request, pk=None):
        return self._transition(request, services.cancel_order, 'Order cancelled.')

    @action(detail=True, methods=['post'], permission_classes=[IsCashier])
    def bill(self, request, pk=None):
        return self._transition(request, services.bill_order, 'Order billed.')

    @action(detail=True, methods=['post'], permission_classes=[IsCashier])
    def complete(self, request, pk=None):
        """Payment taken; the table is released when nothing else is open on it."""
        return self._transition(request, services.complete_order, 'Payment received. Order completed.')

    @action(detail=True, methods=['post'], permission_classes=[IsWaiter])
    def add_item(self, request, pk=None):
        """
        Add an item to an order.
        POST /api/orders/{id}/add_item/
        {
            "menu_item": 1,
            "quantity": 2,
            "special_notes": "No onions"
        }
        """
        order = self.get_object()
        serializer = OrderItemChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = services.add_item(
            order, data['menu_item'], data['quantity'],
            actor=request.user, special_notes=data['special_notes']
        )
        return Response({
            'message': 'Item added to order.',
            'order': OrderDetailSerializer(order).data
        })

    @action(detail=True, methods=['post'], permission_classes=[IsWaiter])
    def update_item(self, request, pk=None):
        """
        Change the quantity of a line; zero removes it.
        POST /api/orders/{id}/update_item/
        {
            "item_id": 7,
            "quantity": 0
        }
        """
        order = self.get_object()
        serializer = OrderItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = services.update_item_quantity(
            order,
            serializer.validated_data['item_id'],
            serializer.validated_data['quantity'],
            actor=request.user,
        )
        return Response({
            'message': 'Order updated.',
            'order': OrderDetailSerializer(order).data
        })

    @action(detail=False, methods=['get'], permission_classes=[IsCashier])
    def billing_queue(self, request):
        """Open orders past the pending stage, grouped by customer."""
        orders = Order.objects.select_related('table').filter(
            status__in=lifecycle.BILLABLE_STATUSES | {lifecycle.BILLED}
        ).order_by('customer_name', 'created_at')

        return Response([
            {
                'customer_name': group['customer_name'],
                'total_amount': str(group['total_amount']),
                'unbilled': group['unbilled'],
                'orders': OrderListSerializer(group['orders'], many=True).data,
            }
            for group in reports.billing_groups(orders)
        ])

    @action(detail=False, methods=['post'], permission_classes=[IsCashier])
    def settle_customer(self, request):
        """
        Bill and complete every open order for one customer.
        POST /api/orders/settle_customer/
        {
            "customer_name": "Rahim"
        }
        """
        serializer = SettleCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        orders, billed_first = services.settle_customer(
            serializer.validated_data['customer_name'], actor=request.user
        )
        return Response({
            'message': f'Settled {len(orders)} order(s).',
            'billed_first': billed_first,
            'orders': OrderListSerializer(orders, many=True).data
        })

    @action(detail=True, methods=['get'])
    def receipt(self, request, pk=None):
        """
        Download the receipt as an A4 PDF.
        GET /api/orders/{id}/receipt/
        """
        order = self.get_object()
        pdf = build_receipt(order)
        return FileResponse(
            BytesIO(pdf),
            as_attachment=True,
            filename=f'receipt_{order.id}.pdf',
            content_type='application/pdf'
        )

# ============================================================================
# STAFF VIEWS
# ============================================================================

class StaffViewSet(mixins.ListModelMixin,
                   mixins.RetrieveModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    """
    ViewSet for staff approval.
    Only Admin can review, approve, reject or remove staff.
    """
    queryset = StaffProfile.objects.select_related('user')
    serializer_class = StaffProfileSerializer
    permission_classes = [IsAdmin]
    filterset_fields = ['status', 'role']

    def perform_destroy(self, instance):
        services.delete_staff(instance, actor=self.request.user)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        profile = services.approve_staff(self.get_object(), actor=request.user)
        return Response({
            'message': f'{profile.user.username} approved.',
            'staff': StaffProfileSerializer(profile).data
        })

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        profile = services.reject_staff(self.get_object(), actor=request.user)
        return Response({
            'message': f'{profile.user.username} rejected.',
            'staff': StaffProfileSerializer(profile).data
        })

# ============================================================================
# NOTIFICATION VIEWS
# ============================================================================

class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """The signed-in staff member's own notifications."""
    serializer_class = NotificationSerializer
    permission_classes = [IsApprovedStaff]
    filterset_fields = ['is_read', 'notification_type']

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user)

    @action(detail=True, methods=['post'])
    def mark_read(self, request, pk=None):
        notification = self.get_object()
        notification.mark_as_read()
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=['post'])
    def mark_all_read(self, request):
        count = self.get_queryset().filter(is_read=False).update(is_read=True, read_at=timezone.now())
        return Response({'message': f'{count} notification(s) marked as read.', 'count': count})

# ============================================================================
# REPORT VIEWS
# ============================================================================

@api_view(['GET'])
@permission_classes([IsAdmin])
def daily_sales_report(request):
    """
    Get daily sales and table usage report.
    GET /api/reports/daily-sales/?date=2024-05-01
    """
    day = None
    if request.query_params.get('date'):
        try:
            day = parse_date(request.query_params['date'])
        except ValueError:
            day = None
        if day is None:
            return Response(
                {'error': 'date must be in YYYY-MM-DD format.'},
                status=status.HTTP_400_BAD_REQUEST
            )

    sales = reports.daily_sales(day)
    return Response({
        'date': sales['date'],
        'total_revenue': str(sales['total_revenue']),
        'completed_orders': sales['completed_orders'],
        'orders_placed': sales['orders_placed'],
        'cancelled_orders': sales['cancelled_orders'],
        'tables_used': sales['tables_used'],
        'average_order_value': str(sales['average_order_value']),
    })


@api_view(['GET'])
@permission_classes([IsApprovedStaff])
def customer_report(request):
    """Per-customer order totals, highest spend first."""
    summaries = reports.customer_summaries(Order.objects.all())
    return Response([
        dict(summary, total_amount=str(summary['total_amount']))
        for summary in summaries
    ])


@api_view(['GET'])
@permission_classes([IsApprovedStaff])
def order_status_report(request):
    summary = reports.status_summary(Order.objects.all())
    return Response([
        dict(entry, total_amount=str(entry['total_amount']))
        for entry in summary
    ])


@api_view(['GET'])
@permission_classes([IsApprovedStaff])
def table_occupancy_report(request):
    return Response(reports.table_occupancy(Table.objects.all()))
