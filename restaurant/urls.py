from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'categories', views.CategoryViewSet, basename='category')
router.register(r'menu-items', views.MenuItemViewSet, basename='menuitem')
router.register(r'tables', views.TableViewSet, basename='table')
router.register(r'orders', views.OrderViewSet, basename='order')
router.register(r'staff', views.StaffViewSet, basename='staff')
router.register(r'notifications', views.NotificationViewSet, basename='notification')
router.register(r'users', views.UserViewSet, basename='user')

urlpatterns = [
    # Auth endpoints
    path('auth/login/', views.obtain_token, name='auth_login'),
    path('auth/logout/', views.logout, name='auth_logout'),
    path('auth/register/', views.register, name='auth_register'),

    # Reports
    path('reports/daily-sales/', views.daily_sales_report, name='daily_sales_report'),
    path('reports/customers/', views.customer_report, name='customer_report'),
    path('reports/order-status/', views.order_status_report, name='order_status_report'),
    path('reports/table-occupancy/', views.table_occupancy_report, name='table_occupancy_report'),

    # Router endpoints
    path('', include(router.urls)),
]
