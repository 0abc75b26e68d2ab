from decimal import Decimal

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from restaurant import lifecycle, services
from restaurant.models import Category, MenuItem, Table, Order, StaffProfile
from smartserve.celery import app as celery_app

User = get_user_model()

STAFF_ACCOUNTS = [
    ('admin1', 'admin@smartserve.local', 'admin12345', lifecycle.ROLE_ADMIN),
    ('waiter1', 'waiter@smartserve.local', 'waiter12345', lifecycle.ROLE_WAITER),
    ('chef1', 'chef@smartserve.local', 'chef123456', lifecycle.ROLE_CHEF),
    ('cashier1', 'cashier@smartserve.local', 'cashier12345', lifecycle.ROLE_CASHIER),
]

CATEGORIES = {
    'Starters': ['Salads', 'Finger Food'],
    'Main Course': ['Seafood', 'Pizza', 'Curries', 'Wok'],
    'Desserts': [],
    'Beverages': ['Soft Drinks', 'Alcoholic'],
}

# name, price, category, subcategory, vegetarian, spicy, rating, description
MENU_ITEMS = [
    ('Caesar Salad', '12.99', 'Starters', 'Salads', True, False, '4.5',
     'Fresh romaine lettuce, parmesan cheese, croutons and Caesar dressing'),
    ('Buffalo Wings', '14.99', 'Starters', 'Finger Food', False, True, '4.7',
     'Crispy chicken wings tossed in spicy buffalo sauce, served with ranch dip'),
    ('Bruschetta', '9.99', 'Starters', 'Finger Food', True, False, '4.4',
     'Toasted bread topped with fresh tomatoes, basil, garlic and olive oil'),
    ('Grilled Salmon', '24.99', 'Main Course', 'Seafood', False, False, '4.8',
     'Atlantic salmon with seasonal vegetables and lemon butter sauce'),
    ('Margherita Pizza', '18.99', 'Main Course', 'Pizza', True, False, '4.6',
     'Fresh mozzarella, tomato sauce and basil on a wood-fired crust'),
    ('Spicy Chicken Curry', '19.99', 'Main Course', 'Curries', False, True, '4.5',
     'Chicken in a rich, aromatic curry sauce with basmati rice'),
    ('Vegetable Stir Fry', '16.99', 'Main Course', 'Wok', True, False, '4.3',
     'Mixed vegetables stir-fried with ginger, garlic and soy, with jasmine rice'),
    ('Chocolate Lava Cake', '8.99', 'Desserts', None, True, False, '4.9',
     'Warm chocolate cake with a molten center and vanilla ice cream'),
    ('Tiramisu', '7.99', 'Desserts', None, True, False, '4.6',
     'Coffee-soaked ladyfingers layered with mascarpone cream'),
    ('Fresh Orange Juice', '4.99', 'Beverages', 'Soft Drinks', True, False, '4.4',
     'Freshly squeezed orange juice, no added sugar'),
    ('Iced Coffee', '5.99', 'Beverages', 'Soft Drinks', True, False, '4.2',
     'Cold brew coffee served over ice'),
    ('Craft Beer', '6.99', 'Beverages', 'Alcoholic', True, False, '4.5',
     "Local craft beer selection, ask your server for today's options"),
]


class Command(BaseCommand):
    help = 'Seed database with initial data for testing'

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Starting data seed...'))
        # Notifications are created inline so no worker is needed while seeding.
        celery_app.conf.task_always_eager = True

        self.stdout.write(self.style.HTTP_INFO('Creating staff accounts...'))
        users = {}
        for username, email, password, role in STAFF_ACCOUNTS:
            users[role] = self._create_staff(username, email, password, role)
        self.stdout.write(self.style.SUCCESS(f'✓ Created staff: {", ".join(a[0] for a in STAFF_ACCOUNTS)}'))

        self.stdout.write(self.style.HTTP_INFO('Creating restaurant tables...'))
        tables_data = [
            (1, 2), (2, 2), (3, 4), (4, 4), (5, 6),
            (6, 6), (7, 8), (8, 8), (9, 4), (10, 2)
        ]
        tables = []
        for table_number, capacity in tables_data:
            table, created = Table.objects.get_or_create(
                table_number=table_number,
                defaults={'capacity': capacity}
            )
            tables.append(table)
        self.stdout.write(self.style.SUCCESS(f'✓ Created {len(tables)} tables'))

        self.stdout.write(self.style.HTTP_INFO('Creating menu...'))
        categories = self._create_categories()
        menu = {}
        for name, price, category, subcategory, vegetarian, spicy, rating, description in MENU_ITEMS:
            item, created = MenuItem.objects.get_or_create(
                name=name,
                defaults={
                    'category': categories[(category, None)],
                    'subcategory': categories[(category, subcategory)] if subcategory else None,
                    'price': Decimal(price),
                    'description': description,
                    'is_vegetarian': vegetarian,
                    'is_spicy': spicy,
                    'rating': Decimal(rating),
                }
            )
            menu[name] = item
        self.stdout.write(self.style.SUCCESS(f'✓ Created {len(categories)} categories and {len(menu)} menu items'))

        if Order.objects.exists():
            self.stdout.write(self.style.WARNING('Orders already exist, skipping sample orders.'))
        else:
            self.stdout.write(self.style.HTTP_INFO('Creating sample orders...'))
            self._create_orders(tables, menu, users)

        self.stdout.write(self.style.SUCCESS('\n=== SEED DATA COMPLETE ==='))
        self.stdout.write(self.style.SUCCESS('\nStaff accounts:'))
        for username, email, password, role in STAFF_ACCOUNTS:
            self.stdout.write(f'  {role.title():8} username={username}, password={password}')
        self.stdout.write(self.style.SUCCESS('\nRun: python manage.py runserver'))
        self.stdout.write(self.style.SUCCESS('Then visit: http://127.0.0.1:8000/api/'))

    def _create_staff(self, username, email, password, role):
        """Create an approved staff account; admins also get Django admin access."""
        is_admin = role == lifecycle.ROLE_ADMIN
        user, created = User.objects.get_or_create(
            username=username,
            defaults={
                'email': email,
                'is_staff': is_admin,
                'is_superuser': is_admin,
                'is_active': True,
            }
        )
        if created:
            user.set_password(password)
            user.save()
        StaffProfile.objects.update_or_create(
            user=user,
            defaults={
                'role': role,
                'status': lifecycle.STAFF_ACTIVE,
                'approved_at': timezone.now(),
            }
        )
        return user

    def _create_categories(self):
        categories = {}
        for name, children in CATEGORIES.items():
            parent, created = Category.objects.get_or_create(name=name, parent=None)
            categories[(name, None)] = parent
            for child in children:
                sub, created = Category.objects.get_or_create(name=child, parent=parent)
                categories[(name, child)] = sub
        return categories

    def _create_orders(self, tables, menu, users):
        waiter = users[lifecycle.ROLE_WAITER]
        chef = users[lifecycle.ROLE_CHEF]
        cashier = users[lifecycle.ROLE_CASHIER]

        def place(table, customer, lines, notes=''):
            return services.place_order(
                table, customer,
                [{'menu_item': menu[name], 'quantity': qty} for name, qty in lines],
                placed_by=waiter, notes=notes
            )

        # Table 1: just confirmed
        place(tables[0], 'Rahim', [('Caesar Salad', 1), ('Fresh Orange Juice', 2)], notes='No croutons')

        # Table 2: in the kitchen
        order = place(tables[1], 'Karim', [('Spicy Chicken Curry', 1), ('Iced Coffee', 1)])
        services.start_preparing(order, chef)

        # Table 3: ready to serve
        order = place(tables[2], 'Nadia', [('Margherita Pizza', 2), ('Craft Beer', 2)])
        services.start_preparing(order, chef)
        services.mark_ready(order, chef)

        # Table 4: served and billed, waiting for payment
        order = place(tables[3], 'Farhan', [('Grilled Salmon', 2), ('Tiramisu', 2)], notes='Birthday')
        services.start_preparing(order, chef)
        services.mark_ready(order, chef)
        services.mark_served(order, waiter)
        services.bill_order(order, cashier)

        # Table 5: paid and closed
        order = place(tables[4], 'Sadia', [('Vegetable Stir Fry', 1), ('Bruschetta', 1)])
        services.bill_order(order, cashier)
        services.complete_order(order, cashier)

        # Table 6: cancelled before the kitchen started
        order = place(tables[5], 'Tanvir', [('Buffalo Wings', 1)])
        services.cancel_order(order, waiter)

        self.stdout.write(self.style.SUCCESS('✓ Created 6 sample orders across the lifecycle'))
