from rest_framework import permissions

from . import lifecycle


def staff_role(user):
    """
    Role of an approved staff member, or None.
    Superusers count as admins even without a profile.
    """
    if not user or not user.is_authenticated:
        return None
    profile = getattr(user, 'staff_profile', None)
    if profile is not None and profile.is_approved:
        return profile.role
    if user.is_superuser:
        return lifecycle.ROLE_ADMIN
    return None


def has_role(user, *roles):
    role = staff_role(user)
    return role is not None and (role == lifecycle.ROLE_ADMIN or role in roles)


class IsApprovedStaff(permissions.BasePermission):
    """Any approved staff member."""
    def has_permission(self, request, view):
        return staff_role(request.user) is not None


class IsAdmin(permissions.BasePermission):
    """Permission for Admin role."""
    def has_permission(self, request, view):
        return has_role(request.user)


class IsWaiter(permissions.BasePermission):
    """Permission for Waiter role (admins included)."""
    def has_permission(self, request, view):
        return has_role(request.user, lifecycle.ROLE_WAITER)


class IsChef(permissions.BasePermission):
    """Permission for Chef role (admins included)."""
    def has_permission(self, request, view):
        return has_role(request.user, lifecycle.ROLE_CHEF)


class IsCashier(permissions.BasePermission):
    """Permission for Cashier role (admins included)."""
    def has_permission(self, request, view):
        return has_role(request.user, lifecycle.ROLE_CASHIER)


class IsAdminOrStaffReadOnly(permissions.BasePermission):
    """Admin can edit, approved staff can only read."""
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return staff_role(request.user) is not None
        return has_role(request.user)


class IsAdminOrPublicReadOnly(permissions.BasePermission):
    """Admin can edit, anyone can read (customer menu)."""
    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return has_role(request.user)
