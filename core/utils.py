from rest_framework import permissions


class IsEmployer(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'employer')


class IsWorker(permissions.BasePermission):
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'worker')


class IsJobParty(permissions.BasePermission):
    """Either role; whether the user is a party to the job is checked by the service layer."""
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return hasattr(request.user, 'worker') or hasattr(request.user, 'employer')


def display_name(user):
    if user is None:
        return 'System'
    full_name = f"{user.first_name} {user.last_name}".strip()
    return full_name or user.username
