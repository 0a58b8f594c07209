from rest_framework import permissions
from users.models import UserType
import logging

logger = logging.getLogger(__name__)

# Permissions
class IsCreator(permissions.BasePermission):
    """
    Allows access only to authenticated users holding the creator capability.
    Safe methods are open to any authenticated user.
    """
    message = 'Access denied. Only creators are permitted.'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            logger.error("Permission denied: User not authenticated.")
            return False

        if request.method in permissions.SAFE_METHODS:
            return True

        if not (request.user.has_role(UserType.CREATOR) or request.user.has_role(UserType.ADMIN)):
            logger.warning(f"Permission denied: User {request.user} is not a creator (Type: {request.user.user_type}).")
            return False

        return True


class IsPlatformAdmin(permissions.BasePermission):
    """
    Allows access only to users holding the platform admin capability.
    """
    message = 'Access denied. Only platform admins are permitted.'

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.has_role(UserType.ADMIN)
