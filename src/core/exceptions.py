"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    SESSION_REVOKED = "SESSION_REVOKED"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    PERMISSION_ESCALATION = "PERMISSION_ESCALATION"
    TEMPLATE_ROLE_PROTECTED = "TEMPLATE_ROLE_PROTECTED"
    SYSTEM_GROUP_PROTECTED = "SYSTEM_GROUP_PROTECTED"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"

    # Not found errors (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"
    ROLE_TEMPLATE_NOT_FOUND = "ROLE_TEMPLATE_NOT_FOUND"
    PERMISSION_NOT_FOUND = "PERMISSION_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"
    ROLE_ASSIGNMENT_NOT_FOUND = "ROLE_ASSIGNMENT_NOT_FOUND"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ACTION = "INVALID_ACTION"

    # Conflict errors (409)
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"
    DUPLICATE_ROLE_ASSIGNMENT = "DUPLICATE_ROLE_ASSIGNMENT"
    ROLE_NAME_TAKEN = "ROLE_NAME_TAKEN"
    INVALID_MEMBERSHIP_STATE = "INVALID_MEMBERSHIP_STATE"
    INVALID_ACCOUNT_STATE = "INVALID_ACCOUNT_STATE"
    GROUP_NOT_ORPHANED = "GROUP_NOT_ORPHANED"

    # Invariant violations (409)
    LAST_PRIVILEGED_HOLDER = "LAST_PRIVILEGED_HOLDER"

    # Confirmation required (428)
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


# --- Forbidden ---


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class InsufficientPermissionsError(AppException):
    """User does not hold the permission required for a mutation."""

    def __init__(self, permission: str, group_id: str | None = None) -> None:
        details: dict[str, Any] = {"required_permission": permission}
        if group_id:
            details["group_id"] = group_id
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required permission: {permission}",
            status_code=403,
            details=details,
        )


class PermissionEscalationError(AppException):
    """Granter tried to grant permissions they do not hold themselves."""

    def __init__(self, permissions: list[str]) -> None:
        super().__init__(
            error_code=ErrorCode.PERMISSION_ESCALATION,
            message="You cannot grant a permission you do not hold",
            status_code=403,
            details={"permissions": sorted(permissions)},
        )


class TemplateRoleProtectedError(AppException):
    """Template-derived roles can be edited but not deleted."""

    def __init__(self, role_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.TEMPLATE_ROLE_PROTECTED,
            message="Template roles cannot be deleted",
            status_code=403,
            details={"role_id": role_id},
        )


class SystemGroupProtectedError(AppException):
    """System and personal groups cannot be changed through this operation."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.SYSTEM_GROUP_PROTECTED,
            message="This group is managed by the platform",
            status_code=403,
            details={"group_id": group_id},
        )


class AccountDisabledError(AppException):
    """The authenticated account is deactivated or decommissioned."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.ACCOUNT_DISABLED,
            message="This account is not active",
            status_code=403,
        )


# --- Not found ---


class UserNotFoundError(AppException):
    """User not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message=f"User not found: {user_id}",
            status_code=404,
            details={"user_id": user_id},
        )


class GroupNotFoundError(AppException):
    """Group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message=f"Group not found: {group_id}",
            status_code=404,
            details={"group_id": group_id},
        )


class RoleNotFoundError(AppException):
    """Group role not found."""

    def __init__(self, role_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ROLE_NOT_FOUND,
            message=f"Role not found: {role_id}",
            status_code=404,
            details={"role_id": role_id},
        )


class RoleTemplateNotFoundError(AppException):
    """Role template not found."""

    def __init__(self, template: str) -> None:
        super().__init__(
            error_code=ErrorCode.ROLE_TEMPLATE_NOT_FOUND,
            message=f"Role template not found: {template}",
            status_code=404,
            details={"template": template},
        )


class PermissionNotFoundError(AppException):
    """One or more permission ids are not in the catalog."""

    def __init__(self, permission_ids: list[str]) -> None:
        super().__init__(
            error_code=ErrorCode.PERMISSION_NOT_FOUND,
            message="Unknown permission",
            status_code=404,
            details={"permission_ids": permission_ids},
        )


class MembershipNotFoundError(AppException):
    """Group membership not found."""

    def __init__(self, membership_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBERSHIP_NOT_FOUND,
            message="Membership not found",
            status_code=404,
            details={"membership_id": membership_id},
        )


class RoleAssignmentNotFoundError(AppException):
    """User does not hold the role in the group."""

    def __init__(self, user_id: str, role_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ROLE_ASSIGNMENT_NOT_FOUND,
            message="User does not hold this role",
            status_code=404,
            details={"user_id": user_id, "role_id": role_id},
        )


class NotificationNotFoundError(AppException):
    """Notification not found."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOTIFICATION_NOT_FOUND,
            message=f"Notification not found: {notification_id}",
            status_code=404,
            details={"notification_id": notification_id},
        )


# --- Conflict ---


class AlreadyAMemberError(AppException):
    """User already has an invited, active or paused membership."""

    def __init__(self, user_id: str, status: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="User is already a member of this group",
            status_code=409,
            details={"user_id": user_id, "status": status},
        )


class DuplicateRoleAssignmentError(AppException):
    """User already holds the role in the group."""

    def __init__(self, user_id: str, role_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_ROLE_ASSIGNMENT,
            message="User already holds this role",
            status_code=409,
            details={"user_id": user_id, "role_id": role_id},
        )


class RoleNameTakenError(AppException):
    """Role names are unique within a group."""

    def __init__(self, name: str) -> None:
        super().__init__(
            error_code=ErrorCode.ROLE_NAME_TAKEN,
            message="A role with this name already exists",
            status_code=409,
            details={"name": name},
        )


class GroupNotOrphanedError(AppException):
    """The group still has an active member holding the leadership permission."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_ORPHANED,
            message="This group already has a steward",
            status_code=409,
            details={"group_id": group_id},
        )


class InvalidMembershipStateError(AppException):
    """Membership status does not allow the requested transition."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_MEMBERSHIP_STATE,
            message=f"Cannot change membership from {current} to {requested}",
            status_code=409,
            details={"current": current, "requested": requested},
        )


class InvalidAccountStateError(AppException):
    """Account state does not allow the requested change."""

    def __init__(self, message: str, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ACCOUNT_STATE,
            message=message,
            status_code=409,
            details={"user_id": user_id},
        )


# --- Invariant violations ---


class LastPrivilegedHolderError(AppException):
    """Removal would leave a group without a holder of the leadership permission."""

    def __init__(self, group_id: str, permission: str) -> None:
        super().__init__(
            error_code=ErrorCode.LAST_PRIVILEGED_HOLDER,
            message="This is the last Steward of the group. Promote another Steward first",
            status_code=409,
            details={"group_id": group_id, "permission": permission},
        )


# --- Admin actions ---


class InvalidActionError(AppException):
    """Bulk action is missing required input."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ACTION,
            message=message,
            status_code=400,
            details={"action": action},
        )


class ConfirmationRequiredError(AppException):
    """Destructive action executed without explicit confirmation."""

    def __init__(self, action: str, dialog: str) -> None:
        super().__init__(
            error_code=ErrorCode.CONFIRMATION_REQUIRED,
            message=dialog,
            status_code=428,
            details={"action": action},
        )
