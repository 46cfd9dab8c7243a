"""
Application exceptions, rendered to HTTP responses by the central handlers
"""

from typing import Optional, Dict, Any


class BaseAppException(Exception):
    """Base application exception"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


# === Authentication ===
class AuthenticationError(BaseAppException):
    """Missing or unusable credentials"""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "AUTHENTICATION_ERROR",
    ):
        super().__init__(message, 401, error_code, details)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__(
            "Invalid username or password", error_code="INVALID_CREDENTIALS"
        )


class TokenExpiredError(AuthenticationError):
    def __init__(self, token_id: int = None):
        super().__init__(
            "Token has expired",
            {"token_id": token_id} if token_id is not None else None,
            "TOKEN_EXPIRED",
        )


class TokenNotReferenceableError(AuthenticationError):
    """The token was already used for a refresh"""

    def __init__(self):
        super().__init__(
            "Token cannot be used for refresh", error_code="TOKEN_NOT_REFERENCEABLE"
        )


class UserDisabledError(BaseAppException):
    def __init__(self, username: str = None):
        details = {"username": username} if username else None
        super().__init__("User account is disabled", 403, "USER_DISABLED", details)


# === Validation ===
class ValidationError(BaseAppException):
    """Invalid input data"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "VALIDATION_ERROR",
    ):
        super().__init__(message, 400, error_code, details)


class InvalidTimeRangeError(ValidationError):
    def __init__(self, start_time, end_time):
        super().__init__(
            "Start time must not be after end time",
            {"start_time": str(start_time), "end_time": str(end_time)},
            "INVALID_TIME_RANGE",
        )


class StartInPastError(ValidationError):
    def __init__(self, start_time):
        super().__init__(
            "Start time must not be in the past",
            {"start_time": str(start_time)},
            "START_IN_PAST",
        )


class ActivityClubMismatchError(ValidationError):
    def __init__(self, activity_id: int, club_id: int):
        super().__init__(
            f"Activity {activity_id} does not belong to club {club_id}",
            {"activity_id": activity_id, "club_id": club_id},
            "ACTIVITY_CLUB_MISMATCH",
        )


class InvalidRoleError(ValidationError):
    def __init__(self, role_id):
        super().__init__(
            f"Unknown role: {role_id}", {"role_id": role_id}, "INVALID_ROLE"
        )


class PasswordMismatchError(ValidationError):
    def __init__(self):
        super().__init__("Old password does not match", error_code="PASSWORD_MISMATCH")


# === Conflicts ===
class DuplicateError(BaseAppException):
    """Unique value already taken"""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str,
        error_code: str = "DUPLICATE_ERROR",
    ):
        message = f"{resource} with {field} '{value}' already exists"
        details = {"resource": resource, "field": field, "value": value}
        super().__init__(message, 409, error_code, details)


class UsernameTakenError(DuplicateError):
    def __init__(self, username: str):
        super().__init__("User", "username", username, "USERNAME_TAKEN")


class DuplicateTitleError(DuplicateError):
    def __init__(self, title: str):
        super().__init__("Club", "title", title, "DUPLICATE_TITLE")


# === Resources ===
class NotFoundError(BaseAppException):
    """Resource not found"""

    def __init__(
        self,
        resource: str,
        identifier: str = None,
        error_code: str = "NOT_FOUND",
    ):
        if identifier is not None:
            message = f"{resource} with identifier '{identifier}' not found"
            details = {"resource": resource, "identifier": str(identifier)}
        else:
            message = f"{resource} not found"
            details = {"resource": resource}
        super().__init__(message, 404, error_code, details)


class MemberNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__("Member", user_id, "MEMBER_NOT_FOUND")


class TokenNotFoundError(NotFoundError):
    def __init__(self):
        # the token value itself stays out of the response
        super().__init__("Token", error_code="TOKEN_NOT_FOUND")


# === Business logic ===
class BusinessLogicError(BaseAppException):
    """Business rule violation"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "BUSINESS_LOGIC_ERROR",
    ):
        super().__init__(message, 400, error_code, details)


class InvalidStateError(BusinessLogicError):
    """The entity is not in a state that allows the operation"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "INVALID_STATE",
    ):
        super().__init__(message, details, error_code)


class AlreadyEndedError(InvalidStateError):
    def __init__(self, activity_id: int):
        super().__init__(
            "Activity has already ended", {"activity_id": activity_id}, "ALREADY_ENDED"
        )


class AlreadyMemberError(InvalidStateError):
    def __init__(self, user_id: int, club_id: int):
        super().__init__(
            "User is already a member of this club",
            {"user_id": user_id, "club_id": club_id},
            "ALREADY_MEMBER",
        )


class PresidentCannotExitError(InvalidStateError):
    def __init__(self, user_id: int, club_id: int):
        super().__init__(
            "The club president cannot exit the club",
            {"user_id": user_id, "club_id": club_id},
            "PRESIDENT_CANNOT_EXIT",
        )


class NotEligibleError(InvalidStateError):
    def __init__(self, user_id: int, reason: str):
        super().__init__(reason, {"user_id": user_id}, "NOT_ELIGIBLE")


class ClubDisabledError(InvalidStateError):
    def __init__(self, club_id: int):
        super().__init__(
            "Club is disabled", {"club_id": club_id}, "CLUB_DISABLED"
        )


class NotInClubError(InvalidStateError):
    def __init__(self, user_id: int):
        super().__init__(
            "User has not joined any club", {"user_id": user_id}, "NOT_IN_CLUB"
        )


class ConfigNotModifiableError(InvalidStateError):
    def __init__(self, config_key: str):
        super().__init__(
            f"Config '{config_key}' is not modifiable",
            {"config_key": config_key},
            "CONFIG_NOT_MODIFIABLE",
        )


class PermissionDeniedError(BaseAppException):
    """Operator's role does not allow the action"""

    def __init__(
        self,
        action: str,
        resource: str,
        reason: str = None,
        error_code: str = "PERMISSION_DENIED",
    ):
        message = f"Permission denied: cannot {action} {resource}"
        if reason:
            message += f" - {reason}"
        details = {"action": action, "resource": resource, "reason": reason}
        super().__init__(message, 403, error_code, details)


class ForbiddenRoleError(PermissionDeniedError):
    """Requested role can never be granted"""

    def __init__(self, role_id: int):
        super().__init__(
            "grant",
            f"role {role_id}",
            "this role cannot be assigned",
            "FORBIDDEN_ROLE",
        )


class WrongClubError(PermissionDeniedError):
    def __init__(self, action: str, club_id: int):
        super().__init__(
            action,
            f"club {club_id}",
            "operator does not belong to this club",
            "WRONG_CLUB",
        )


# === Database ===
class DatabaseError(BaseAppException):
    """Database failure"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, 500, "DATABASE_ERROR", details)


class DatabaseConnectionError(BaseAppException):
    def __init__(self, message: str = "Database connection failed"):
        super().__init__(message, 503, "DATABASE_CONNECTION_ERROR")


class DatabaseTimeoutError(BaseAppException):
    def __init__(self, operation: str, timeout: int):
        message = f"Database operation '{operation}' timed out after {timeout}s"
        details = {"operation": operation, "timeout": timeout}
        super().__init__(message, 504, "DATABASE_TIMEOUT", details)


class DatabaseIntegrityError(BaseAppException):
    """Unique or foreign key constraint violated"""

    def __init__(self, constraint: str, details: Optional[Dict[str, Any]] = None):
        message = f"Database integrity constraint violated: {constraint}"
        error_details = {"constraint": constraint}
        if details:
            error_details.update(details)
        super().__init__(message, 409, "DATABASE_INTEGRITY_ERROR", error_details)
