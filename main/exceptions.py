"""
Service error taxonomy.

Every service raises one of these instead of returning error responses; the
``service_view`` decorator in ``users.decorators`` turns them into JSON.

Error Codes
-----------
0x10 - Validation failed (malformed or missing input)
0x11 - Invalid credentials
0x12 - Account not active
0x20 - Missing/invalid auth token
0x70 - Insufficient permissions (role or ownership)
0x80 - Referenced entity not found
0x90 - Conflict (uniqueness violation)
0xFF - Internal error
"""


class ServiceError(Exception):
    status = 500
    code = 'INTERNAL_ERROR'
    errno = 0xFF
    default_message = 'An unexpected error occurred.'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        payload = {
            'success': False,
            'message': self.message,
            'code': self.code,
            'errno': self.errno,
        }
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(ServiceError):
    status = 400
    code = 'VALIDATION_ERROR'
    errno = 0x10
    default_message = 'Invalid input.'

    @classmethod
    def from_serializer(cls, serializer):
        """Build from a failed DRF serializer, keeping per-field messages."""
        details = {field: [str(msg) for msg in msgs] if isinstance(msgs, list) else msgs
                   for field, msgs in serializer.errors.items()}
        first = next(iter(details.values()), None)
        if isinstance(first, list) and first:
            message = first[0]
        else:
            message = cls.default_message
        return cls(message, details=details)


class Unauthenticated(ServiceError):
    status = 401
    code = 'UNAUTHENTICATED'
    errno = 0x20
    default_message = 'Authentication required.'


class AuthError(ServiceError):
    pass


class InvalidCredentials(AuthError):
    status = 401
    code = 'INVALID_CREDENTIALS'
    errno = 0x11
    default_message = 'Invalid email or password.'


class AccountNotActive(AuthError):
    status = 403
    code = 'ACCOUNT_NOT_ACTIVE'
    errno = 0x12

    def __init__(self, account_status, message=None):
        self.account_status = account_status
        if message is None:
            if account_status == 'pending':
                message = 'Your account is pending approval.'
            else:
                message = 'Your account is not active. Please contact support.'
        super().__init__(message)

    def to_dict(self):
        payload = super().to_dict()
        payload['status'] = self.account_status
        return payload


class Forbidden(ServiceError):
    status = 403
    code = 'FORBIDDEN'
    errno = 0x70
    default_message = 'You are not authorized to perform this action.'


class NotFound(ServiceError):
    status = 404
    code = 'NOT_FOUND'
    errno = 0x80
    default_message = 'Not found.'


class Conflict(ServiceError):
    status = 409
    code = 'CONFLICT'
    errno = 0x90
    default_message = 'Resource already exists.'


class InternalError(ServiceError):
    pass
