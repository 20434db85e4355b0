from main import exceptions as errors

APPLICATION_STATUSES = ('pending', 'accepted', 'rejected', 'completed', 'withdrawn')

# (from, to) -> roles allowed to make the move through an update.
# accepted -> completed happens only through certificate issuance.
APPLICATION_TRANSITIONS = {
    ('pending', 'accepted'): {'employer', 'admin'},
    ('pending', 'rejected'): {'employer', 'admin'},
    ('pending', 'withdrawn'): {'student'},
}


def validate_status_filter(status):
    if status is not None and status not in APPLICATION_STATUSES:
        raise errors.ValidationError(f"Unknown application status: {status}")
    return status


def validate_application_status(current_status, new_status, role):
    """Check that ``role`` may move an application from ``current_status`` to ``new_status``."""
    if new_status not in APPLICATION_STATUSES:
        raise errors.ValidationError(f"Unknown application status: {new_status}")

    if new_status == 'completed':
        raise errors.Forbidden("Applications are completed by issuing a certificate")

    if role == 'student' and new_status != 'withdrawn':
        raise errors.Forbidden("Students can only withdraw their applications")

    allowed = APPLICATION_TRANSITIONS.get((current_status, new_status))
    if allowed is None:
        raise errors.ValidationError(f"Invalid status transition from {current_status} to {new_status}")

    if role not in allowed:
        raise errors.Forbidden(f"{role.capitalize()} cannot move an application to {new_status}")
