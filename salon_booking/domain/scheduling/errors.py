"""Scheduling domain errors - each kind maps to one HTTP status code"""


class SchedulingError(Exception):
    """Base error for the placement engine; message is safe to show to the caller"""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SchedulingError):
    status_code = 400


class MissingField(ValidationError):
    def __init__(self, field: str):
        super().__init__(f"{field} is required")
        self.field = field


class InvalidDateTime(ValidationError):
    pass


class InvalidAppointmentType(ValidationError):
    def __init__(self, value):
        super().__init__(f"Invalid appointment type '{value}'. Must be 'grooming' or 'garden'")


class MissingMeetingTimes(ValidationError):
    def __init__(self):
        super().__init__("Meeting is missing its start or end time")


class AuthenticationRequired(SchedulingError):
    status_code = 401


class NotFound(SchedulingError):
    status_code = 404


class CustomerNotFound(NotFound):
    pass


class ProfileNotFound(SchedulingError):
    """The authenticated user has no customer profile (incomplete account setup)"""

    status_code = 403

    def __init__(self):
        super().__init__("Customer profile not found")


class Forbidden(SchedulingError):
    status_code = 403


class StationNotBookableRemotely(Forbidden):
    def __init__(self):
        super().__init__("This station does not accept remote bookings for the selected service")


class Conflict(SchedulingError):
    status_code = 409


class MeetingUnavailable(Conflict):
    def __init__(self):
        super().__init__("Meeting is no longer available")


class SlotConflict(Conflict):
    def __init__(self):
        super().__init__("The selected time overlaps another appointment on this station")


class StoreFailure(SchedulingError):
    status_code = 500
