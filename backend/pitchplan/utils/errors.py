"""Domain errors raised by the data layer and the schedule editor."""


class ScheduleError(Exception):
    """Base exception for scheduling errors"""
    pass


class NotFoundError(ScheduleError):
    """A referenced pitch, fixture, break or group does not exist"""
    pass


class InvalidWindowError(ScheduleError):
    """Pitch window is malformed or does not satisfy open_time < close_time"""
    pass


class InvalidTimeError(ScheduleError):
    """A clock value is not a well-formed HH:MM string"""
    pass
