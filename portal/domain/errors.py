class PortalError(Exception):
    """Base class for refusals the caller is expected to show to a user."""


class StorageError(PortalError):
    """Storage read/write failed. No retries are done on our side."""

    def __init__(self, operation: str, cause: Exception | None = None):
        super().__init__(f"{operation} failed: {cause}" if cause else f"{operation} failed")
        self.operation = operation
        self.cause = cause


class ApplicantNotFoundError(PortalError):
    def __init__(self, applicant_id: str):
        super().__init__(f"applicant {applicant_id!r} not found")
        self.applicant_id = applicant_id


class UnknownDepartmentError(PortalError):
    def __init__(self, raw_dept: str):
        super().__init__(f"unknown department {raw_dept!r}")
        self.raw_dept = raw_dept


class DepartmentNotSelectedError(PortalError):
    def __init__(self, applicant_id: str, dept: str):
        super().__init__(f"applicant {applicant_id!r} did not select {dept!r}")
        self.applicant_id = applicant_id
        self.dept = dept


class TooManyDepartmentsError(PortalError):
    def __init__(self, requested: int, limit: int):
        super().__init__(f"{requested} departments selected, at most {limit} allowed")
        self.requested = requested
        self.limit = limit


class ApplicationLockedError(PortalError):
    """The application was already submitted and can no longer be edited."""

    def __init__(self, applicant_id: str):
        super().__init__(f"application of {applicant_id!r} is already submitted")
        self.applicant_id = applicant_id


class IncompleteApplicationError(PortalError):
    def __init__(self, applicant_id: str, missing: list):
        if missing:
            msg = f"application of {applicant_id!r} misses forms: {', '.join(missing)}"
        else:
            msg = f"application of {applicant_id!r} has no departments selected"
        super().__init__(msg)
        self.applicant_id = applicant_id
        self.missing = list(missing)


class SubmissionsClosedError(PortalError):
    pass


class ReviewNotAllowedError(PortalError):
    def __init__(self, dept: str):
        super().__init__(f"no authority to review department {dept!r}")
        self.dept = dept


class StatsInvariantError(AssertionError):
    """Counts do not add up. Always a bug, never a user error."""
