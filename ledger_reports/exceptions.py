#!/usr/bin/env python3
"""
Reporting Errors
Failure modes surfaced to API callers as success=false responses

Every error carries the HTTP status to answer with and a public message that is
safe to return to the caller. Internal details (SQL text, driver messages,
credentials) stay in the server log.
"""

from typing import Optional


class ReportingError(Exception):
    """Base class for failures that end a report request"""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, public_message: Optional[str] = None):
        super().__init__(message or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class TenantNotConfigured(ReportingError):
    """No active connection profile for the calling tenant"""

    status_code = 400
    public_message = "No active database connection found. Please set up your database connection first."

    def __init__(self, tenant_id: Optional[str] = None):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant {tenant_id!r} has no active connection profile")


class InvalidReportParameter(ReportingError):
    """A request parameter could not be interpreted"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, public_message=message)


class MalformedAccountCode(InvalidReportParameter):
    """An account code does not parse to the expected numeric key shape"""

    def __init__(self, code, reason: str = "not a valid account code"):
        self.code = code
        super().__init__(f"Invalid account code {code!r}: {reason}")


class ConnectionFailed(ReportingError):
    """The tenant database could not be opened"""

    status_code = 503
    public_message = "Could not connect to the tenant database"


class QueryTimeout(ReportingError):
    """A statement ran past its command timeout"""

    status_code = 504
    public_message = "Report query timed out. Narrow the date or account range and try again."


class QuerySyntaxError(ReportingError):
    """The database rejected a generated statement"""

    status_code = 500
    public_message = "Internal server error"
