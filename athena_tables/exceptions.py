"""Custom exception classes for athena-tables.

Every failure raised by the plugin carries an error code and a details
dictionary so the host framework can report a useful message.
"""

from typing import Optional, Dict, Any


class AthenaTablesError(Exception):
    """Base exception for all athena-tables errors."""

    error_code: str = "ERR000"  # Override in subclasses

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        """
        Initialize athena-tables exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context
            error_code: Optional error code override
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def __str__(self) -> str:
        """Return string representation with error code and details."""
        parts = [f"[{self.error_code}] {self.message}"]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)


class TableValidationError(AthenaTablesError):
    """Raised when a table definition is malformed.

    Examples:
        - Neither DDL nor DDLFile given
        - Both DDL and DDLFile given
        - Missing OutputLocation or TableName
    """

    error_code = "CFG001"

    def __init__(self, message: str, table: Optional[str] = None, key: Optional[str] = None):
        """
        Initialize table validation error.

        Args:
            message: Description of validation failure
            table: Registry name of the offending table
            key: Configuration key that caused the error
        """
        details = {}
        if table:
            details['table'] = table
        if key:
            details['config_key'] = key
        super().__init__(message, details)
        self.table = table


class TableNotFoundError(AthenaTablesError):
    """Raised when a command names a table that is not configured."""

    error_code = "CFG002"

    def __init__(self, table: str):
        super().__init__(f"Athena table not found: {table}", {'table': table})
        self.table = table


class DDLReadError(AthenaTablesError):
    """Raised when a DDL file cannot be read as UTF-8 text."""

    error_code = "IO001"

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        """
        Initialize DDL read error.

        Args:
            message: Description of the read failure
            file_path: Path of the DDL file
            original_error: Original exception that caused this error
        """
        details = {}
        if file_path:
            details['file_path'] = file_path
        if original_error:
            details['original_error'] = str(original_error)
            details['error_type'] = type(original_error).__name__

        super().__init__(message, details)
        self.file_path = file_path
        self.original_error = original_error


class RemoteQueryError(AthenaTablesError):
    """Raised when Athena rejects a query or the execution does not succeed.

    Examples:
        - StartQueryExecution rejected (malformed SQL, missing permissions)
        - Execution reached FAILED or CANCELLED
    """

    error_code = "ATH001"

    def __init__(
        self,
        message: str,
        state: Optional[str] = None,
        execution_id: Optional[str] = None,
        reason: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        """
        Initialize remote query error.

        Args:
            message: Description of the failure
            state: Terminal execution state observed (FAILED, CANCELLED)
            execution_id: Athena QueryExecutionId
            reason: StateChangeReason reported by Athena
            operation: Athena API operation that failed
            original_error: Original exception that caused this error
        """
        details = {}
        if state:
            details['state'] = state
        if execution_id:
            details['execution_id'] = execution_id
        if reason:
            details['reason'] = reason
        if operation:
            details['operation'] = operation
        if original_error:
            details['original_error'] = str(original_error)
            details['error_type'] = type(original_error).__name__

        super().__init__(message, details)
        self.state = state
        self.execution_id = execution_id
        self.reason = reason
        self.original_error = original_error


class QueryTimeoutError(RemoteQueryError):
    """Raised when an execution is still running after the poll deadline."""

    error_code = "ATH002"

    def __init__(
        self,
        message: str,
        execution_id: Optional[str] = None,
        timeout: Optional[float] = None,
        last_state: Optional[str] = None
    ):
        super().__init__(message, state=last_state, execution_id=execution_id)
        if timeout is not None:
            self.details['timeout_seconds'] = timeout
        self.timeout = timeout
