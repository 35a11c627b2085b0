class ChartdeskError(Exception):
    """Base class for every error raised by chartdesk."""


class StructuralError(ChartdeskError):
    """Raised when a price file cannot be parsed at all (too few lines, missing columns)."""
    def __init__(self, message="Invalid CSV"):
        super().__init__(message)


class InvalidFileTypeError(ChartdeskError):
    """Raised when an upload is not a CSV file."""
    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Unsupported file type: {filename!r}. Please upload a .csv file.")


class RowError(ChartdeskError):
    """Raised for a single bad row; the row is dropped and parsing continues."""
    def __init__(self, message: str, line_no: int | None = None):
        self.line_no = line_no
        super().__init__(message)


class DateFormatError(RowError):
    """Raised when a date literal matches none of the accepted patterns."""


class RenderDegeneracyError(ChartdeskError):
    """Raised (and logged) when axis bounds collapse or are not finite."""
