class InvalidDocumentError(ValueError):
    """Raised when an API description does not have the expected shape."""

    def __init__(self, message: str, location: str = "") -> None:
        self.location = location
        if location:
            message = f"{message} (at {location})"
        super().__init__(message)
