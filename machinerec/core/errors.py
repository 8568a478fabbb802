"""Custom exceptions used across the machine recording system."""


class MachineRecError(Exception):
    """Base error for the application."""


class ConfigError(MachineRecError):
    """Configuration related error."""


class ValidationError(MachineRecError):
    """Raised when a submission is missing or carries a malformed field.

    The message is reported verbatim to the submitting operator.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidFactory(ValidationError):
    """Factory code not present in the schema."""


class InvalidOwnership(ValidationError):
    """Ownership kind other than Owned/Rent."""


class InvalidMachineType(ValidationError):
    """Machine type not present in the schema."""


class InvalidStatus(ValidationError):
    """Status type not present in the schema."""
