"""Custom exceptions for Slot Poll."""


class SlotPollError(Exception):
    """Base exception for all Slot Poll errors."""


class ConfigurationError(SlotPollError):
    """Exception raised for configuration related errors."""


class StoreError(SlotPollError):
    """Exception raised when the backing store fails to read or write."""


class NotFoundError(SlotPollError):
    """Exception raised when an event (or other addressed record) does not exist."""


class ValidationError(SlotPollError):
    """Exception raised for data validation errors."""
