# Error taxonomy for the relay and unfurl engine
from typing import Dict, Optional


class BridgeError(Exception):
    pass


class StorageError(BridgeError):
    """Registry file is unreadable, corrupt or could not be written."""


class ProvisionError(BridgeError):
    def __init__(self, channel_id: str, message: Optional[str] = None):
        super().__init__(message or f"Could not create webhook for channel {channel_id}")
        self.channel_id = channel_id


class HandlerError(BridgeError):
    """A provider handler failed for a reason it could not classify."""


class ImageDecodeError(BridgeError):
    pass


class ImageFitError(BridgeError):
    pass


class DeliveryError(BridgeError):
    """One or more destinations of a fan-out failed.

    ``failures`` maps every failed destination channel id to its exception.
    Deliveries that succeeded are not part of it and are never rolled back.
    """

    def __init__(self, failures: Dict[str, BaseException]):
        channels = ", ".join(failures)
        super().__init__(f"Delivery failed for {len(failures)} channel(s): {channels}")
        self.failures = failures
