"""Top-level package for logship.

This package ships single structured telemetry records to a Log Analytics
workspace over the shared-key signed HTTP data collector API. The main entry
point is `LogShippingClient`.
"""

from .ingest.client import LogShippingClient, send_log_record
from .models.datatypes import Credentials

__all__ = ["Credentials", "LogShippingClient", "__version__", "send_log_record"]

__version__ = "0.1.0"
