"""Python client for the Metasys building automation REST API."""

__version__ = "0.1.0"

from .client import MetasysClient, group_variants
from .errors import (
    MetasysAuthError,
    MetasysClientError,
    MetasysConnectionError,
    MetasysGuidError,
    MetasysHttpError,
    MetasysParsingError,
    MetasysPropertyError,
    MetasysTimeout,
    MetasysTokenError,
)
from .http import MetasysHttpClient
from .localization import Localizer, load_resources
from .models import (
    AccessToken,
    ApiVersion,
    Command,
    CommandItem,
    MetasysObject,
    NetworkDeviceType,
    Variant,
    VariantMultiple,
)
from .session import MetasysSession
from .sync import SyncMetasysClient

__all__ = [
    "AccessToken",
    "ApiVersion",
    "Command",
    "CommandItem",
    "Localizer",
    "MetasysAuthError",
    "MetasysClient",
    "MetasysClientError",
    "MetasysConnectionError",
    "MetasysGuidError",
    "MetasysHttpClient",
    "MetasysHttpError",
    "MetasysObject",
    "MetasysParsingError",
    "MetasysPropertyError",
    "MetasysSession",
    "MetasysTimeout",
    "MetasysTokenError",
    "NetworkDeviceType",
    "SyncMetasysClient",
    "Variant",
    "VariantMultiple",
    "__version__",
    "group_variants",
    "load_resources",
]
