from .link_expander import LinkExpanderPort
from .media_provider import MediaProviderPort

__all__ = [
    "LinkExpanderPort",
    "MediaProviderPort",
]
