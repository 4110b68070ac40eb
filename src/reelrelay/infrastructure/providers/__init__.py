from .http_api import HttpApiMediaProvider, ProviderResponseError
from .link_expander import HttpxLinkExpander
from .ytdlp import YtDlpMediaProvider

__all__ = [
    "HttpApiMediaProvider",
    "HttpxLinkExpander",
    "ProviderResponseError",
    "YtDlpMediaProvider",
]
