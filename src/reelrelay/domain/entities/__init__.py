from .media import JsonValue, NormalizedResult, RelayStream

__all__ = [
    "JsonValue",
    "NormalizedResult",
    "RelayStream",
]
