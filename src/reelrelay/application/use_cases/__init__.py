from .resolve_media import ResolveMediaUseCase

__all__ = ["ResolveMediaUseCase"]
