from authcore.models.refresh_session import RefreshSession

__all__ = [
    "RefreshSession",
]
