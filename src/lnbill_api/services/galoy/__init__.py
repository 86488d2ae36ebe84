from .service import GaloyService

__all__ = ["GaloyService"]
