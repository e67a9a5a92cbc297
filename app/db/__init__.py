from .storage import SqlStorage, Storage

__all__ = ['SqlStorage', 'Storage']
