from catalog_diff.registry.upload_registry import UploadRegistry

__all__ = ["UploadRegistry"]
