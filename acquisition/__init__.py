"""
Acquisition Module
参考内容获取
"""
from .service import ContentAcquisitionService, require_usable, usable_documents

__all__ = [
    "ContentAcquisitionService",
    "require_usable",
    "usable_documents",
]
