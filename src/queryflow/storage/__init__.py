from queryflow.storage.metadata import MetadataStore
from queryflow.storage.result_store import ResultStore

__all__ = ["MetadataStore", "ResultStore"]
