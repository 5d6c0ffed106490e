"""
Project-wide constants that are unlikely to change at runtime.
"""

from typing import Final, List

SUPPORTED_CATALOG_BACKENDS: Final[List[str]] = ["http", "excel"]

SUPPORTED_REFERENCE_STORE_BACKENDS: Final[List[str]] = ["s3", "mongodb"]

SUPPORTED_EMBEDDING_BACKENDS: Final[List[str]] = [
    "sentence-transformers",
    "bedrock",
]

SUPPORTED_VECTOR_INDEX_BACKENDS: Final[List[str]] = ["chromadb", "pgvector", "milvus"]

# Partition key used for every reference document ("ecommerce config")
REFERENCE_DOCUMENT_PK: Final[str] = "ECOMMERCE_CONFIG"

# Catalog statuses the metadata API uses for products that must not be indexed
DISABLED_PRODUCT_STATUSES: Final[List[str]] = ["disabled", "disabledd"]

# Default embedding dimension for intfloat/e5-large-v2 and amazon titan v2
DEFAULT_EMBEDDING_DIM: Final[int] = 1024

DEFAULT_BEDROCK_EMBEDDINGS_MODEL: Final[str] = "amazon.titan-embed-text-v1"

# In-flight invoke_model requests per Bedrock batch
BEDROCK_MAX_CONCURRENCY: Final[int] = 10

DEFAULT_UPSERT_BATCH_SIZE: Final[int] = 100

# Collaborator names reported by ExternalDependencyError.origin
ORIGIN_CATALOG_SOURCE: Final[str] = "catalog_source"
ORIGIN_REFERENCE_STORE: Final[str] = "reference_store"
ORIGIN_EMBEDDING_SERVICE: Final[str] = "embedding_service"
ORIGIN_VECTOR_INDEX: Final[str] = "vector_index"
