"""
Builds the engine's collaborators from a Config.

Backend modules are imported only when selected.
"""

from __future__ import annotations

from .catalog.base import CatalogSource
from .config import Config
from .embedding.base import EmbeddingService
from .engine import ReconciliationEngine
from .errors import ConfigurationError
from .reference_store.base import ReferenceStore
from .vector_index.base import VectorIndex


def build_catalog_source(cfg: Config) -> CatalogSource:
    if cfg.catalog_backend == "http":
        from .catalog.http_catalog_source import HttpCatalogSource

        return HttpCatalogSource(base_url=cfg.catalog_api_url, timeout=cfg.catalog_api_timeout)
    if cfg.catalog_backend == "excel":
        from .catalog.excel_catalog_source import ExcelCatalogSource

        return ExcelCatalogSource(excel_path=cfg.catalog_excel_path)
    raise ConfigurationError(f"Unsupported catalog backend: {cfg.catalog_backend}")


def build_reference_store(cfg: Config) -> ReferenceStore:
    if cfg.reference_store_backend == "s3":
        from .reference_store.s3_reference_store import S3ReferenceStore

        return S3ReferenceStore(
            bucket_name=cfg.aws_s3_bucket_name,
            region_name=cfg.aws_region,
            references_prefix=cfg.aws_s3_references_prefix,
        )
    if cfg.reference_store_backend == "mongodb":
        from .reference_store.mongo_reference_store import MongoReferenceStore

        return MongoReferenceStore(
            uri=cfg.mongodb_uri,
            database_name=cfg.mongodb_database_name,
            collection_name=cfg.mongodb_collection_name,
        )
    raise ConfigurationError(f"Unsupported reference store backend: {cfg.reference_store_backend}")


def build_embedding_service(cfg: Config) -> EmbeddingService:
    if cfg.embedding_backend == "sentence-transformers":
        from .embedding.sentence_transformer import SentenceTransformerEmbeddingService

        return SentenceTransformerEmbeddingService(
            model_name=cfg.embedding_model,
            batch_size=cfg.embedding_batch_size,
            device=cfg.embedding_device,
        )
    if cfg.embedding_backend == "bedrock":
        from .embedding.bedrock import BedrockEmbeddingService

        return BedrockEmbeddingService(
            region_name=cfg.aws_region,
            model_id=cfg.bedrock_embeddings_model,
            dimensions=cfg.embedding_dim,
        )
    raise ConfigurationError(f"Unsupported embedding backend: {cfg.embedding_backend}")


def build_vector_index(cfg: Config) -> VectorIndex:
    if cfg.vector_index_backend == "chromadb":
        from .vector_index.chroma_vector_index import ChromaVectorIndex

        return ChromaVectorIndex(
            path=cfg.chromadb_path,
            collection_name=cfg.chromadb_collection_name,
            max_batch_size=cfg.vector_upsert_batch_size,
        )
    if cfg.vector_index_backend == "pgvector":
        from .vector_index.pgvector_index import PgVectorIndex

        return PgVectorIndex(
            dsn=cfg.pgvector_dsn,
            table_name=cfg.pgvector_table_name,
            embedding_dim=cfg.embedding_dim,
            max_batch_size=cfg.vector_upsert_batch_size,
        )
    if cfg.vector_index_backend == "milvus":
        from .vector_index.milvus_vector_index import MilvusVectorIndex

        return MilvusVectorIndex(
            host=cfg.milvus_host,
            port=cfg.milvus_port,
            collection_name=cfg.milvus_collection_name,
            embedding_dim=cfg.embedding_dim,
            max_batch_size=cfg.vector_upsert_batch_size,
            user=cfg.milvus_user,
            password=cfg.milvus_password,
        )
    raise ConfigurationError(f"Unsupported vector index backend: {cfg.vector_index_backend}")


def build_engine(cfg: Config) -> ReconciliationEngine:
    return ReconciliationEngine(
        catalog_source=build_catalog_source(cfg),
        reference_store=build_reference_store(cfg),
        embedding_service=build_embedding_service(cfg),
        vector_index=build_vector_index(cfg),
    )
