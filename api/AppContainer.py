# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: AppContainer.py
# -----------------------------------------------------------------------------
import settings
from config.Config import Config
from embedding.OpenAIEmbedder import OpenAIEmbedder
from index.IndexStrategy import IndexStrategy, QuantizedStrategy
from index.IndexStrategyRegistry import IndexStrategyRegistry
from records.Glossary import glossary_definition
from schema.SchemaReader import SchemaReader
from services.HealthService import HealthService
from services.IngestService import IngestService
from services.SearchService import SearchService
from store.CouchbaseNativeClient import CouchbaseNativeClient
from store.CouchbaseVectorCollection import CouchbaseVectorCollection
from utility.logging_utils import get_class_logger


def configured_strategy(registry: IndexStrategyRegistry) -> IndexStrategy:
    """CBV_QUANTIZATION selects a quantized index; otherwise the registry default (graph)."""
    if settings.QUANTIZATION:
        return QuantizedStrategy(quantization=settings.QUANTIZATION)
    return registry.default_strategy()


class AppContainer:
    """
    Owns heavy object instantiation and application wiring.
    Singleton instances are provided via FastAPI dependencies.
    """

    def __init__(self) -> None:
        self.logger = get_class_logger(self.__class__)

        # Configuration
        self.cfg = Config.from_env()
        self.logger.info("Starting with config %s", self.cfg.summary())

        # Core infrastructure
        self.client = CouchbaseNativeClient(cfg=self.cfg)
        self.embedder = OpenAIEmbedder(cfg=self.cfg, dimensions=settings.VECTOR_DIMENSIONS)

        # Record type + index strategy
        self.schema = SchemaReader().read(glossary_definition())
        self.registry = IndexStrategyRegistry()
        self.strategy = configured_strategy(self.registry)
        self.registry.validate(self.schema, self.strategy)

        self.collection = CouchbaseVectorCollection(
            self.client,
            self.cfg.keyspace,
            self.schema,
            strategy=self.strategy,
            registry=self.registry,
        )

        self.search_service = SearchService(collection=self.collection, embedder=self.embedder)
        self.ingest_service = IngestService(
            collection=self.collection,
            embedder=self.embedder,
            text_property="definition",
        )
        self.health_service = HealthService(checks={
            "couchbase": self.client.test_connection,
            "embedding": lambda: len(self.embedder.embed("health check")) == settings.VECTOR_DIMENSIONS,
        }, keyspace=str(self.cfg.keyspace))
