# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-12
# Description: dependencies.py
# -----------------------------------------------------------------------------
from functools import lru_cache

from config.Config import Config
from services.HealthService import HealthService
from services.IngestService import IngestService
from services.SearchService import SearchService
from store.CouchbaseVectorCollection import CouchbaseVectorCollection


@lru_cache
def get_container():
    # built on first use so importing the app does not connect to the cluster
    from api.AppContainer import AppContainer
    return AppContainer()

def get_cfg() -> Config:
    return get_container().cfg

def get_health_service() -> HealthService:
    # use the singleton service from the container
    return get_container().health_service

def get_search_service() -> SearchService:
    return get_container().search_service

def get_ingest_service() -> IngestService:
    return get_container().ingest_service

def get_vector_collection() -> CouchbaseVectorCollection:
    return get_container().collection
