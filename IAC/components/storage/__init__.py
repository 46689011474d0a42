"""
Storage components for images and managed data stores.

Components:
- EcrRepositoryComponent: Private repository for the application image
- ElastiCacheRedisComponent: Optional managed Redis
- DocumentDbComponent: Optional managed MongoDB-compatible store
"""

from IAC.components.storage.ecr_repository import EcrRepositoryComponent, EcrRepositoryOutputs
from IAC.components.storage.elasticache_redis import ElastiCacheRedisComponent, RedisOutputs
from IAC.components.storage.documentdb import DocumentDbComponent, DocumentDbOutputs

__all__ = [
    "EcrRepositoryComponent",
    "EcrRepositoryOutputs",
    "ElastiCacheRedisComponent",
    "RedisOutputs",
    "DocumentDbComponent",
    "DocumentDbOutputs",
]
