"""
Worker Pool Module
==================

Bounded-concurrency per-scene processing.
"""

from smart_thumbnail.pool.worker_pool import FeatureWorkerPool, PoolMetrics

__all__ = [
    "FeatureWorkerPool",
    "PoolMetrics",
]
