"""
Orchestrators for the Seawater risk engine.

Request-level flows built on the engine features: the single-property
risk lookup and the bulk batch orchestrator.
"""

from .property_risk import PropertyRiskService
from .bulk_orchestrator import BulkBatchOrchestrator

__all__ = ["PropertyRiskService", "BulkBatchOrchestrator"]
