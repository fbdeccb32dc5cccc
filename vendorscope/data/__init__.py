# data/__init__.py
# 数据集加载、规范化与 enrichment / Dataset loading, normalization & enrichment

from vendorscope.data.enrichment import Enrichment, EnrichmentPolicy, SeededEnrichmentPolicy
from vendorscope.data.loader import DatasetLoader, SourceResult, SourceSpec, default_sources
from vendorscope.data.normalizer import NormalizationResult, normalize_vendors

__all__ = [
    "DatasetLoader",
    "Enrichment",
    "EnrichmentPolicy",
    "NormalizationResult",
    "SeededEnrichmentPolicy",
    "SourceResult",
    "SourceSpec",
    "default_sources",
    "normalize_vendors",
]
