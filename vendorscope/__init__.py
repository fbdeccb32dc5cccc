# vendorscope/__init__.py
# =============================================================================
# vendorscope — 供应商采购分析与 AI 合规评估。 / Vendor procurement analytics & AI compliance analysis.
# =============================================================================

"""vendorscope — 供应商采购分析与 AI 合规评估。 / Vendor procurement analytics & AI compliance analysis."""

from vendorscope.api.dashboard import VendorDashboard

__version__ = "0.1.0"
__all__ = ["VendorDashboard", "__version__"]
