# gateway/__init__.py
# 外部分析服务边界 / External analysis service boundary

from vendorscope.gateway.analysis import AnalysisGateway

__all__ = ["AnalysisGateway"]
