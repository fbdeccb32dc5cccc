# analytics/__init__.py
# 汇总统计与过滤 / Aggregation & filtering

from vendorscope.analytics.aggregator import rank_locations, summarize_vendors
from vendorscope.analytics.filtering import VendorFilter, filter_vendors, parse_price

__all__ = [
    "VendorFilter",
    "filter_vendors",
    "parse_price",
    "rank_locations",
    "summarize_vendors",
]
