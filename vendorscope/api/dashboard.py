# dashboard.py
# =============================================================================
# 公共 API — 供应商看板会话。 / Public API — vendor dashboard session.
#
# 编排 Loader → Normalizer → {Aggregator, Filter, Gateway} → Composer。
# 会话状态仅存于内存；重新加载时整体替换集合，读者不会看到半更新的状态。
# 并发的重复调用不去重，后完成者覆盖先完成者（last-write-wins）。
# / Orchestrates the pipeline. State is in-memory only and the collection is
#   replaced wholesale on reload. Concurrent re-invocations are last-write-wins.
# =============================================================================

"""公共 API — 供应商看板会话。"""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Tuple

from vendorscope.analytics.aggregator import summarize_vendors
from vendorscope.analytics.filtering import VendorFilter, filter_vendors
from vendorscope.config import DashboardConfig, GatewayConfig
from vendorscope.data.enrichment import EnrichmentPolicy, SeededEnrichmentPolicy
from vendorscope.data.loader import DatasetLoader, SourceResult
from vendorscope.data.normalizer import normalize_vendors
from vendorscope.errors import ConfigurationError, VendorScopeError
from vendorscope.gateway.analysis import AnalysisGateway
from vendorscope.primitives.models import (
    AnalysisResult,
    AnalyticsSummary,
    ComplianceReport,
    FinalReport,
    VendorRecord,
)
from vendorscope.report.composer import compose_final_report

logger = logging.getLogger(__name__)


class VendorDashboard:
    """单个用户会话的看板状态与操作。 / Dashboard state and operations for one session.

    gateway 未显式传入时由 config.gateway 构造；凭证缺失在构造时即抛出
    ConfigurationError。config.gateway 为 None 时 AI 分析不可用；
    require_gateway=True 时则同样在构造时（加载数据之前）抛出。
    / When no gateway is passed one is built from config.gateway, so a missing
    credential raises ConfigurationError at construction. With
    config.gateway=None AI analysis is disabled, unless require_gateway is
    set: then the missing credential is fatal here, before any data is loaded.
    """

    def __init__(
        self,
        config: DashboardConfig,
        gateway: Optional[AnalysisGateway] = None,
        loader: Optional[DatasetLoader] = None,
        policy: Optional[EnrichmentPolicy] = None,
        require_gateway: bool = False,
    ):
        self._config = config
        if gateway is None and (config.gateway is not None or require_gateway):
            # 无 gateway 配置时以空配置构造，凭证缺失在此抛出
            # / an empty config raises the missing-credential error here
            gateway = AnalysisGateway.from_config(
                config.gateway or GatewayConfig(), top_n=config.top_n
            )
        self._gateway = gateway
        self._loader = loader
        self._policy = policy or SeededEnrichmentPolicy(seed=config.enrichment_seed)

        self.vendors: Tuple[VendorRecord, ...] = ()
        self.analytics: Optional[AnalyticsSummary] = None
        self.source_results: List[SourceResult] = []
        self.dropped: int = 0
        self.last_error: Optional[str] = None

    @property
    def has_gateway(self) -> bool:
        return self._gateway is not None

    def _get_loader(self) -> DatasetLoader:
        if self._loader is None:
            if not self._config.sources:
                raise ConfigurationError(
                    "未配置数据源 / no dataset sources configured"
                )
            self._loader = DatasetLoader(
                self._config.sources, timeout=self._config.timeout
            )
        return self._loader

    def _require_gateway(self) -> AnalysisGateway:
        if self._gateway is None:
            raise ConfigurationError(
                "未配置分析服务 / analysis gateway is not configured"
            )
        return self._gateway

    async def load(self) -> AnalyticsSummary:
        """执行一轮完整加载并整体替换会话数据。 / Run one load cycle and replace session data.

        Raises:
            MandatorySourceFailure: 主数据源失败；此前的数据保持不变。
                / Primary source failed; previous data is kept.
        """
        self.last_error = None
        try:
            results = await self._get_loader().load()
        except VendorScopeError as e:
            self.last_error = str(e)
            raise

        normalized = normalize_vendors((r.records for r in results), self._policy)
        analytics = summarize_vendors(normalized.vendors, top_n=self._config.top_n)

        self.source_results = results
        self.vendors = normalized.vendors
        self.dropped = normalized.dropped
        self.analytics = analytics
        logger.info(
            "看板加载完成: %d 条供应商, 丢弃 %d 条",
            analytics.total_vendors,
            normalized.dropped,
        )
        return analytics

    async def refetch(self) -> AnalyticsSummary:
        return await self.load()

    def search(self, criteria: Optional[VendorFilter] = None) -> List[VendorRecord]:
        return filter_vendors(self.vendors, criteria)

    async def analyze(self, query: str) -> Optional[AnalysisResult]:
        """无已加载供应商时返回 None。 / Returns None when nothing is loaded.

        Raises:
            TransportFailure / ConfigurationError: 记录到 last_error 后外抛。
        """
        if not self.vendors:
            return None
        try:
            return await self._require_gateway().analyze_vendors(query, self.vendors)
        except VendorScopeError as e:
            self.last_error = str(e)
            raise

    async def compliance_report(self, query: str) -> Optional[ComplianceReport]:
        if not self.vendors:
            return None
        try:
            return await self._require_gateway().generate_compliance_report(
                self.vendors, query
            )
        except VendorScopeError as e:
            self.last_error = str(e)
            raise

    async def final_report(self, query: str) -> Optional[FinalReport]:
        """分析并组装最终报告，runtime 为本次分析的墙钟耗时。

        / Analyze and compose the final report; runtime is this run's wall time.
        """
        started = time.perf_counter()
        analysis = await self.analyze(query)
        if analysis is None:
            return None
        elapsed = round(time.perf_counter() - started, 1)
        return compose_final_report(
            query,
            analysis,
            self.analytics or summarize_vendors(self.vendors, self._config.top_n),
            vendors=self.vendors,
            runtime_seconds=elapsed,
        )

    def reset(self) -> None:
        self.vendors = ()
        self.analytics = None
        self.source_results = []
        self.dropped = 0
        self.last_error = None
