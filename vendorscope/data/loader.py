# loader.py
# =============================================================================
# 数据集加载器 / Dataset loader
#
# 职责 / Responsibilities:
#   - 并发拉取多个供应商数据源（asyncio.gather），延迟受最慢单源约束
#     / Fetch all sources concurrently; latency bounded by the slowest source
#   - 每个源返回带标签的 SourceResult（成功 + 数据 | 不可用 + 原因）
#     / Each source yields a tagged SourceResult (loaded | unavailable)
#   - 主数据源失败抛出 MandatorySourceFailure；可选源失败降级为空
#     / Mandatory failure raises; optional failures degrade to empty
#
# 数据源位置 / Source locations:
#   - http(s):// URL → httpx GET，响应体须为 JSON 数组
#     / http(s) URL fetched with httpx; body must be a JSON array
#   - 其他 → 本地文件路径 / anything else is a local file path
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

import httpx

from vendorscope.errors import MandatorySourceFailure, SourceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_FILES = (
    "synthetic_vendor_data.json",
    "vendor_dataset_500_1.json",
    "vendor_dataset_500_2.json",
)


@dataclass(frozen=True)
class SourceSpec:
    location: str
    mandatory: bool = False

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))


@dataclass(frozen=True)
class SourceResult:
    """单个数据源的加载结果。 / Tagged per-source load outcome.

    available=False 时 error 记录原因；records 为空元组。
    区分"源里没有供应商"和"源加载失败"。
    / Keeps "zero vendors" distinct from "source failed".
    """

    source: SourceSpec
    records: Tuple[Any, ...] = ()
    error: Optional[SourceUnavailable] = None

    @property
    def available(self) -> bool:
        return self.error is None


def default_sources(base: str) -> List[SourceSpec]:
    """当前策略：3 个固定数据源，第一个为必需。 / Three fixed sources, the first mandatory."""
    base = base.rstrip("/")
    return [
        SourceSpec(location=f"{base}/{name}", mandatory=(i == 0))
        for i, name in enumerate(DEFAULT_SOURCE_FILES)
    ]


def sources_from_locations(locations: Sequence[str]) -> List[SourceSpec]:
    """首个位置为必需，其余可选。 / First location mandatory, the rest optional."""
    return [
        SourceSpec(location=loc, mandatory=(i == 0))
        for i, loc in enumerate(locations)
    ]


class DatasetLoader:
    """并发加载供应商数据源。 / Loads vendor source documents concurrently."""

    def __init__(
        self,
        sources: Sequence[SourceSpec],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not sources:
            raise ValueError("DatasetLoader 至少需要一个数据源 / at least one source is required")
        self._sources = list(sources)
        self._timeout = timeout
        self._transport = transport

    @property
    def sources(self) -> List[SourceSpec]:
        return list(self._sources)

    async def load(self) -> List[SourceResult]:
        """拉取全部数据源，按源顺序返回。 / Fetch every source, results in source order.

        Raises:
            MandatorySourceFailure: 必需数据源失败。 / A mandatory source failed.
        """
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            results = await asyncio.gather(
                *(self._load_one(client, spec) for spec in self._sources)
            )

        for result in results:
            if result.available:
                continue
            if result.source.mandatory:
                logger.error("主数据源加载失败: %s", result.error)
                raise MandatorySourceFailure(
                    result.source.location, result.error.reason
                ) from result.error
            logger.warning("可选数据源不可用，按空处理: %s", result.error)

        total = sum(len(r.records) for r in results)
        logger.info(
            "数据集加载完成: %d 个源, %d 条原始记录 / loaded %d sources, %d raw records",
            len(results), total, len(results), total,
        )
        return list(results)

    async def _load_one(
        self, client: httpx.AsyncClient, spec: SourceSpec
    ) -> SourceResult:
        try:
            if spec.is_remote:
                payload = await self._fetch_remote(client, spec.location)
            else:
                # 阻塞读取放到线程中，本地源之间同样并发
                # / blocking reads run in a thread so local sources overlap too
                payload = await asyncio.to_thread(self._read_local, spec.location)
        except httpx.HTTPStatusError as e:
            return self._unavailable(spec, f"HTTP {e.response.status_code}")
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # InvalidURL 不是 RequestError 子类 / InvalidURL is not a RequestError
            return self._unavailable(spec, f"{type(e).__name__}: {e}")
        except (OSError, ValueError) as e:
            # json.JSONDecodeError 是 ValueError 子类 / JSONDecodeError subclasses ValueError
            return self._unavailable(spec, f"{type(e).__name__}: {e}")

        if not isinstance(payload, list):
            return self._unavailable(
                spec, f"expected JSON array, got {type(payload).__name__}"
            )
        return SourceResult(source=spec, records=tuple(payload))

    @staticmethod
    async def _fetch_remote(client: httpx.AsyncClient, url: str) -> Any:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _read_local(location: str) -> Any:
        with open(Path(location), "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _unavailable(spec: SourceSpec, reason: str) -> SourceResult:
        return SourceResult(
            source=spec, error=SourceUnavailable(spec.location, reason)
        )
