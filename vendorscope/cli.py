"""vendorscope 命令行入口。 / Command-line entry point.

    python -m vendorscope summary --source data/a.json --source data/b.json
    python -m vendorscope search --location wyoming --max-price 35
    python -m vendorscope analyze "best paint vendors in Wyoming"
    python -m vendorscope compliance "supplier risk review"
    python -m vendorscope report "best paint vendors in Wyoming"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, List, Optional, Sequence

from vendorscope.analytics.filtering import VendorFilter
from vendorscope.api.dashboard import VendorDashboard
from vendorscope.config import ConfigLoader
from vendorscope.data.loader import sources_from_locations
from vendorscope.errors import VendorScopeError

logger = logging.getLogger(__name__)

# 需要分析服务的子命令 / subcommands that call the analysis service
AI_COMMANDS = ("analyze", "compliance", "report")


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vendorscope",
        description="Vendor procurement analytics and AI-assisted compliance analysis.",
    )
    parser.add_argument("--config", help="YAML 配置文件路径 / path to a YAML config file")
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        help="数据源 URL 或文件路径，可重复；首个为必需 / dataset URL or path, repeatable; first is mandatory",
    )
    parser.add_argument("--seed", type=int, help="enrichment 随机种子 / enrichment seed")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("summary", help="汇总统计 / analytics summary")

    search = sub.add_parser("search", help="过滤供应商 / filter vendors")
    search.add_argument("--term", default="")
    search.add_argument("--min-rating", type=float)
    search.add_argument("--max-price", type=float)
    search.add_argument("--location", default="")
    search.add_argument("--compliant-only", action="store_true")

    for name, help_text in (
        ("analyze", "AI 查询分析 / AI analysis for a query"),
        ("compliance", "AI 合规报告 / AI compliance report"),
        ("report", "最终分析报告 / final analysis report"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("query")

    return parser


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def _run(args: argparse.Namespace) -> int:
    loader = ConfigLoader(config_file=args.config)
    config = loader.resolve()
    if args.source:
        config.sources = sources_from_locations(args.source)
    if args.seed is not None:
        config.enrichment_seed = args.seed
    logger.debug("配置摘要: %s", loader.summary())

    needs_gateway = args.command in AI_COMMANDS
    if not needs_gateway:
        config.gateway = None
    # 凭证缺失在拉取数据之前即失败 / a missing credential fails before any fetch
    dashboard = VendorDashboard(config, require_gateway=needs_gateway)
    analytics = await dashboard.load()

    if args.command == "summary":
        _emit(analytics.to_dict())
    elif args.command == "search":
        criteria = VendorFilter(
            search_term=args.term,
            min_rating=args.min_rating,
            max_price=args.max_price,
            location=args.location,
            compliant_only=args.compliant_only,
        )
        _emit([v.to_dict() for v in dashboard.search(criteria)])
    elif args.command == "analyze":
        result = await dashboard.analyze(args.query)
        _emit(result.to_dict() if result else None)
    elif args.command == "compliance":
        report = await dashboard.compliance_report(args.query)
        _emit(report.to_dict() if report else None)
    elif args.command == "report":
        final = await dashboard.final_report(args.query)
        _emit(final.to_dict() if final else None)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    try:
        return asyncio.run(_run(args))
    except VendorScopeError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
