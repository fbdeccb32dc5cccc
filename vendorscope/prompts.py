"""vendorscope 集中式提示词管理模块。 / Centralized prompt templates.

每个提示词均标注调用位置和用途。 / Each template notes where it is used.

提示词分类 / Categories:
1. 单次查询分析 (analyze_vendors)
2. 合规报告 (generate_compliance_report)
"""

# =============================================================================
# 单次查询分析 / Per-query analysis
# =============================================================================

# 调用位置: gateway/analysis.py — AnalysisGateway.analyze_vendors()
ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert AI procurement analyst specializing in vendor "
    "evaluation and compliance."
)

# 调用位置: gateway/analysis.py — AnalysisGateway.analyze_vendors()
# 用途: vendors_json 已截断到 analysis_sample_cap 条 / vendors_json is already capped
ANALYSIS_USER_PROMPT = (
    "As an AI procurement analyst, analyze the following vendor data for the "
    "query: \"{query}\"\n\n"
    "Vendor Data: {vendors_json}\n\n"
    "Provide a comprehensive analysis including:\n"
    "1. Compliance assessment for each vendor\n"
    "2. Environmental impact scoring\n"
    "3. Cost-benefit analysis\n"
    "4. Top 3 recommendations with reasoning\n"
    "5. Risk assessment\n\n"
    "Format your response as JSON with the following structure:\n"
    "{{\n"
    "  \"analysis\": \"detailed analysis text\",\n"
    "  \"compliance\": [{{\"vendor\": \"name\", \"score\": 0-100, "
    "\"issues\": [\"list\"], \"carbon_score\": 0-100}}],\n"
    "  \"recommendations\": [\"top 3 vendor recommendations with reasoning\"],\n"
    "  \"environmentalImpact\": estimated_kg_co2,\n"
    "  \"cost\": estimated_cost_usd\n"
    "}}\n"
)

# =============================================================================
# 合规报告 / Compliance report
# =============================================================================

# 调用位置: gateway/analysis.py — AnalysisGateway.generate_compliance_report()
REPORT_SYSTEM_PROMPT = (
    "You are a compliance analyst specializing in vendor risk assessment."
)

# 调用位置: gateway/analysis.py — AnalysisGateway.generate_compliance_report()
REPORT_USER_PROMPT = (
    "Analyze this vendor dataset for compliance and generate a comprehensive "
    "report:\n\n"
    "Query: \"{query}\"\n"
    "Vendors: {vendors_json}\n\n"
    "Generate a compliance report with:\n"
    "1. Overall compliance summary\n"
    "2. Geographic distribution analysis\n"
    "3. Risk factor identification\n"
    "4. Compliance rate calculation\n"
    "5. Top vendor locations with percentages\n\n"
    "Return as JSON with the following structure:\n"
    "{{\n"
    "  \"summary\": \"overall compliance summary\",\n"
    "  \"totalVendors\": number,\n"
    "  \"compliantVendors\": number,\n"
    "  \"complianceRate\": percentage,\n"
    "  \"topLocations\": [{{\"location\": \"name\", \"count\": number, "
    "\"percentage\": number}}],\n"
    "  \"riskFactors\": [\"list\"]\n"
    "}}\n"
)

# 调用位置: gateway/analysis.py — 合规报告降级路径 / compliance-report fallback
REPORT_FALLBACK_SUMMARY = (
    "Analyzed {total} vendors with {compliant} meeting compliance standards."
)
