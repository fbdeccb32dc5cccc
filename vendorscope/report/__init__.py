from vendorscope.report.composer import bucket_compliance_score, compose_final_report

__all__ = ["bucket_compliance_score", "compose_final_report"]
