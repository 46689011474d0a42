"""
Deployment acceptance checks.

HTTP health, TCP reachability, DNS and TLS smoke checks gathered into a
single acceptance report.
"""

from deployment.verification.report import AcceptanceReport, CheckResult

__all__ = ["AcceptanceReport", "CheckResult"]
