"""
Edge components for TLS and DNS.

Components:
- CertificateComponent: ACM certificate with Route53 DNS validation
- Route53Component: Alias records from the public hosts to the ALB
"""

from IAC.components.edge.certificate import CertificateComponent, CertificateOutputs
from IAC.components.edge.route53 import Route53Component, Route53Outputs

__all__ = [
    "CertificateComponent",
    "CertificateOutputs",
    "Route53Component",
    "Route53Outputs",
]
