"""
Core deployment model.

Topology, environment contract, artifact rendering, OAuth conventions,
expected DNS records, runbook ordering and alert evaluation.
"""
