"""
Pulumi component resources for PipesHub infrastructure.

Each submodule provides reusable ComponentResource classes:
- networking: VPC, subnets, NAT, security groups
- security: IAM role, Secrets Manager
- storage: ECR, ElastiCache, DocumentDB
- compute: Docker host, ALB
- edge: ACM certificate, Route53 records
- monitoring: CloudWatch alarms
"""
