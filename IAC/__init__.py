"""
Pulumi infrastructure-as-code for PipesHub AI on AWS.

This package defines AWS infrastructure including:
- VPC with public, application and data subnets behind a NAT gateway
- Docker host (EC2) running the application and the self-hosted data stores
- Optional ElastiCache Redis and DocumentDB in place of their containers
- ECR repository for the application image
- Secrets Manager entries for the application secrets
- Public ALB with ACM certificate and Route53 records
- CloudWatch alarms for restart count, memory and consumer lag
"""
