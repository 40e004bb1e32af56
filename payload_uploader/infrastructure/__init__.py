"""
Infrastructure layer - external service integrations.

- storage: Object storage (S3 via boto3, plus an in-memory mock)
"""
