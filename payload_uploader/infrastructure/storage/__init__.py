"""
Object storage integration for per-request buckets.

Supports S3 and S3-compatible endpoints via boto3.
Includes mock mode for local development without credentials.
"""
