"""
Payload Uploader - per-request bucket creation and payload upload.

This package contains the complete function:
- core: Framework-agnostic pipeline, naming and payload transforms
- infrastructure: Storage backend (S3 via boto3, in-memory mock)
- api: FastAPI routes and dependencies
- config: Application configuration
- handler: AWS Lambda entrypoints
"""

__version__ = "0.1.0"
