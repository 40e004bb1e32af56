"""
Core upload logic.

This module is framework-agnostic - it doesn't import FastAPI, boto3 or
the Lambda runtime. The storage backend is injected, so the pipeline can
be tested against an in-memory client.
"""
