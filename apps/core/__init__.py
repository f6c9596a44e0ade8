"""
Core app - Shared abstractions.

Provides the platform-agnostic JobService used to run sync cycles outside
the request cycle:
- Local development (in-process execution)
- Celery + Redis
- AWS Lambda + SQS
"""
