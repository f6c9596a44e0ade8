"""
ASGI config for tasksync.

Runs under a regular ASGI server (Uvicorn, Daphne) or on AWS Lambda
through Mangum.
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Initialize Django at module load so Lambda pays the cost at container
# startup instead of on the first request.
from django.core.asgi import get_asgi_application

application = get_asgi_application()


_lambda_handler = None


def lambda_handler(event, context):
    """
    AWS Lambda entry point for HTTP requests.

    lambda_handlers.api_handler wraps this with error reporting.
    """
    global _lambda_handler
    if _lambda_handler is None:
        from mangum import Mangum
        _lambda_handler = Mangum(application, lifespan="off")
    return _lambda_handler(event, context)
