"""
Reviews views.

Health check endpoint for monitoring and load balancer checks.
"""

from django.db import connection
from django.http import JsonResponse

from reviews.models import Product
from reviews.choices import ProductStatus


def health_check(request):
    """
    Health check endpoint for the CMS backend.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - published_products: count of published products (null on error)

    Returns:
        JsonResponse: HTTP 200 for healthy, HTTP 503 for unhealthy
    """
    status = "healthy"
    http_status = 200

    database_status = "connected"
    published_products = None
    try:
        connection.ensure_connection()
        published_products = Product.objects.filter(status=ProductStatus.PUBLISHED).count()
    except Exception:
        database_status = "error"
        status = "unhealthy"
        http_status = 503

    return JsonResponse(
        {
            "status": status,
            "database": database_status,
            "published_products": published_products,
        },
        status=http_status,
    )
