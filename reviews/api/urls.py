"""
Product publication API URL configuration.

Endpoints:
- GET/PATCH /api/v1/products/<id>/
- POST      /api/v1/products/<id>/preflight/
"""

from django.urls import path

from reviews.api.views import product_detail, product_preflight

app_name = "reviews_api"

urlpatterns = [
    path("products/<int:pk>/", product_detail, name="product_detail"),
    path("products/<int:pk>/preflight/", product_preflight, name="product_preflight"),
]
