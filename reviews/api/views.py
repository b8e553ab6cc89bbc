"""
Product publication API views.

Endpoints:
- GET   /api/v1/products/<id>/            Product with legal copy (liability shield applied)
- PATCH /api/v1/products/<id>/            Update through the save pipeline
- POST  /api/v1/products/<id>/preflight/  Run every publication gate without saving

Rejected saves return HTTP 400 with every error string so the editor can
fix them in one pass.
"""

import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from reviews.api.serializers import ProductReadSerializer, ProductWriteSerializer
from reviews.models import Product
from reviews.rules.liability_shield import apply_liability_shield
from reviews.services.product_saver import ProductSaveService, PublicationRejected

logger = logging.getLogger(__name__)

FULL_ANALYSIS_PERMISSION = "reviews.view_full_analysis"


def _rejection_response(exc: PublicationRejected) -> Response:
    return Response(
        {
            "errors": exc.errors,
            "message": str(exc),
            "stage": exc.stage,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def _can_view_full_analysis(user) -> bool:
    return bool(user and user.is_authenticated and user.has_perm(FULL_ANALYSIS_PERMISSION))


@extend_schema(
    tags=["Products"],
    methods=["GET"],
    summary="Get product",
    responses={200: ProductReadSerializer},
)
@extend_schema(
    tags=["Products"],
    methods=["PATCH"],
    summary="Update product",
    description="""
    Partially update a product. The save runs the publication rule pipeline:
    detection classification, conflict detection, override audit, legal-defense
    gate (FLAGGED publishes) and prohibited-term lint. A rejected save changes
    nothing and returns every error.
    """,
    request=ProductWriteSerializer,
    responses={200: ProductReadSerializer},
)
@api_view(["GET", "PATCH"])
@permission_classes([IsAuthenticatedOrReadOnly])
def product_detail(request, pk):
    product = get_object_or_404(Product, pk=pk)

    if request.method == "GET":
        data = ProductReadSerializer(product).data
        return Response(apply_liability_shield(data, _can_view_full_analysis(request.user)))

    serializer = ProductWriteSerializer(
        product,
        data=request.data,
        partial=True,
        context={"request": request},
    )
    serializer.is_valid(raise_exception=True)

    try:
        serializer.save()
    except PublicationRejected as e:
        logger.info(f"Product {pk} update rejected by {request.user}: {len(e.errors)} error(s)")
        return _rejection_response(e)

    product.refresh_from_db()
    return Response(ProductReadSerializer(product).data)


@extend_schema(
    tags=["Products"],
    summary="Pre-flight publication check",
    description="""
    Evaluate the stored product, merged with any fields in the request body,
    as if it were being published. Nothing is saved and no audit entries are
    written.
    """,
    request=ProductWriteSerializer,
    responses={
        200: {
            "description": "Pre-flight result",
            "type": "object",
            "properties": {
                "can_publish": {"type": "boolean"},
                "errors": {"type": "array", "items": {"type": "string"}},
                "message": {"type": "string"},
                "stage": {"type": "string"},
                "conflicts": {"type": "array", "items": {"type": "object"}},
                "detections": {"type": "array", "items": {"type": "object"}},
            },
        },
    },
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def product_preflight(request, pk):
    product = get_object_or_404(Product, pk=pk)

    serializer = ProductWriteSerializer(
        product,
        data=request.data,
        partial=True,
        context={"request": request},
    )
    serializer.is_valid(raise_exception=True)
    serializer.assign(product, serializer.validated_data)

    outcome = ProductSaveService().preflight(product, user=request.user)

    return Response({
        "can_publish": outcome.accepted,
        "errors": outcome.errors,
        "message": outcome.error_message,
        "stage": outcome.stage,
        "conflicts": outcome.conflicts,
        "detections": outcome.evaluated_document.get("detections", []),
    })
