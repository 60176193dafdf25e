"""
Cover Search API Routes

Endpoints for finding catalog covers similar to an uploaded or linked image.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from coverscout.api.dependencies import Settings, get_expander, get_pipeline, get_settings
from coverscout.api.middleware.error_handler import PayloadTooLargeError, ValidationError
from coverscout.api.schemas import (
    ErrorResponse,
    SimilaritySearchOptions,
    SimilaritySearchResponse,
    UrlSimilaritySearchRequest,
    VariationsResponse,
)


router = APIRouter(prefix="/covers", tags=["covers"])


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    422: {"model": ErrorResponse, "description": "Target image could not be hashed"},
    503: {"model": ErrorResponse, "description": "Catalog not configured"},
}


async def _run_search(
    pipeline,
    settings: Settings,
    options: SimilaritySearchOptions,
    image_bytes: Optional[bytes] = None,
    image_url: Optional[str] = None,
) -> SimilaritySearchResponse:
    result = await pipeline.find_similar_covers(
        image_bytes=image_bytes,
        image_url=image_url,
        image_name=options.image_name,
        fallback_query=options.query or settings.default_fallback_query,
        max_results=(
            options.max_results
            if options.max_results is not None
            else settings.default_max_results
        ),
        similarity_threshold=(
            options.similarity_threshold
            if options.similarity_threshold is not None
            else settings.default_similarity_threshold
        ),
        top_n=options.top_n if options.top_n is not None else settings.default_top_n,
    )

    logger.info(
        f"Similarity search '{result.search_query}' via {result.search_method.value}: "
        f"{len(result.matches)} matches of {result.total_compared} compared"
    )
    return SimilaritySearchResponse.from_result(result)


@router.post(
    "/similar",
    response_model=SimilaritySearchResponse,
    responses={
        **ERROR_RESPONSES,
        413: {"model": ErrorResponse, "description": "Image too large"},
    },
)
async def find_similar_covers(
    file: UploadFile = File(..., description="Image of the book cover"),
    image_name: Optional[str] = Form(None),
    query: Optional[str] = Form(None),
    max_results: Optional[int] = Form(None),
    similarity_threshold: Optional[float] = Form(None),
    top_n: Optional[int] = Form(None),
    pipeline=Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Find catalog covers similar to an uploaded image.

    The filename (or ``image_name``) is used to search by title first.
    """
    if file.content_type and file.content_type not in settings.allowed_image_type_set:
        raise ValidationError(
            "Unsupported image type",
            detail=f"Got {file.content_type}, expected one of {sorted(settings.allowed_image_type_set)}",
        )

    image_bytes = await file.read()
    if not image_bytes:
        raise ValidationError("Empty upload")
    if len(image_bytes) > settings.max_upload_size_mb * 1024 * 1024:
        raise PayloadTooLargeError(settings.max_upload_size_mb)

    try:
        options = SimilaritySearchOptions(
            image_name=image_name if image_name is not None else (file.filename or ""),
            query=query or None,
            max_results=max_results,
            similarity_threshold=similarity_threshold,
            top_n=top_n,
        )
    except PydanticValidationError as e:
        raise ValidationError("Invalid search options", detail=str(e)) from e

    return await _run_search(pipeline, settings, options, image_bytes=image_bytes)


@router.post(
    "/similar/by-url",
    response_model=SimilaritySearchResponse,
    responses=ERROR_RESPONSES,
)
async def find_similar_covers_by_url(
    request: UrlSimilaritySearchRequest,
    pipeline=Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """Find catalog covers similar to an image reachable by URL."""
    return await _run_search(pipeline, settings, request, image_url=request.image_url)


@router.get("/variations", response_model=VariationsResponse)
async def get_title_variations(
    title: str = Query(..., min_length=1, max_length=500),
    translate: bool = Query(False, description="Include machine translations"),
    expander=Depends(get_expander),
):
    """Show the search variations a title expands into."""
    queries = await expander.expand(title, max_languages=None if translate else 0)

    return VariationsResponse(
        title=title,
        normalized=expander.normalizer.normalize(title),
        variations=[{"text": q.text, "source": q.source.value} for q in queries],
    )
