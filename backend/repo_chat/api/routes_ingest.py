"""Repository ingest and clone routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from repo_chat.api.dependencies import AppContext, get_context
from repo_chat.ingest.clone import clone_to_disk_async
from repo_chat.models.dto import CloneResponse, IngestResponse, RepoUrlRequest

router = APIRouter()


@router.post("/process", response_model=IngestResponse, summary="Ingest a GitHub repository")
async def process_repository(
    request: RepoUrlRequest,
    context: AppContext = Depends(get_context),
) -> IngestResponse:
    summary = await context.ingestor().ingest(request.url)
    return IngestResponse(
        message="Repository processed successfully",
        repo_name=summary.repo_name,
        documents_processed=summary.documents_processed,
    )


@router.post("/download", response_model=CloneResponse, summary="Clone a repository to local disk")
async def download_repository(
    request: RepoUrlRequest,
    context: AppContext = Depends(get_context),
) -> CloneResponse:
    repo_name = await clone_to_disk_async(request.url, context.settings.clone_dir)
    return CloneResponse(message="Repository downloaded successfully", repo_name=repo_name)
