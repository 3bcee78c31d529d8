"""FastAPI web application for pkgbump."""

from typing import Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel

from pkgbump.check import check_manifest
from pkgbump.config import get_settings
from pkgbump.detect import identify
from pkgbump.errors import ManifestError
from pkgbump.parse_node import parse_package_json
from pkgbump.registry import NpmRegistryClient
from pkgbump.resolve import Resolver

app = FastAPI(
    title="pkgbump",
    description="Check package.json for outdated dependencies",
    version="0.1.0",
)


class CheckRequest(BaseModel):
    """Request model for checking a manifest."""
    content: str
    filename: Optional[str] = None


class CheckResponse(BaseModel):
    """Response model for a manifest check."""
    original_content: str
    updated_content: str
    diff: str
    changes: list[dict]
    notes: list[str]
    has_changes: bool
    ecosystem: str


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/api/check", response_model=CheckResponse)
async def check_dependencies(request: CheckRequest):
    """Check dependencies from package.json text. Never writes anything."""
    content = request.content
    if not content.strip():
        raise HTTPException(status_code=400, detail="No content provided")

    ecosystem = identify(content, request.filename)
    if ecosystem != "node":
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported ecosystem: {ecosystem}. Only package.json is supported.",
        )

    try:
        manifest = parse_package_json(content)
    except ManifestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    settings = get_settings()
    resolver = Resolver(
        NpmRegistryClient.from_settings(settings),
        max_concurrency=settings.max_concurrency,
    )
    report = await check_manifest(manifest, resolver, request.filename or "package.json")

    return CheckResponse(
        original_content=report.original_content,
        updated_content=report.updated_content,
        diff=report.diff,
        changes=[result.to_dict() for result in report.changes],
        notes=report.notes,
        has_changes=report.has_changes,
        ecosystem=ecosystem,
    )


@app.post("/api/upload", response_model=CheckResponse)
async def upload_file(file: UploadFile = File(...)):
    """Upload and check a package.json file."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    raw = await file.read()
    try:
        text_content = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be valid UTF-8 text")

    return await check_dependencies(CheckRequest(content=text_content, filename=file.filename))
