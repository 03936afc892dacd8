"""Pydantic schemas for bucket and file API endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BucketCreate(BaseModel):
    """Request body for creating a bucket."""

    bucket_name: str = Field(max_length=63)


class BucketOut(BaseModel):
    bucket_name: str


class FileUpload(BaseModel):
    """Request body for uploading a base64 encoded file."""

    filename: str = Field(max_length=1024)
    content_type: str = Field(max_length=255)
    base64_payload: str


class FileUploadOut(BaseModel):
    """Response model for a completed upload."""

    bucket_name: str
    filename: str
    location: str


class FileDelete(BaseModel):
    """Request body for deleting files."""

    filenames: list[str] = Field(default_factory=list)


class FileDeleteOut(BaseModel):
    """Response model listing the keys that were deleted."""

    bucket_name: str
    deleted: list[str]
