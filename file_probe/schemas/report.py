from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

CHECKSUM_UNAVAILABLE = "Unavailable"

ReportType = Literal[
    "Directory",
    "Image",
    "Video",
    "Audio",
    "Text",
    "Document",
    "Archive",
    "Binary",
    "Other",
    "Symlink",
    "Broken Symlink",
    "Unknown",
]


class SymlinkInfo(BaseModel):
    is_symlink: bool = False
    target: str | None = None
    error: str | None = None


class OwnershipInfo(BaseModel):
    owner: str
    group: str


class TimeInfo(BaseModel):
    last_access: datetime
    last_modify: datetime
    last_change: datetime


class FileDetail(BaseModel):
    size_bytes: int = 0
    size_human: str = "0 B"
    checksum: str = Field(CHECKSUM_UNAVAILABLE, description="Lowercase hex SHA-256 or 'Unavailable'")


class DirectoryDetail(BaseModel):
    total_size_bytes: int = 0
    total_size_human: str = "0 B"
    file_count: int = 0
    directory_count: int = 0


class FileReport(BaseModel):
    input_path: str
    absolute_path: str
    target_exists: bool = False
    type: ReportType = "Unknown"
    symlink: SymlinkInfo = Field(default_factory=SymlinkInfo)
    permissions: str | None = None
    ownership: OwnershipInfo | None = None
    timestamps: TimeInfo | None = None
    file_detail: FileDetail | None = None
    directory_detail: DirectoryDetail | None = None
    warnings: list[str] = Field(default_factory=list)


def _reject_nul(path: str) -> str:
    if "\x00" in path:
        raise ValueError("path must not contain NUL bytes")
    return path


class ProbeRequest(BaseModel):
    path: str = Field(..., min_length=1)

    @field_validator("path")
    @classmethod
    def no_nul_bytes(cls, value: str) -> str:
        return _reject_nul(value)


class ChecksumRequest(BaseModel):
    paths: list[str] = Field(..., min_length=1)

    @field_validator("paths")
    @classmethod
    def no_nul_bytes(cls, value: list[str]) -> list[str]:
        return [_reject_nul(path) for path in value]


class ChecksumResult(BaseModel):
    path: str
    checksum: str | None
    available: bool


class ChecksumResponse(BaseModel):
    results: list[ChecksumResult]
