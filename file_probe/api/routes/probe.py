from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from file_probe.api.dependencies import get_hashing_service, get_probe_service
from file_probe.schemas.report import (
    ChecksumRequest,
    ChecksumResponse,
    ChecksumResult,
    FileReport,
    ProbeRequest,
)
from file_probe.services.hashing_service import HashingService
from file_probe.services.probe_service import ProbeService

router = APIRouter(tags=["probe"])


@router.post("/probe", response_model=FileReport)
async def probe_path(
    payload: ProbeRequest,
    probe_service: ProbeService = Depends(get_probe_service),
):
    return await run_in_threadpool(probe_service.probe, payload.path)


@router.post("/checksums", response_model=ChecksumResponse)
async def compute_checksums(
    payload: ChecksumRequest,
    probe_service: ProbeService = Depends(get_probe_service),
    hashing_service: HashingService = Depends(get_hashing_service),
):
    for path in payload.paths:
        probe_service.ensure_allowed(path)

    checksums = await hashing_service.compute_many(payload.paths)
    return ChecksumResponse(
        results=[
            ChecksumResult(path=path, checksum=checksum, available=checksum is not None)
            for path, checksum in zip(payload.paths, checksums)
        ]
    )
