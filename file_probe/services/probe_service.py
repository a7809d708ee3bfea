from __future__ import annotations

import grp
import os
import pwd
import stat
from datetime import datetime, timezone
from pathlib import Path

from file_probe.core.config import settings
from file_probe.core.logger import get_logger
from file_probe.schemas.report import (
    CHECKSUM_UNAVAILABLE,
    DirectoryDetail,
    FileDetail,
    FileReport,
    OwnershipInfo,
    ReportType,
    TimeInfo,
)
from file_probe.services.hashing_service import HashingService

logger = get_logger(component="ProbeService")

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")
_TEXT_PROBE_LENGTH = 512
_NON_TEXT_RATIO = 0.3
_TEXT_BYTES = frozenset(range(0x20, 0x7F)) | frozenset(b"\t\n\v\f\r")

_EXTENSION_TYPES: dict[str, ReportType] = {
    **dict.fromkeys((".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff"), "Image"),
    **dict.fromkeys((".mp4", ".avi", ".mkv", ".mov", ".flv"), "Video"),
    **dict.fromkeys((".mp3", ".wav", ".flac", ".aac", ".ogg"), "Audio"),
    **dict.fromkeys(
        (".txt", ".csv", ".log", ".json", ".xml", ".html", ".htm", ".css", ".js", ".md", ".ini"), "Text"
    ),
    **dict.fromkeys((".pdf", ".doc", ".docx", ".odt", ".rtf", ".ppt", ".pptx"), "Document"),
    **dict.fromkeys((".zip", ".rar", ".7z", ".tar", ".gz"), "Archive"),
}


class PathNotAllowedError(Exception):
    """Raised when a probe targets a path outside the configured probe root."""


def format_size(size: int) -> str:
    value = float(size)
    unit = 0
    while value >= 1024.0 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024.0
        unit += 1
    if unit == 0:
        return f"{size} B"
    return f"{value:.2f} {_SIZE_UNITS[unit]}"


def format_permissions(mode: int) -> str:
    """Render the rwx bits of ``mode`` as a 9-character string."""
    return stat.filemode(mode)[1:10]


def looks_like_text(path: Path) -> bool:
    try:
        with path.open("rb") as fh:
            sample = fh.read(_TEXT_PROBE_LENGTH)
    except OSError:
        return False
    if not sample:
        return True
    non_text = sum(1 for byte in sample if byte not in _TEXT_BYTES)
    return non_text / len(sample) < _NON_TEXT_RATIO


def classify_file(path: Path) -> ReportType:
    known = _EXTENSION_TYPES.get(path.suffix.lower())
    if known:
        return known
    return "Text" if looks_like_text(path) else "Binary"


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class ProbeService:
    def __init__(self, hashing_service: HashingService, probe_root: Path | None = None) -> None:
        self.hashing_service = hashing_service
        root = probe_root if probe_root is not None else settings.probe_root
        self.probe_root = root.resolve() if root is not None else None

    def ensure_allowed(self, path: str | os.PathLike[str]) -> None:
        if self.probe_root is None:
            return
        try:
            resolved = Path(path).resolve()
        except ValueError as exc:
            raise PathNotAllowedError(f"Path {os.fspath(path)!r} is not a valid filesystem path") from exc
        if resolved != self.probe_root and self.probe_root not in resolved.parents:
            raise PathNotAllowedError(f"Path {os.fspath(path)} is outside the probe root")

    def probe(self, path: str | os.PathLike[str]) -> FileReport:
        target = Path(path)
        absolute = Path(os.path.abspath(target))
        self.ensure_allowed(absolute)

        report = FileReport(input_path=os.fspath(path), absolute_path=str(absolute))

        try:
            link_status = target.lstat()
            report.symlink.is_symlink = stat.S_ISLNK(link_status.st_mode)
        except (FileNotFoundError, ValueError):
            pass
        except OSError as exc:
            report.warnings.append(f"Unable to determine symlink status: {exc.strerror or exc}")

        if report.symlink.is_symlink:
            try:
                report.symlink.target = os.readlink(target)
            except OSError as exc:
                report.symlink.error = exc.strerror or str(exc)
                report.warnings.append(f"Unable to read symlink target: {report.symlink.error}")

        try:
            status = target.stat()
        except (FileNotFoundError, ValueError):
            report.type = "Broken Symlink" if report.symlink.is_symlink else "Unknown"
            report.warnings.append("Target does not exist.")
            logger.info("Probe target missing", path=report.input_path)
            return report
        except OSError as exc:
            report.type = "Symlink" if report.symlink.is_symlink else "Unknown"
            report.warnings.append(f"Unable to determine file type: {exc.strerror or exc}")
            return report

        report.target_exists = True
        report.permissions = format_permissions(status.st_mode)
        report.ownership = self._read_ownership(status)
        report.timestamps = TimeInfo(
            last_access=_timestamp(status.st_atime),
            last_modify=_timestamp(status.st_mtime),
            last_change=_timestamp(status.st_ctime),
        )

        if stat.S_ISDIR(status.st_mode):
            report.type = "Directory"
            report.directory_detail = self._collect_directory_detail(target, report.warnings)
        elif stat.S_ISREG(status.st_mode):
            report.type = classify_file(target)
            report.file_detail = self._collect_file_detail(target, status.st_size, report.warnings)
        else:
            report.type = "Other"

        logger.info(
            "Probe completed",
            path=report.input_path,
            type=report.type,
            warnings=len(report.warnings),
        )
        return report

    @staticmethod
    def _read_ownership(status: os.stat_result) -> OwnershipInfo:
        try:
            owner = pwd.getpwuid(status.st_uid).pw_name
        except KeyError:
            owner = str(status.st_uid)
        try:
            group = grp.getgrgid(status.st_gid).gr_name
        except KeyError:
            group = str(status.st_gid)
        return OwnershipInfo(owner=owner, group=group)

    def _collect_file_detail(self, path: Path, size: int, warnings: list[str]) -> FileDetail:
        checksum = self.hashing_service.compute_file_sha256(path)
        if checksum is None:
            warnings.append("Unable to compute SHA-256 checksum.")
        return FileDetail(
            size_bytes=size,
            size_human=format_size(size),
            checksum=checksum or CHECKSUM_UNAVAILABLE,
        )

    @staticmethod
    def _collect_directory_detail(path: Path, warnings: list[str]) -> DirectoryDetail:
        detail = DirectoryDetail()

        def _on_error(exc: OSError) -> None:
            warnings.append(f"Directory traversal warning: {exc.strerror or exc}")

        # os.walk does not descend into symlinked directories; symlinked files are
        # followed and counted with their target size
        for root, dirnames, filenames in os.walk(path, onerror=_on_error):
            detail.directory_count += len(dirnames)
            for name in filenames:
                entry = Path(root, name)
                try:
                    entry_status = entry.stat()
                except FileNotFoundError:
                    # dangling symlink
                    continue
                except OSError as exc:
                    warnings.append(f"Unable to read size of {entry}: {exc.strerror or exc}")
                    continue
                if stat.S_ISREG(entry_status.st_mode):
                    detail.file_count += 1
                    detail.total_size_bytes += entry_status.st_size

        detail.total_size_human = format_size(detail.total_size_bytes)
        return detail
