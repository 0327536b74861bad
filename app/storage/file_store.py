import re
from pathlib import Path

from app.storage.exceptions import FileReadError

_EXTENSIONS = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
}


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def report_file_path(files_root: Path, owner_id: str, report_id: str, mime_type: str) -> Path:
    """Build path to a report file: {files_root}/{owner_id}/{report_id}{ext}

    Both identifiers are reduced to filename-safe characters.
    """
    extension = _EXTENSIONS.get(mime_type, ".bin")
    owner_dir = _UNSAFE_CHARS.sub("_", owner_id) or "_"
    file_stem = _UNSAFE_CHARS.sub("_", report_id)
    return files_root / owner_dir / f"{file_stem}{extension}"


class FileStore:
    """Keeps uploaded report bytes on local disk between intake and processing."""

    def __init__(self, files_root: Path) -> None:
        self._files_root = files_root

    def save(self, owner_id: str, report_id: str, mime_type: str, data: bytes) -> Path:
        path = report_file_path(self._files_root, owner_id, report_id, mime_type)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".part")
        tmp_path.write_bytes(data)
        tmp_path.replace(path)
        return path

    def load(self, owner_id: str, report_id: str, mime_type: str) -> bytes:
        """Read report bytes from disk.

        Raises:
            FileReadError: if the file is missing or unreadable.
        """
        path = report_file_path(self._files_root, owner_id, report_id, mime_type)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Cannot read report file {path}: {exc}") from exc

    def delete(self, owner_id: str, report_id: str, mime_type: str) -> None:
        path = report_file_path(self._files_root, owner_id, report_id, mime_type)
        path.unlink(missing_ok=True)
