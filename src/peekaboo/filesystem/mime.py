"""
Content types for listed and read files, keyed by lower-cased extension.
"""

from pathlib import PurePosixPath

DEFAULT_MIME_TYPE = "text/plain"
DIRECTORY_MIME_TYPE = "inode/directory"

MIME_TYPES: dict[str, str] = {
    # Text
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".csv": "text/csv",
    # Code
    ".js": "application/javascript",
    ".mjs": "application/javascript",
    ".ts": "application/typescript",
    ".tsx": "application/typescript",
    ".jsx": "text/jsx",
    ".json": "application/json",
    ".py": "text/x-python",
    ".java": "text/x-java",
    ".c": "text/x-c",
    ".cpp": "text/x-c++",
    ".h": "text/x-c",
    ".hpp": "text/x-c++",
    ".rs": "text/x-rust",
    ".go": "text/x-go",
    ".rb": "text/x-ruby",
    ".php": "text/x-php",
    ".sh": "text/x-sh",
    ".bash": "text/x-sh",
    ".zsh": "text/x-sh",
    ".fish": "text/x-sh",
    ".ps1": "text/x-powershell",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".toml": "text/toml",
    ".xml": "text/xml",
    ".sql": "text/x-sql",
    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    # Documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Archives
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".rar": "application/x-rar-compressed",
    ".7z": "application/x-7z-compressed",
    # Other
    ".log": "text/plain",
    ".conf": "text/plain",
    ".config": "text/plain",
    ".ini": "text/plain",
    ".env": "text/plain",
}


def get_mime_type(filename: str) -> str:
    """Return the content type for a file name, defaulting to text/plain."""
    name = PurePosixPath(str(filename).replace("\\", "/")).name.lower()
    dot = name.rfind(".")
    if dot == -1 or dot == len(name) - 1:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(name[dot:], DEFAULT_MIME_TYPE)
