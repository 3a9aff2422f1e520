"""Readable error messages for filesystem failures.

The placeholder disk cache is usually a mounted volume or a CI cache
directory. A bare "[Errno 30]" tells nobody what to fix, so OSErrors are
turned into a message with the operation, the path, the errno name and a hint.
"""

import errno
from pathlib import Path
from typing import Any


# Hey future me - maps errno codes to (description, hint). Add more when someone
# reports a confusing cache failure.
ERRNO_MESSAGES = {
    errno.EACCES: (
        "Permission denied",
        "Check that the cache directory is writable by the build user.",
    ),
    errno.EROFS: (
        "Read-only filesystem",
        "The cache directory is on a read-only mount. "
        "Point RESPIMG_REMOTE_CACHE_DIR at a writable location.",
    ),
    errno.ENOSPC: (
        "No space left on device",
        "Disk is full! Check available space with 'df -h'.",
    ),
    errno.ENOENT: (
        "File or directory not found",
        "Parent directory is missing. Settings.ensure_directories() creates it.",
    ),
    errno.EISDIR: (
        "Is a directory",
        "A directory sits where a cache file is expected. Remove it.",
    ),
    errno.ENOTDIR: (
        "Not a directory",
        "A file sits where the cache directory is expected.",
    ),
    errno.EMFILE: (
        "Too many open files",
        "Too many concurrent reads/writes. Raise ulimit -n.",
    ),
}


def format_oserror_message(
    e: OSError,
    operation: str,
    path: Path | str | None = None,
    extra_context: dict[str, Any] | None = None,
) -> str:
    """Format an OSError with errno name and an actionable hint.

    Args:
        e: The OSError
        operation: What was attempted ("write placeholder", "read placeholder")
        path: File or directory involved
        extra_context: Extra key=value pairs for the message (url, byte_count)

    Returns:
        Message like:
            Failed to write placeholder '/c/images/ab.base64': Read-only filesystem
            (Errno 30 / EROFS) [url=https://..., byte_count=812]
            HINT: The cache directory is on a read-only mount. ...

    Example:
        try:
            path.write_text(body)
        except OSError as e:
            raise PlaceholderPersistError(
                format_oserror_message(e, "write placeholder", path), ...
            ) from e
    """
    error_code = e.errno
    error_name = (
        errno.errorcode.get(error_code, f"UNKNOWN_{error_code}")
        if error_code is not None
        else "UNKNOWN"
    )

    if error_code in ERRNO_MESSAGES:
        description, hint = ERRNO_MESSAGES[error_code]
    else:
        description = str(e)
        hint = "Check system logs and file permissions."

    message = f"Failed to {operation}"
    if path:
        message += f" '{path}'"
    message += f": {description} (Errno {error_code} / {error_name})"

    if extra_context:
        context_str = ", ".join(f"{k}={v}" for k, v in extra_context.items())
        message += f" [{context_str}]"

    return f"{message}\nHINT: {hint}"
