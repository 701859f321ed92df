import os
import re

MAX_FILENAME_LENGTH = 255

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_\-.]")


def split_extension(filename: str) -> tuple[str, str]:
    """Split ``name.ext`` into ``("name", ".ext")``; the extension may be empty."""
    return os.path.splitext(filename)


def sanitize_filename(filename: str | None) -> str:
    """
    Make an untrusted filename safe for storage and display.

    Spaces in the base name become underscores and every character outside
    ``[A-Za-z0-9_-.]`` is dropped. The extension is kept as given and the base
    is truncated so the result never exceeds 255 characters. Any directory
    part is dropped. Empty or blank input returns an empty string.
    """
    if not filename or not filename.strip():
        return ""
    
    # Only the final path component is kept, whichever separator the client used
    filename = os.path.basename(filename.replace("\\", "/"))
    base, extension = split_extension(filename)
    base = base.replace(" ", "_")
    base = _UNSAFE_CHARS.sub("", base)
    
    # An extension longer than the limit leaves no room for a base at all
    extension = extension[:MAX_FILENAME_LENGTH]
    max_base_length = MAX_FILENAME_LENGTH - len(extension)
    base = base[:max_base_length]
    
    return base + extension
