"""Context document serialization, deserialization and materialization."""

from .format import (
    HEADER_TOKEN, ESCAPED_TOKEN, SEPARATOR, escape_content, unescape_content,
)
from .serializer import ContextSerializer
from .stats import SelectionStats, estimate_tokens, selection_stats
from .deserializer import (
    ContextDeserializer, ContextBlock, DeserializeNoBlocksFound, sanitize_path,
)
from .archive import (
    FileWriteResult, build_archive, read_archive, archive_file_name,
    materialize, safe_write,
)

__all__ = [
    "HEADER_TOKEN", "ESCAPED_TOKEN", "SEPARATOR", "escape_content", "unescape_content",
    "ContextSerializer",
    "SelectionStats", "estimate_tokens", "selection_stats",
    "ContextDeserializer", "ContextBlock", "DeserializeNoBlocksFound", "sanitize_path",
    "FileWriteResult", "build_archive", "read_archive", "archive_file_name",
    "materialize", "safe_write",
]
