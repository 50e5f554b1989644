from .engine import (
    DepthLimitExceeded,
    IOFailure,
    PackError,
    SizeLimitExceeded,
    TempCleanupWarning,
    ValidationError,
    fs2sbc,
)
from .api_files import pack_bytes, pack_path
from .console import cli, main
from .version import __version__

MAGIC = fs2sbc.MAGIC
Tag = fs2sbc.Tag
Stage = fs2sbc.Stage
PackOptions = fs2sbc.PackOptions
PackResult = fs2sbc.PackResult
ContainerEncoder = fs2sbc.ContainerEncoder

def u32_be(value: int) -> bytes: return fs2sbc.u32_be(value)
def u8(value: int) -> bytes: return fs2sbc.u8(value)
def encode_name(name: str) -> bytes: return fs2sbc.encode_name(name)
def pack(options, reporter=None): return fs2sbc.pack(options, reporter)

__all__ = [
    "fs2sbc",
    "MAGIC",
    "Tag",
    "Stage",
    "PackOptions",
    "PackResult",
    "ContainerEncoder",
    "PackError",
    "ValidationError",
    "SizeLimitExceeded",
    "DepthLimitExceeded",
    "IOFailure",
    "TempCleanupWarning",
    "u32_be",
    "u8",
    "encode_name",
    "pack",
    "pack_path",
    "pack_bytes",
    "cli",
    "main",
    "__version__",
]
