"""File-oriented convenience wrappers."""

from .engine import fs2sbc


def pack_path(
    input_path,
    output_path,
    *,
    base64: bool = False,
    verbose: bool = False,
    max_depth: int | None = None,
):
    options = fs2sbc.PackOptions.create(
        input_path,
        output_path,
        base64=base64,
        verbose=verbose,
        max_depth=max_depth,
    )
    reporter = fs2sbc._VerboseReporter() if verbose else None
    return fs2sbc.pack(options, reporter)


def pack_bytes(input_path, *, max_depth: int | None = None) -> bytes:
    return fs2sbc.encode_bytes(input_path, max_depth=max_depth)


__all__ = ["pack_path", "pack_bytes"]
