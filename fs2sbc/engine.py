# FS2SBC CONTAINER ENGINE ->

import warnings as _warnings_module


class PackError(Exception):
    """Base class for every fatal packing error."""


class ValidationError(PackError):
    pass


class SizeLimitExceeded(PackError):
    pass


class DepthLimitExceeded(PackError):
    pass


class IOFailure(PackError):
    """An open/read/write/replace on ``path`` failed; the run is aborted."""

    def __init__(self, operation: str, path, cause: "OSError | None" = None, detail: str = ""):
        self.operation = operation
        self.path = path
        self.cause = cause
        if not detail and cause is not None:
            detail = cause.strerror or str(cause)
        message = f"Failed to {operation} {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TempCleanupWarning(RuntimeWarning):
    pass


class fs2sbc:
    import base64
    import dataclasses
    import enum
    import os
    import pathlib
    import stat
    import sys
    import tempfile
    import time
    import typing
    from io import BytesIO

    ENGINE_VERSION = "1.0.0"
    MAGIC = b"\xB1\x0B\xFE\x57"
    STREAM_CHUNK_SIZE = 1024 * 1024
    B64_CHUNK_SIZE = 3 * 256 * 1024  # must stay a multiple of 3
    MAX_BLOB_BYTES = (1 << 32) - 1
    MAX_NAME_BYTES = 0xFF
    DEFAULT_MAX_DEPTH = 128
    TEMP_PREFIX = "fs2sbc-"
    TEMP_SUFFIX = ".sbc"
    PART_SUFFIX = ".part"

    class Tag(enum.IntEnum):
        END = 0x00
        GROUP = 0x01
        BLOB = 0x02

    class Stage(enum.Enum):
        IDLE = "idle"
        STAGING = "staging"
        ENCODING = "encoding"
        FINALIZING = "finalizing"
        DONE = "done"
        FAILED = "failed"

    @dataclasses.dataclass(frozen=True)
    class PackOptions:
        """Per-run configuration, resolved once and never mutated."""

        input_path: "fs2sbc.pathlib.Path"
        output_path: "fs2sbc.pathlib.Path"
        base64: bool = False
        verbose: bool = False
        max_depth: "fs2sbc.typing.Optional[int]" = None

        @classmethod
        def create(
            cls,
            input_path: "fs2sbc.typing.Union[str, fs2sbc.pathlib.Path]",
            output_path: "fs2sbc.typing.Union[str, fs2sbc.pathlib.Path]",
            *,
            base64: bool = False,
            verbose: bool = False,
            max_depth: "fs2sbc.typing.Optional[int]" = None
        ) -> "fs2sbc.PackOptions":
            return cls(
                input_path=fs2sbc._normalize_path(input_path),
                output_path=fs2sbc._normalize_path(output_path),
                base64=bool(base64),
                verbose=bool(verbose),
                max_depth=max_depth,
            )

        def depth_limit(self) -> int:
            if self.max_depth is None:
                return fs2sbc.DEFAULT_MAX_DEPTH
            return self.max_depth

        def validate(self) -> None:
            if not self.input_path.exists():
                raise ValidationError(f"Input path does not exist: {self.input_path}")
            if self.output_path.resolve() == self.input_path.resolve():
                raise ValidationError("Input and output paths must differ")
            if self.output_path.is_dir():
                raise ValidationError(f"Output path is a directory: {self.output_path}")
            if not self.output_path.parent.is_dir():
                raise ValidationError(f"Output directory does not exist: {self.output_path.parent}")
            if self.max_depth is not None and self.max_depth < 1:
                raise ValidationError("max_depth must be at least 1")

    @dataclasses.dataclass(frozen=True)
    class PackResult:
        output_path: "fs2sbc.pathlib.Path"
        container_size: int
        output_size: int
        files: int
        directories: int
        state: "fs2sbc.Stage"

    class _VerboseReporter:
        """Prints one line per processed node, plus a summary when a run ends."""

        def __init__(self, stream=None, decorate=None):
            self.stream = stream or fs2sbc.sys.stdout
            self._decorate = decorate or (lambda msg: msg)

        def _emit(self, message: str) -> None:
            print(self._decorate(message), file=self.stream)

        def phase(self, stage: "fs2sbc.Stage") -> None:
            if stage is fs2sbc.Stage.FINALIZING:
                self._emit("Finalizing output")

        def update(self, kind: str, path: "fs2sbc.pathlib.Path", *, size: "fs2sbc.typing.Optional[int]" = None) -> None:
            if size is None:
                self._emit(f"Processing {kind} {path}")
            else:
                self._emit(f"Processing {kind} {path} ({fs2sbc._human_readable_size(size)})")

        def finalize(self, result: "fs2sbc.PackResult") -> None:
            self._emit(
                f"Packed {result.files} file(s) in {result.directories} director"
                f"{'y' if result.directories == 1 else 'ies'}: "
                f"{fs2sbc._human_readable_size(result.container_size)} -> "
                f"{fs2sbc._human_readable_size(result.output_size)}"
            )

    class ContainerEncoder:
        """Serialises a file or directory tree into a container stream.

        ``stream`` is any binary file object. Children are written in the
        order ``os.scandir`` yields them, so output is not stable across
        platforms for the same tree.
        """

        def __init__(self, stream, *, max_depth: "fs2sbc.typing.Optional[int]" = None, reporter=None):
            self.stream = stream
            self.max_depth = fs2sbc.DEFAULT_MAX_DEPTH if max_depth is None else max_depth
            self.reporter = reporter
            self.files = 0
            self.directories = 0
            self.bytes_written = 0
            self._open_dirs: "set[tuple[int, int]]" = set()

        def _emit(self, data: bytes) -> None:
            try:
                self.stream.write(data)
            except OSError as exc:
                raise IOFailure("write", getattr(self.stream, "name", "container stream"), exc) from exc
            self.bytes_written += len(data)

        def write_magic(self) -> None:
            self._emit(fs2sbc.MAGIC)

        def write_root(self, path: "fs2sbc.pathlib.Path") -> None:
            path = fs2sbc.pathlib.Path(path)
            if path.is_dir():
                self.write_directory(path)
            else:
                self.write_file(path)

        def write_name(self, path: "fs2sbc.pathlib.Path") -> None:
            raw = fs2sbc.encode_name(path.name)
            self._emit(fs2sbc.u8(len(raw)) + raw)

        def write_file(self, path: "fs2sbc.pathlib.Path") -> None:
            try:
                info = path.stat()
            except OSError as exc:
                raise IOFailure("stat", path, exc) from exc
            if not fs2sbc.stat.S_ISREG(info.st_mode):
                raise IOFailure("package", path, detail="not a regular file or directory")
            size = info.st_size
            if size > fs2sbc.MAX_BLOB_BYTES:
                raise SizeLimitExceeded(
                    f"Cannot package {path}: {fs2sbc._human_readable_size(size)} exceeds the "
                    f"{fs2sbc._human_readable_size(fs2sbc.MAX_BLOB_BYTES)} blob limit"
                )
            if self.reporter:
                self.reporter.update("file", path, size=size)
            try:
                handle = path.open("rb")
            except OSError as exc:
                raise IOFailure("open", path, exc) from exc
            with handle:
                self._emit(fs2sbc.u8(fs2sbc.Tag.BLOB) + fs2sbc.u32_be(size))
                remaining = size
                while remaining:
                    try:
                        chunk = handle.read(min(remaining, fs2sbc.STREAM_CHUNK_SIZE))
                    except OSError as exc:
                        raise IOFailure("read", path, exc) from exc
                    if not chunk:
                        raise IOFailure("read", path, detail=f"file shrank by {remaining} bytes while packing")
                    self._emit(chunk)
                    remaining -= len(chunk)
            self.files += 1

        def write_directory(self, path: "fs2sbc.pathlib.Path", depth: int = 1) -> None:
            if depth > self.max_depth:
                raise DepthLimitExceeded(f"{path}: directory nesting exceeds {self.max_depth} levels")
            try:
                info = path.stat()
                with fs2sbc.os.scandir(path) as listing:
                    entries = list(listing)
            except OSError as exc:
                raise IOFailure("list directory", path, exc) from exc
            key = (info.st_dev, info.st_ino)
            if key in self._open_dirs:
                raise DepthLimitExceeded(f"{path}: directory loop detected")
            if self.reporter:
                self.reporter.update("directory", path)

            self._open_dirs.add(key)
            try:
                self._emit(fs2sbc.u8(fs2sbc.Tag.GROUP))
                self.write_name(path)
                for entry in entries:
                    child = fs2sbc.pathlib.Path(entry.path)
                    if entry.is_dir():
                        self.write_directory(child, depth + 1)
                    else:
                        self.write_file(child)
                self._emit(fs2sbc.u8(fs2sbc.Tag.END))
            finally:
                self._open_dirs.discard(key)
            self.directories += 1

    @staticmethod
    def u32_be(value: int) -> bytes:
        if value < 0 or value > fs2sbc.MAX_BLOB_BYTES:
            raise SizeLimitExceeded(f"{value} does not fit a 4-byte length field")
        return int(value).to_bytes(4, "big")

    @staticmethod
    def u8(value: int) -> bytes:
        return (int(value) & 0xFF).to_bytes(1, "big")

    @staticmethod
    def encode_name(name: str) -> bytes:
        # surrogateescape keeps undecodable POSIX names byte-exact
        raw = name.encode("utf-8", "surrogateescape")
        limit = fs2sbc.MAX_NAME_BYTES
        if len(raw) <= limit:
            return raw
        cut = limit
        # back off to the lead byte of a character split by the limit
        while cut > limit - 3 and (raw[cut] & 0xC0) == 0x80:
            cut -= 1
        if (raw[cut] & 0xC0) != 0xC0:
            cut = limit
        return raw[:cut]

    @staticmethod
    def _normalize_path(path_like: "fs2sbc.typing.Union[str, fs2sbc.pathlib.Path]") -> "fs2sbc.pathlib.Path":
        # absolute, not resolved: a symlinked root keeps the name it was given
        path = fs2sbc.pathlib.Path(path_like).expanduser()
        return fs2sbc.pathlib.Path(fs2sbc.os.path.abspath(path))

    @staticmethod
    def _human_readable_size(num_bytes: int) -> str:
        units = ["B", "KiB", "MiB", "GiB"]
        value = float(num_bytes)
        for unit in units:
            if value < 1024.0 or unit == units[-1]:
                return f"{value:.2f} {unit}"
            value /= 1024.0
        return f"{value:.2f} TiB"

    @staticmethod
    def _read_exact(handle, size: int) -> bytes:
        parts = []
        remaining = size
        while remaining:
            chunk = handle.read(remaining)
            if not chunk:
                break
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    @staticmethod
    def _release_stage(staged: "fs2sbc.typing.Optional[fs2sbc.pathlib.Path]") -> bool:
        if staged is None:
            return True
        try:
            staged.unlink()
        except FileNotFoundError:
            return True
        except OSError as exc:
            _warnings_module.warn(
                f"Could not remove staging file {staged}: {exc.strerror or exc}",
                TempCleanupWarning,
                stacklevel=3
            )
            return False
        return True

    @staticmethod
    def _transition(reporter, stage: "fs2sbc.Stage") -> "fs2sbc.Stage":
        if reporter is not None and hasattr(reporter, "phase"):
            reporter.phase(stage)
        return stage

    @staticmethod
    def encode_bytes(
        input_path: "fs2sbc.typing.Union[str, fs2sbc.pathlib.Path]",
        *,
        max_depth: "fs2sbc.typing.Optional[int]" = None
    ) -> bytes:
        path = fs2sbc._normalize_path(input_path)
        if not path.exists():
            raise ValidationError(f"Input path does not exist: {path}")
        if max_depth is not None and max_depth < 1:
            raise ValidationError("max_depth must be at least 1")
        buffer = fs2sbc.BytesIO()
        encoder = fs2sbc.ContainerEncoder(buffer, max_depth=max_depth)
        encoder.write_magic()
        encoder.write_root(path)
        return buffer.getvalue()

    @staticmethod
    def stage_container(
        options: "fs2sbc.PackOptions",
        reporter=None
    ) -> "fs2sbc.typing.Tuple[fs2sbc.pathlib.Path, fs2sbc.ContainerEncoder]":
        """Encode ``options.input_path`` into a fresh temp file and return its path.

        The temp file lives in the platform temp directory and is removed if
        anything goes wrong, so a failed run leaves nothing behind.
        """
        prefix = f"{fs2sbc.TEMP_PREFIX}{fs2sbc.time.time_ns()}-"
        try:
            handle = fs2sbc.tempfile.NamedTemporaryFile(
                "wb", prefix=prefix, suffix=fs2sbc.TEMP_SUFFIX, delete=False
            )
        except OSError as exc:
            raise IOFailure("create staging file in", fs2sbc.tempfile.gettempdir(), exc) from exc
        staged = fs2sbc.pathlib.Path(handle.name)
        completed = False
        try:
            try:
                with handle:
                    encoder = fs2sbc.ContainerEncoder(
                        handle, max_depth=options.depth_limit(), reporter=reporter
                    )
                    encoder.write_magic()
                    fs2sbc._transition(reporter, fs2sbc.Stage.ENCODING)
                    encoder.write_root(options.input_path)
            except OSError as exc:
                raise IOFailure("write", staged, exc) from exc
            completed = True
        finally:
            if not completed:
                fs2sbc._release_stage(staged)
        return staged, encoder

    @staticmethod
    def finalize_output(
        staged: "fs2sbc.pathlib.Path",
        destination: "fs2sbc.pathlib.Path",
        *,
        base64: bool = False
    ) -> int:
        """Publish the staged container at ``destination`` and drop the stage.

        The bytes are copied (or base64 encoded chunk by chunk) into a sibling
        part file which then replaces ``destination``. Returns the number of
        bytes written.
        """
        staged = fs2sbc.pathlib.Path(staged)
        destination = fs2sbc.pathlib.Path(destination)
        part = destination.with_name(f".{destination.name}.{fs2sbc.time.time_ns()}{fs2sbc.PART_SUFFIX}")
        chunk_size = fs2sbc.B64_CHUNK_SIZE if base64 else fs2sbc.STREAM_CHUNK_SIZE
        written = 0
        published = False
        try:
            with staged.open("rb") as source, part.open("xb") as target:
                while True:
                    chunk = fs2sbc._read_exact(source, chunk_size)
                    if not chunk:
                        break
                    if base64:
                        chunk = fs2sbc.base64.b64encode(chunk)
                    target.write(chunk)
                    written += len(chunk)
            fs2sbc.os.replace(part, destination)
            published = True
        except OSError as exc:
            raise IOFailure("publish", destination, exc) from exc
        finally:
            if not published:
                fs2sbc._release_stage(part)
        fs2sbc._release_stage(staged)
        return written

    @staticmethod
    def pack(options: "fs2sbc.PackOptions", reporter=None) -> "fs2sbc.PackResult":
        """Run the whole pipeline: validate, stage, encode, publish."""
        options.validate()
        state = fs2sbc.Stage.IDLE
        staged = None
        try:
            state = fs2sbc._transition(reporter, fs2sbc.Stage.STAGING)
            staged, encoder = fs2sbc.stage_container(options, reporter)
            state = fs2sbc._transition(reporter, fs2sbc.Stage.FINALIZING)
            output_size = fs2sbc.finalize_output(staged, options.output_path, base64=options.base64)
            staged = None
            state = fs2sbc._transition(reporter, fs2sbc.Stage.DONE)
        finally:
            if state is not fs2sbc.Stage.DONE:
                fs2sbc._transition(reporter, fs2sbc.Stage.FAILED)
                fs2sbc._release_stage(staged)
        result = fs2sbc.PackResult(
            output_path=options.output_path,
            container_size=encoder.bytes_written,
            output_size=output_size,
            files=encoder.files,
            directories=encoder.directories,
            state=state,
        )
        if reporter is not None and hasattr(reporter, "finalize"):
            reporter.finalize(result)
        return result
