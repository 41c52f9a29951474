"""XPACK command-line compressor (Python implementation).

XPACK wraps a block codec in a small chunked container so that files of any
size can be compressed in bounded memory and restored exactly:

- A 16-byte file header records the chunk size the file was written with.
- Every chunk is framed by an 8-byte header (stored size, original size).
- A chunk the codec cannot shrink is stored raw, so no chunk ever grows by
  more than its own header.

Container layout (all integers little-endian):
  file header    magic "XPACK\\0\\0\\0", u32 chunk_size, u16 header_size,
                 u8 version, u8 compression_level
  chunk record   u32 stored_size, u32 original_size, payload[stored_size]

Programs:
  xpack            compress FILEs to FILE.xpack (or -c to stdout)
  xunpack          same as `xpack -d`
  xpack-benchmark  round-trip every chunk through the codec and report speed/ratio

Exit status: 0 all files processed, 2 at least one file skipped with a
warning, 1 at least one error.
"""

from __future__ import annotations

import argparse
import contextlib
import os
import stat
import struct
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Dict, Iterable, Iterator, List, Optional, Sequence

import zstandard as zstd


class PhaseTimer:
    __slots__ = ("t0", "acc")
    def __init__(self) -> None:
        self.t0 = time.perf_counter_ns()
        self.acc: Dict[str, int] = {}  # phase -> nanoseconds

    def reset(self) -> None:
        self.t0 = time.perf_counter_ns()

    def mark(self, phase: str) -> None:
        t = time.perf_counter_ns()
        self.acc[phase] = self.acc.get(phase, 0) + (t - self.t0)
        self.t0 = t

    def total(self, phase: str) -> int:
        return self.acc.get(phase, 0)

# -----------------------------
# Versioning / format
# -----------------------------
TOOL_VERSION = "0.1.0"
__version__ = TOOL_VERSION

MAGIC = b"XPACK\x00\x00\x00"
# Format version: readers reject anything else.
FORMAT_VERSION = 1

# magic, chunk_size, header_size, version, compression_level
FILE_HDR = struct.Struct("<8sIHBB")
# stored_size, original_size
CHUNK_HDR = struct.Struct("<II")

MIN_CHUNK_SIZE = 1024
MAX_CHUNK_SIZE = 64 * 1024 * 1024

# -----------------------------
# Defaults / knobs
# -----------------------------
DEF_CHUNK_SIZE = 512 * 1024
DEF_LEVEL = 6
MIN_LEVEL = 1
MAX_LEVEL = 9
DEF_SUFFIX = "xpack"

# program names that select decompression
UNPACK_NAMES = ("xunpack", "xunpack.exe")

STDIN_NAME = "standard input"
STDOUT_NAME = "standard output"

# read granularity when skipping header padding
IO_CHUNK = 64 * 1024

USAGE_NOTICE = (
    "NOTICE: this program is currently experimental, and the on-disk format\n"
    "is not yet stable!"
)

VERSION_TEXT = (
    "xpack compression program, version {version}\n"
    "\n"
    "This program is free software which may be modified and/or redistributed\n"
    "under the terms of the MIT license.  There is NO WARRANTY, to the extent\n"
    "permitted by law."
)

BENCH_VERSION_TEXT = (
    "XPACK compression benchmark program, version {version}\n"
    "\n"
    "This program is free software which may be modified and/or redistributed\n"
    "under the terms of the MIT license.  There is NO WARRANTY, to the extent\n"
    "permitted by law."
)

# -----------------------------
# Utilities
# -----------------------------
def read_full(f: BinaryIO, n: int) -> bytes:
    """Read n bytes, returning fewer only when the stream ends first."""
    if n <= 0:
        return b""
    try:
        buf = f.read(n)
        if not buf or len(buf) == n:
            return buf or b""
        parts = [buf]
        got = len(buf)
        while got < n:
            b = f.read(n - got)
            if not b:
                break
            parts.append(b)
            got += len(b)
    except OSError as e:
        tag_os_error(e, getattr(f, "name", None))
        raise
    return b"".join(parts)

def tag_os_error(e: OSError, filename) -> None:
    """Attach filename to an I/O error raised by a stream call that has none."""
    if e.filename is None and isinstance(filename, str):
        e.filename = filename

def skip_bytes(f: BinaryIO, n: int) -> None:
    while n > 0:
        b = f.read(min(n, IO_CHUNK))
        if not b:
            raise TruncatedError()
        n -= len(b)

def get_suffix(path: str, suffix: str) -> Optional[int]:
    """Return the index of the '.' that starts ".suffix" in path's file name, or None."""
    name = os.path.basename(path)
    dot = name.rfind(".")
    if dot < 0 or name[dot + 1:] != suffix:
        return None
    return len(path) - len(name) + dot

def has_suffix(path: str, suffix: str) -> bool:
    return get_suffix(path, suffix) is not None

def describe_os_error(e: OSError, name: str) -> str:
    return f"{e.filename or name}: {e.strerror or e}"

# -----------------------------
# Errors / outcomes
# -----------------------------
class FormatError(ValueError):
    """The input does not start with a usable XPACK file header."""

class CorruptError(ValueError):
    """A chunk record is out of bounds or its payload does not decode."""

class TruncatedError(CorruptError, EOFError):
    def __init__(self, message: str = "unexpected end-of-file") -> None:
        super().__init__(message)

class CodecError(RuntimeError):
    pass

class SkipFile(Exception):
    """Raised when a file is deliberately left alone (policy, not failure)."""

class TerminalRefused(RuntimeError):
    pass

class Status(Enum):
    SUCCESS = 0
    SKIPPED = 1
    FAILED = 2

EXIT_CODES = {Status.SUCCESS: 0, Status.SKIPPED: 2, Status.FAILED: 1}

@dataclass(frozen=True)
class Outcome:
    status: Status
    reason: str = ""

SUCCESS = Outcome(Status.SUCCESS)

def worst_status(outcomes: Iterable[Outcome]) -> Status:
    return max((o.status for o in outcomes), key=lambda s: s.value, default=Status.SUCCESS)

def exit_code(outcomes: Iterable[Outcome]) -> int:
    return EXIT_CODES[worst_status(outcomes)]

@dataclass(frozen=True)
class RunContext:
    """Per-invocation state shared by every file: program name and standard streams."""
    prog: str
    stdin: BinaryIO
    stdout: BinaryIO

    def msg(self, text: str) -> None:
        print(f"{self.prog}: {text}", file=sys.stderr)

    def skipped(self, reason: str) -> Outcome:
        self.msg(reason)
        return Outcome(Status.SKIPPED, reason)

    def failed(self, reason: str) -> Outcome:
        self.msg(reason)
        return Outcome(Status.FAILED, reason)

# -----------------------------
# Codecs
# -----------------------------
class ZstdCompressorAdapter:
    """zstd compression context reused for every chunk of a run.

    compress() returns None when the frame would not fit in max_output_size,
    i.e. when compression does not save at least one byte for the caller.
    """

    def __init__(self, chunk_size: int = DEF_CHUNK_SIZE, level: int = DEF_LEVEL) -> None:
        self.chunk_size = int(chunk_size)
        self.level = int(level)
        self._cctx = zstd.ZstdCompressor(level=self.level, write_content_size=True, write_checksum=True)

    def compress(self, data: bytes, max_output_size: int) -> Optional[bytes]:
        if len(data) > self.chunk_size:
            raise ValueError(f"chunk of {len(data)} bytes exceeds chunk size {self.chunk_size}")
        if max_output_size <= 0:
            return None
        comp = self._cctx.compress(data)
        if len(comp) > max_output_size:
            return None
        return comp

class ZstdDecompressorAdapter:
    """zstd decompression context; resize() bounds output to one file's chunk size."""

    def __init__(self, max_output_size: int = MIN_CHUNK_SIZE) -> None:
        self.max_output_size = int(max_output_size)
        self._dctx = zstd.ZstdDecompressor()

    def resize(self, chunk_size: int) -> None:
        self.max_output_size = int(chunk_size)

    def decompress(self, data: bytes, expected_size: int) -> bytes:
        if expected_size < 0 or expected_size > self.max_output_size:
            raise CodecError(f"expected size {expected_size} exceeds limit {self.max_output_size}")
        try:
            # Check the frame's own claim before it can drive an allocation.
            declared = zstd.frame_content_size(data)
            if declared not in (-1, expected_size):
                raise CodecError(f"frame declares {declared} bytes, expected {expected_size}")
            # one frame per chunk; anything after it is damage
            out = self._dctx.decompress(data, max_output_size=expected_size, allow_extra_data=False)
        except zstd.ZstdError as e:
            raise CodecError(str(e)) from e
        if len(out) != expected_size:
            raise CodecError(f"decompressed to {len(out)} bytes, expected {expected_size}")
        return out

# -----------------------------
# Container format
# -----------------------------
@dataclass(frozen=True)
class FileHeader:
    chunk_size: int
    compression_level: int = DEF_LEVEL
    header_size: int = FILE_HDR.size
    version: int = FORMAT_VERSION

    @property
    def padding(self) -> int:
        return self.header_size - FILE_HDR.size

    def pack(self) -> bytes:
        return FILE_HDR.pack(
            MAGIC,
            int(self.chunk_size),
            int(self.header_size),
            int(self.version) & 0xFF,
            int(self.compression_level) & 0xFF,
        )

    @classmethod
    def unpack(cls, raw: bytes) -> "FileHeader":
        """Decode and validate a file header; raises FormatError naming the violation."""
        if len(raw) != FILE_HDR.size:
            raise FormatError("not in XPACK format")
        magic, chunk_size, header_size, version, level = FILE_HDR.unpack(raw)
        if magic != MAGIC:
            raise FormatError("not in XPACK format")
        if version != FORMAT_VERSION:
            raise FormatError(f"unsupported version ({version})")
        if header_size < FILE_HDR.size:
            raise FormatError(f"incorrect header size ({header_size})")
        if chunk_size < MIN_CHUNK_SIZE or chunk_size > MAX_CHUNK_SIZE:
            raise FormatError(f"unsupported chunk size ({chunk_size})")
        return cls(chunk_size=int(chunk_size), compression_level=int(level),
                   header_size=int(header_size), version=int(version))

@dataclass(frozen=True)
class ChunkHeader:
    stored_size: int
    original_size: int

    @property
    def is_raw(self) -> bool:
        return self.stored_size == self.original_size

    def pack(self) -> bytes:
        return CHUNK_HDR.pack(int(self.stored_size), int(self.original_size))

    @classmethod
    def unpack(cls, raw: bytes) -> "ChunkHeader":
        stored_size, original_size = CHUNK_HDR.unpack(raw)
        return cls(stored_size=int(stored_size), original_size=int(original_size))

    def check(self, chunk_size: int) -> None:
        if not (1 <= self.original_size <= chunk_size) or not (1 <= self.stored_size <= self.original_size):
            raise CorruptError("file corrupt")

def write_file_header(f: BinaryIO, chunk_size: int, compression_level: int) -> None:
    f.write(FileHeader(chunk_size=chunk_size, compression_level=compression_level).pack())

def read_file_header(f: BinaryIO) -> FileHeader:
    hdr = FileHeader.unpack(read_full(f, FILE_HDR.size))
    # bytes past the known fields are reserved for later versions
    skip_bytes(f, hdr.padding)
    return hdr

# -----------------------------
# Chunk drivers
# -----------------------------
@dataclass
class StreamStats:
    chunks: int = 0
    raw_chunks: int = 0
    bytes_in: int = 0
    bytes_out: int = 0

def compress_stream(compressor, fin: BinaryIO, fout: BinaryIO, chunk_size: int) -> StreamStats:
    """Frame fin into chunk records on fout until fin is exhausted.

    A chunk is kept compressed only when the codec saves at least one byte;
    otherwise it is stored raw (stored_size == original_size). A codec result
    of zero bytes is treated the same as "did not shrink".
    """
    st = StreamStats()
    while True:
        data = read_full(fin, chunk_size)
        if not data:
            break
        comp = compressor.compress(data, len(data) - 1)
        if comp and len(comp) < len(data):
            stored = comp
        else:
            stored = data
            st.raw_chunks += 1
        fout.write(ChunkHeader(len(stored), len(data)).pack())
        fout.write(stored)
        st.chunks += 1
        st.bytes_in += len(data)
        st.bytes_out += CHUNK_HDR.size + len(stored)
    return st

def decompress_stream(decompressor, fin: BinaryIO, fout: BinaryIO, chunk_size: int) -> StreamStats:
    """Rebuild the original bytes from the chunk records that follow a file header.

    Each chunk header is checked against chunk_size before its payload is
    read, so a damaged header can never request more than one chunk of input.
    Any bad chunk aborts the stream.
    """
    st = StreamStats()
    while True:
        raw = read_full(fin, CHUNK_HDR.size)
        if not raw:
            break
        if len(raw) != CHUNK_HDR.size:
            raise TruncatedError()
        hdr = ChunkHeader.unpack(raw)
        hdr.check(chunk_size)

        payload = read_full(fin, hdr.stored_size)
        if len(payload) != hdr.stored_size:
            raise TruncatedError()

        if hdr.is_raw:
            data = payload
            st.raw_chunks += 1
        else:
            try:
                data = decompressor.decompress(payload, hdr.original_size)
            except CodecError as e:
                raise CorruptError("data corrupt") from e
            if len(data) != hdr.original_size:
                raise CorruptError("data corrupt")
        fout.write(data)
        st.chunks += 1
        st.bytes_in += CHUNK_HDR.size + hdr.stored_size
        st.bytes_out += len(data)
    return st

# -----------------------------
# File pipeline
# -----------------------------
@dataclass(frozen=True)
class Options:
    to_stdout: bool = False
    decompress: bool = False
    force: bool = False
    keep: bool = False
    compression_level: int = DEF_LEVEL
    chunk_size: int = DEF_CHUNK_SIZE
    suffix: str = DEF_SUFFIX

@contextlib.contextmanager
def open_input(path: Optional[str], ctx: RunContext, *, skip_directories: bool = True) -> Iterator[BinaryIO]:
    if path is None:
        yield ctx.stdin
        return
    try:
        f = open(path, "rb")
    except IsADirectoryError:
        if not skip_directories:
            raise
        raise SkipFile(f"{path} is a directory -- skipping") from None
    with f:
        yield f

def discard_file(path: str, ctx: RunContext) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        ctx.msg(f"{path}: unable to remove: {e.strerror or e}")

@contextlib.contextmanager
def open_output(path: Optional[str], force: bool, ctx: RunContext) -> Iterator[BinaryIO]:
    """Yield the destination stream.

    A named destination is created exclusively unless force is set. If the
    body raises, or closing the file fails, the partially written file is
    removed after it has been closed. Write and close errors that carry no
    file name are reported against the destination.
    """
    if path is None:
        yield ctx.stdout
        ctx.stdout.flush()
        return
    try:
        f = open(path, "wb" if force else "xb")
    except FileExistsError:
        raise FileExistsError(None, "already exists; use -f to overwrite", path) from None
    try:
        yield f
    except BaseException as exc:
        if isinstance(exc, OSError):
            tag_os_error(exc, path)
        try:
            f.close()
        except OSError as e:
            ctx.msg(describe_os_error(e, path))
        discard_file(path, ctx)
        raise
    try:
        f.close()
    except OSError as e:
        tag_os_error(e, path)
        discard_file(path, ctx)
        raise

def stat_input(name: str, f: BinaryIO, is_standard: bool, allow_hard_links: bool) -> Optional[os.stat_result]:
    if is_standard:
        # stdin is never a rename/unlink target, so its type and links do not matter
        return None
    st = os.fstat(f.fileno())
    if not stat.S_ISREG(st.st_mode):
        what = "a directory" if stat.S_ISDIR(st.st_mode) else "not a regular file"
        raise SkipFile(f"{name} is {what} -- skipping")
    if st.st_nlink > 1 and not allow_hard_links:
        raise SkipFile(f"{name} has multiple hard links -- skipping (use -f to process anyway)")
    return st

def restore_metadata(f: BinaryIO, name: str, st: os.stat_result, ctx: RunContext) -> None:
    """Copy mode, owner/group and timestamps from st onto the open output.

    Failures are reported as warnings only.
    """
    f.flush()
    fd = f.fileno()
    try:
        if hasattr(os, "fchmod"):
            os.fchmod(fd, stat.S_IMODE(st.st_mode))
        else:
            os.chmod(name, stat.S_IMODE(st.st_mode))
    except OSError as e:
        ctx.msg(f"{name}: unable to preserve mode: {e.strerror or e}")
    if hasattr(os, "fchown"):
        try:
            os.fchown(fd, st.st_uid, st.st_gid)
        except OSError as e:
            ctx.msg(f"{name}: unable to preserve owner and group: {e.strerror or e}")
    try:
        target = fd if os.utime in os.supports_fd else name
        os.utime(target, ns=(st.st_atime_ns, st.st_mtime_ns))
    except OSError as e:
        ctx.msg(f"{name}: unable to preserve timestamps: {e.strerror or e}")

def compress_file(compressor, path: Optional[str], options: Options, ctx: RunContext) -> Outcome:
    """Compress one file (or stdin when path is None) into the XPACK container."""
    newpath: Optional[str] = None
    if path is not None and not options.to_stdout:
        if not options.force and has_suffix(path, options.suffix):
            return ctx.skipped(f"{path}: already has .{options.suffix} suffix -- skipping")
        newpath = f"{path}.{options.suffix}"
    name = path if path is not None else STDIN_NAME

    try:
        with open_input(path, ctx) as fin:
            st = stat_input(name, fin, path is None, options.force or newpath is None)
            with open_output(newpath, options.force, ctx) as fout:
                if not options.force and fout.isatty():
                    raise TerminalRefused("refusing to write compressed data to terminal (use -f to override)")
                write_file_header(fout, options.chunk_size, options.compression_level)
                compress_stream(compressor, fin, fout, options.chunk_size)
                if st is not None and newpath is not None:
                    restore_metadata(fout, newpath, st, ctx)
    except SkipFile as e:
        return ctx.skipped(str(e))
    except TerminalRefused as e:
        return ctx.failed(f"{newpath or STDOUT_NAME}: {e}")
    except OSError as e:
        return ctx.failed(describe_os_error(e, name))

    if newpath is not None and not options.keep:
        discard_file(path, ctx)
    return SUCCESS

def decompress_file(decompressor, path: Optional[str], options: Options, ctx: RunContext) -> Outcome:
    """Restore one XPACK file (or stdin when path is None).

    The header is read and validated before the destination is created, so a
    file that is not in XPACK format never leaves an output behind.
    """
    newpath: Optional[str] = None
    if path is not None and not options.to_stdout:
        idx = get_suffix(path, options.suffix)
        if idx is None:
            return ctx.skipped(f'"{path}" does not end with the .{options.suffix} suffix -- skipping')
        newpath = path[:idx]
    name = path if path is not None else STDIN_NAME

    try:
        with open_input(path, ctx) as fin:
            if not options.force and fin.isatty():
                raise TerminalRefused("refusing to read compressed data from terminal (use -f to override)")
            st = stat_input(name, fin, path is None, options.force or newpath is None)
            hdr = read_file_header(fin)
            decompressor.resize(hdr.chunk_size)
            with open_output(newpath, options.force, ctx) as fout:
                decompress_stream(decompressor, fin, fout, hdr.chunk_size)
                if st is not None and newpath is not None:
                    restore_metadata(fout, newpath, st, ctx)
    except SkipFile as e:
        return ctx.skipped(str(e))
    except (FormatError, CorruptError, TerminalRefused) as e:
        return ctx.failed(f"{name}: {e}")
    except OSError as e:
        return ctx.failed(describe_os_error(e, name))

    if newpath is not None and not options.keep:
        discard_file(path, ctx)
    return SUCCESS

def process_files(paths: Sequence[Optional[str]], options: Options, ctx: RunContext,
                  *, compressor=None, decompressor=None) -> List[Outcome]:
    """Run every path in order with one codec context; a failure never stops later files."""
    if options.decompress:
        d = decompressor if decompressor is not None else ZstdDecompressorAdapter()
        return [decompress_file(d, p, options, ctx) for p in paths]
    c = compressor if compressor is not None else ZstdCompressorAdapter(options.chunk_size, options.compression_level)
    return [compress_file(c, p, options, ctx) for p in paths]

# -----------------------------
# Benchmark
# -----------------------------
@dataclass
class BenchStats:
    original_size: int = 0
    stored_size: int = 0
    compress_ns: int = 0
    decompress_ns: int = 0
    chunks: int = 0
    raw_chunks: int = 0

    def report(self) -> List[str]:
        if self.original_size == 0:
            return ["\tFile was empty."]
        c_ns = max(1, self.compress_ns)
        d_ns = max(1, self.decompress_ns)
        pct = self.stored_size * 100 // self.original_size
        frac = self.stored_size * 100000 // self.original_size % 1000
        return [
            f"\tCompressed {self.original_size} => {self.stored_size} bytes ({pct}.{frac:03d}%)",
            f"\tCompression time: {c_ns // 1000000} ms ({1000 * self.original_size // c_ns} MB/s)",
            f"\tDecompression time: {d_ns // 1000000} ms ({1000 * self.original_size // d_ns} MB/s)",
        ]

def benchmark_stream(compressor, decompressor, fin: BinaryIO, chunk_size: int) -> BenchStats:
    """Compress every chunk of fin, decompress what compressed, and compare.

    Chunks the codec cannot shrink count at their original size, the same
    as the container's raw fallback. Raises CorruptError on the first chunk
    that fails to decompress or does not match.
    """
    stats = BenchStats()
    pt = PhaseTimer()
    while True:
        data = read_full(fin, chunk_size)
        if not data:
            break
        stats.original_size += len(data)
        stats.chunks += 1

        pt.reset()
        comp = compressor.compress(data, len(data) - 1)
        pt.mark("compress")

        if comp:
            try:
                out = decompressor.decompress(comp, len(data))
            except CodecError as e:
                raise CorruptError("failed to decompress data") from e
            pt.mark("decompress")
            if out != data:
                raise CorruptError("data did not decompress to original")
            stats.stored_size += len(comp)
        else:
            stats.stored_size += len(data)
            stats.raw_chunks += 1

    stats.compress_ns = pt.total("compress")
    stats.decompress_ns = pt.total("decompress")
    return stats

def benchmark_files(paths: Sequence[Optional[str]], chunk_size: int, level: int, ctx: RunContext,
                    *, compressor=None, decompressor=None) -> int:
    if compressor is None:
        compressor = ZstdCompressorAdapter(chunk_size, level)
    if decompressor is None:
        decompressor = ZstdDecompressorAdapter()
    decompressor.resize(chunk_size)

    print("Benchmarking XPACK compression:")
    print(f"\tChunk size: {chunk_size}")
    print(f"\tCompression level: {level}")
    for path in paths:
        name = path if path is not None else STDIN_NAME
        try:
            with open_input(path, ctx, skip_directories=False) as fin:
                print(f"Processing {name}...")
                stats = benchmark_stream(compressor, decompressor, fin, chunk_size)
        except CorruptError as e:
            ctx.msg(f"{name}: {e}")
            return 1
        except OSError as e:
            ctx.msg(describe_os_error(e, name))
            return 1
        for line in stats.report():
            print(line)
    return 0

# -----------------------------
# CLI
# -----------------------------
class _ArgumentParser(argparse.ArgumentParser):
    # usage errors exit 1; status 2 is reserved for skipped files
    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: {message}\n")

def parse_compression_level(s: str) -> int:
    try:
        v = int(s, 10)
    except ValueError:
        v = -1
    if v < MIN_LEVEL or v > MAX_LEVEL:
        raise argparse.ArgumentTypeError(
            f"invalid compression level: \"{s}\" (must be {MIN_LEVEL}-{MAX_LEVEL})")
    return v

def parse_chunk_size(s: str) -> int:
    try:
        v = int(s, 10)
    except ValueError:
        v = -1
    if v < MIN_CHUNK_SIZE or v > MAX_CHUNK_SIZE:
        raise argparse.ArgumentTypeError(
            f"invalid chunk size: \"{s}\" (must be {MIN_CHUNK_SIZE}-{MAX_CHUNK_SIZE})")
    return v

def _add_codec_arguments(ap: argparse.ArgumentParser) -> None:
    for n in range(MIN_LEVEL, MAX_LEVEL + 1):
        if n == MIN_LEVEL:
            h = "fastest (worst) compression"
        elif n == MAX_LEVEL:
            h = "slowest (best) compression"
        else:
            h = argparse.SUPPRESS
        ap.add_argument(f"-{n}", dest="level", action="store_const", const=n, help=h)
    ap.add_argument("-h", action="help", help="print this help")
    ap.add_argument("-L", dest="level", metavar="LVL", type=parse_compression_level,
                    help=f"compression level [{MIN_LEVEL}-{MAX_LEVEL}] (default {DEF_LEVEL})")
    ap.add_argument("-s", dest="chunk_size", metavar="SIZE", type=parse_chunk_size, default=DEF_CHUNK_SIZE,
                    help=f"chunk size (default {DEF_CHUNK_SIZE})")

def build_argparser(prog: str = "xpack") -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog=prog,
        add_help=False,
        usage="%(prog)s [-123456789cdfhkV] [-L LVL] [-s SIZE] [-S SUF] [FILE]...",
        description="Compress or decompress the specified FILEs.",
        epilog=USAGE_NOTICE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_codec_arguments(ap)
    ap.add_argument("-c", dest="to_stdout", action="store_true", help="write to standard output")
    ap.add_argument("-d", dest="decompress", action="store_true", help="decompress")
    ap.add_argument("-f", dest="force", action="store_true", help="overwrite existing output files")
    ap.add_argument("-k", dest="keep", action="store_true", help="don't delete input files")
    ap.add_argument("-S", dest="suffix", metavar="SUF", default=DEF_SUFFIX,
                    help=f"use suffix .SUF instead of .{DEF_SUFFIX}")
    ap.add_argument("-V", action="version", version=VERSION_TEXT.format(version=TOOL_VERSION),
                    help="show version and legal information")
    ap.add_argument("files", nargs="*", metavar="FILE")
    return ap

def build_bench_argparser(prog: str = "xpack-benchmark") -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog=prog,
        add_help=False,
        usage="%(prog)s [-123456789hV] [-L LVL] [-s SIZE] [FILE]...",
        description="Benchmark XPACK compression and decompression on the specified FILEs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_codec_arguments(ap)
    ap.add_argument("-V", action="version", version=BENCH_VERSION_TEXT.format(version=TOOL_VERSION),
                    help="show version and legal information")
    ap.add_argument("files", nargs="*", metavar="FILE")
    return ap

def input_paths(files: Sequence[str]) -> List[Optional[str]]:
    # no operands, or a lone "-", means standard input
    if not files:
        return [None]
    return [None if f == "-" else f for f in files]

def _make_context(prog: str, stdin: Optional[BinaryIO], stdout: Optional[BinaryIO]) -> RunContext:
    return RunContext(
        prog=prog,
        stdin=stdin if stdin is not None else sys.stdin.buffer,
        stdout=stdout if stdout is not None else sys.stdout.buffer,
    )

def main(argv: Optional[Sequence[str]] = None, prog: Optional[str] = None,
         stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if prog is None:
        prog = os.path.basename(sys.argv[0]) or "xpack"
    args = build_argparser(prog).parse_args(list(argv))

    options = Options(
        to_stdout=args.to_stdout,
        decompress=args.decompress or prog in UNPACK_NAMES,
        force=args.force,
        keep=args.keep,
        compression_level=args.level if args.level is not None else DEF_LEVEL,
        chunk_size=args.chunk_size,
        suffix=args.suffix,
    )
    ctx = _make_context(prog, stdin, stdout)
    outcomes = process_files(input_paths(args.files), options, ctx)
    return exit_code(outcomes)

def bench_main(argv: Optional[Sequence[str]] = None, prog: Optional[str] = None,
               stdin: Optional[BinaryIO] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if prog is None:
        prog = os.path.basename(sys.argv[0]) or "xpack-benchmark"
    args = build_bench_argparser(prog).parse_args(list(argv))
    level = args.level if args.level is not None else DEF_LEVEL
    ctx = _make_context(prog, stdin, None)
    return benchmark_files(input_paths(args.files), args.chunk_size, level, ctx)

if __name__ == "__main__":
    sys.exit(main())
