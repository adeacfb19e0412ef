"""
An environment is either a single file (usually '.env') or a directory tree.

Both are turned into one opaque byte string before encryption:

    * a file is stored as its raw bytes.
    * a directory is stored as an uncompressed tar archive of its contents.

The serialized form is a one byte variant tag, the payload length as an
unsigned 64-bit big-endian integer, then the payload.
"""

import io
import os
import pathlib
import struct
import tarfile
import typing

import attr

from .utils import (
    ExtractionError,
    PackFormatError,
    PathNotFound,
    PathUnreadable,
    UnsupportedPathType,
    WriteError,
)

HEADER = struct.Struct('>BQ')


@attr.s(frozen=True)
class SingleFile:
    TAG = 0x01

    data: bytes = attr.ib(repr=False)

    def serialize(self) -> bytes:
        return HEADER.pack(self.TAG, len(self.data)) + self.data

    def unpack(self, destination: pathlib.Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(self.data)
        except OSError as error:
            raise WriteError(
                f"Failed to write file {destination}: {error}") from error


@attr.s(frozen=True)
class Directory:
    TAG = 0x02

    archive: bytes = attr.ib(repr=False)

    def serialize(self) -> bytes:
        return HEADER.pack(self.TAG, len(self.archive)) + self.archive

    def unpack(self, destination: pathlib.Path) -> None:
        try:
            destination.mkdir(parents=True, exist_ok=True)
            with tarfile.open(fileobj=io.BytesIO(self.archive), mode='r:') as tar:
                members = tar.getmembers()
                for member in members:
                    _check_member(member, destination)
                for member in members:
                    _extract_member(tar, member, destination)
        except tarfile.TarError as error:
            raise ExtractionError(
                f"Failed to unpack archive to {destination}: {error}") from error
        except OSError as error:
            raise ExtractionError(
                f"Failed to unpack archive to {destination}: {error}") from error


EnvironmentPack = typing.Union[SingleFile, Directory]

VARIANTS: typing.Dict[int, typing.Callable[[bytes], EnvironmentPack]] = {
    SingleFile.TAG: SingleFile,
    Directory.TAG: Directory,
}


def from_path(path: pathlib.Path) -> EnvironmentPack:
    if not path.exists():
        raise PathNotFound(f"Path {path} does not exist")

    try:
        if path.is_file():
            return SingleFile(path.read_bytes())
        if path.is_dir():
            return Directory(archive_directory(path))
    except OSError as error:
        raise PathUnreadable(f"Failed to read {path}: {error}") from error

    raise UnsupportedPathType(
        f"Path {path} exists but is neither a file nor a directory")


def deserialize(data: bytes) -> EnvironmentPack:
    if len(data) < HEADER.size:
        raise PackFormatError("Environment payload is too short")

    tag, length = HEADER.unpack_from(data)
    payload = data[HEADER.size:]

    if tag not in VARIANTS:
        raise PackFormatError(f"Unknown environment payload type {tag:#04x}")
    if length != len(payload):
        raise PackFormatError(
            f"Environment payload length mismatch: "
            f"header says {length} bytes, found {len(payload)}")

    return VARIANTS[tag](payload)


def archive_directory(directory: pathlib.Path) -> bytes:
    """Create an in-memory tar archive of everything below a directory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode='w', dereference=True) as tar:
        for path in _walk(directory):
            arcname = path.relative_to(directory).as_posix()
            tar.add(str(path), arcname=arcname, recursive=False)
    return buffer.getvalue()


def _walk(directory: pathlib.Path) -> typing.Iterator[pathlib.Path]:
    """Yield files and directories below directory, following symlinks, parents first."""
    for root, dirnames, filenames in os.walk(directory, followlinks=True):
        dirnames.sort()
        base = pathlib.Path(root)
        for name in dirnames:
            yield base / name
        for name in sorted(filenames):
            if (base / name).is_file():
                yield base / name


def _check_member(member: tarfile.TarInfo, destination: pathlib.Path) -> None:
    """Refuse anything other than plain files and directories inside destination."""
    if not (member.isfile() or member.isdir()):
        raise ExtractionError(
            f"Refusing to extract {member.name}: not a regular file or directory")

    root = destination.resolve()
    target = pathlib.Path(os.path.normpath(root / member.name))
    if target == root:
        return

    # The member itself is replaced on extraction, only its parent may be a link.
    parent = target.parent.resolve()
    if root not in target.parents or (parent != root and root not in parent.parents):
        raise ExtractionError(
            f"Refusing to extract {member.name}: outside of {destination}")


def _extract_member(
        tar: tarfile.TarFile,
        member: tarfile.TarInfo,
        destination: pathlib.Path) -> None:
    target = destination / member.name

    if member.isdir():
        target.mkdir(parents=True, exist_ok=True)
        return

    source = tar.extractfile(member)
    if source is None:
        raise ExtractionError(f"Archive member {member.name} has no data")

    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_symlink() or target.is_file():
        target.unlink()
    with source:
        target.write_bytes(source.read())
    os.chmod(target, member.mode & 0o777)
