"""Common pytest fixtures."""

import io
import os
import struct
import zlib

import pytest

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from apkbuild.config import BuildContext
from apkbuild.depgen import Dependencies
from apkbuild.package import Copyright, Package

_ELF_LAYOUTS = {
    32: ("HHIIIIIHHHHHH", "IIIIIIIIII", "iI"),
    64: ("HHIQQQIHHHHHH", "IIQQQQIIQQ", "qQ"),
}


def build_elf(needed, elfclass=64, byteorder="<"):
    """
    Smallest ELF shared object readelf and the scanner both accept:
    a .dynstr, a .dynamic with one DT_NEEDED per library, a .shstrtab and
    the section headers, no program headers.
    """
    ehdr_fmt, shdr_fmt, dyn_fmt = (byteorder + fmt for fmt in _ELF_LAYOUTS[elfclass])

    dynstr = b"\0"
    offsets = []
    for name in needed:
        offsets.append(len(dynstr))
        dynstr += name.encode("ascii") + b"\0"
    dynamic = b"".join(struct.pack(dyn_fmt, 1, off) for off in offsets)
    dynamic += struct.pack(dyn_fmt, 0, 0)

    ehdr_size = 16 + struct.calcsize(ehdr_fmt)
    dynstr_off = ehdr_size
    dynamic_off = dynstr_off + len(dynstr)
    shstrtab = b"\0.dynstr\0.dynamic\0.shstrtab\0"
    shstrtab_off = dynamic_off + len(dynamic)
    shoff = shstrtab_off + len(shstrtab)
    shentsize = struct.calcsize(shdr_fmt)

    ident = b"\x7fELF" + bytes([1 if elfclass == 32 else 2,
                                1 if byteorder == "<" else 2, 1]) + b"\0" * 9
    ehdr = ident + struct.pack(ehdr_fmt, 3, 62, 1, 0, 0, shoff, 0, ehdr_size,
                               0, 0, shentsize, 4, 3)
    sections = [
        struct.pack(shdr_fmt, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0),
        struct.pack(shdr_fmt, 1, 3, 0, 0, dynstr_off, len(dynstr), 0, 0, 1, 0),
        struct.pack(shdr_fmt, 9, 6, 0, 0, dynamic_off, len(dynamic), 1, 0, 8,
                    struct.calcsize(dyn_fmt)),
        struct.pack(shdr_fmt, 18, 3, 0, 0, shstrtab_off, len(shstrtab), 0, 0, 1, 0),
    ]
    return ehdr + dynstr + dynamic + shstrtab + b"".join(sections)


def write_file(path, data, mode=0o644):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data if isinstance(data, bytes) else data.encode("utf-8"))
    os.chmod(path, mode)
    return path


def split_segments(data):
    """(raw bytes, decompressed bytes) of each gzip member in `data`"""
    segments = []
    while data:
        d = zlib.decompressobj(16 + zlib.MAX_WBITS)
        content = d.decompress(data) + d.flush()
        assert d.eof
        raw_len = len(data) - len(d.unused_data)
        segments.append((data[:raw_len], content))
        data = d.unused_data
    return segments


@pytest.fixture
def elf_image():
    return build_elf


@pytest.fixture
def segments():
    return split_segments


@pytest.fixture
def package():
    return Package(
        "hello", "1.0", epoch=3,
        description="the hello package",
        copyright=[Copyright("MIT"), Copyright("Apache-2.0")],
        dependencies=Dependencies(runtime=["busybox"], provides=[]),
    )


@pytest.fixture
def workspace(tmp_path, package):
    """populated tree for the 'hello' package"""
    root = tmp_path / "workspace" / "apkbuild-out" / package.name
    write_file(str(root / "usr" / "bin" / "frobnicate"), "#!/bin/sh\necho frob\n", 0o755)
    write_file(str(root / "usr" / "lib" / "libhello.so.1.2"),
               build_elf(["libc.so.6", "libm.so.6"]), 0o755)
    write_file(str(root / "usr" / "share" / "hello" / "README"), "hello\n" * 100, 0o644)
    os.symlink("libhello.so.1.2", str(root / "usr" / "lib" / "libhello.so.1"))
    return root


@pytest.fixture
def build_context(tmp_path, package, workspace):
    return BuildContext(
        package,
        str(tmp_path / "workspace"),
        str(tmp_path / "out"),
        arch="x86_64",
        source_date_epoch=1650000000,
    )


@pytest.fixture
def rsa_keys(tmp_path):
    """paths of a plain private key, the same key encrypted with 'secret', and its public key"""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    keydir = tmp_path / "keys"
    keydir.mkdir()

    private = keydir / "packager.rsa"
    private.write_bytes(key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption()))

    encrypted = keydir / "encrypted.rsa"
    encrypted.write_bytes(key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.BestAvailableEncryption(b"secret")))

    public = keydir / "packager.rsa.pub"
    public.write_bytes(key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo))

    return {"private": str(private), "encrypted": str(encrypted), "public": str(public)}


@pytest.fixture
def buffer():
    return io.BytesIO()
