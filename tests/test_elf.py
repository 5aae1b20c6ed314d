""" Tests for elf.py """

import os
import struct

import pytest

from elftools.elf.elffile import ELFFile

from apkbuild import elf


@pytest.mark.parametrize("elfclass,byteorder", [
    (64, "<"),
    (64, ">"),
    (32, "<"),
    (32, ">"),
])
def test_imported_libraries(tmp_path, elf_image, elfclass, byteorder):
    path = tmp_path / "libfoo.so.1"
    path.write_bytes(elf_image(["libc.so.6", "libz.so.1", "libcrypto.so.3"],
                               elfclass=elfclass, byteorder=byteorder))
    assert elf.is_elf(str(path))
    assert elf.imported_libraries(str(path)) == ["libc.so.6", "libz.so.1", "libcrypto.so.3"]


def test_no_imports(tmp_path, elf_image):
    path = tmp_path / "static"
    path.write_bytes(elf_image([]))
    assert elf.imported_libraries(str(path)) == []


def test_shell_script_is_not_an_error(tmp_path):
    path = tmp_path / "script.sh"
    path.write_text("#!/bin/sh\nexec true\n")
    path.chmod(0o755)
    assert not elf.is_elf(str(path))
    assert elf.imported_libraries(str(path)) == []


@pytest.mark.parametrize("length", [4, 10, 40, 100])
def test_truncated_elf(tmp_path, elf_image, length):
    path = tmp_path / "truncated"
    path.write_bytes(elf_image(["libc.so.6"])[:length])
    assert elf.imported_libraries(str(path)) == []


def test_unknown_class(tmp_path, elf_image):
    image = bytearray(elf_image(["libc.so.6"]))
    image[4] = 7
    path = tmp_path / "weird"
    path.write_bytes(bytes(image))
    assert elf.imported_libraries(str(path)) == []


def test_bad_string_offset(tmp_path, elf_image):
    image = elf_image(["libc.so.6"])
    # first DT_NEEDED entry follows the header (64) and .dynstr ("\0libc.so.6\0")
    offset = 64 + len(b"\0libc.so.6\0")
    image = image[:offset] + struct.pack("<qQ", 1, 4096) + image[offset + 16:]
    path = tmp_path / "corrupted"
    path.write_bytes(image)
    assert elf.imported_libraries(str(path)) == []


def test_without_section_headers(tmp_path, elf_image):
    image = bytearray(elf_image(["libc.so.6"]))
    # e_shoff of ELF64 lives at offset 40
    image[40:48] = b"\0" * 8
    path = tmp_path / "nosections"
    path.write_bytes(bytes(image))
    assert elf.imported_libraries(str(path)) == []


def test_missing_file(tmp_path):
    assert elf.imported_libraries(str(tmp_path / "missing")) == []
    assert not elf.is_elf(str(tmp_path / "missing"))




def test_dynamic_section(tmp_path, elf_image):
    path = tmp_path / "lib.so"
    path.write_bytes(elf_image(["libc.so.6"]))
    with open(str(path), "rb") as f:
        elffile = ELFFile(f)
        section = elf.dynamic_section(elffile, os.path.getsize(str(path)))
        assert section.name == ".dynamic"
        assert section["sh_link"] == 1
        assert elf.read_needed(elffile, os.path.getsize(str(path))) == ["libc.so.6"]
