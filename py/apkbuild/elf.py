# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
"""
Reading the dynamic-library imports (DT_NEEDED) of ELF objects.

Build trees are full of executable files which are not ELF at all (shell
scripts, python entry points), so anything which can not be parsed as ELF
is reported as "no imports" instead of an error.
"""

import os

from elftools.common.exceptions import ELFError
from elftools.elf.dynamic import DynamicSection
from elftools.elf.elffile import ELFFile

from .trace_decorator import getLog

ELF_MAGIC = b"\x7fELF"


def is_elf(path):
    try:
        with open(path, "rb") as f:
            return f.read(len(ELF_MAGIC)) == ELF_MAGIC
    except OSError:
        return False


def imported_libraries(path):
    """
    Return the list of libraries `path` links against, in the order of its
    dynamic section.  Non-ELF or malformed files yield an empty list.
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        getLog().debug("not scanning %s for imports: %s", path, e)
        return []

    with f:
        if f.read(len(ELF_MAGIC)) != ELF_MAGIC:
            return []
        f.seek(0)
        try:
            return read_needed(ELFFile(f), os.fstat(f.fileno()).st_size)
        except ELFError as e:
            getLog().debug("ignoring malformed ELF object %s: %s", path, e)
            return []


def _check_section_table(elffile, file_size):
    # pyelftools hands out None for headers past the end of the file
    shoff = elffile["e_shoff"]
    if not shoff:
        return
    end = shoff + max(elffile["e_shnum"], 1) * elffile["e_shentsize"]
    if end > file_size:
        raise ELFError("section header table ends at %d, past the end of the file (%d)"
                       % (end, file_size))


def dynamic_section(elffile, file_size):
    """the first SHT_DYNAMIC section of `elffile`, or None"""
    _check_section_table(elffile, file_size)
    for section in elffile.iter_sections():
        if isinstance(section, DynamicSection):
            return section
    return None


def read_needed(elffile, file_size):
    """DT_NEEDED names of the first dynamic section, up to DT_NULL"""
    section = dynamic_section(elffile, file_size)
    if section is None:
        return []

    strtab = elffile.get_section(section["sh_link"])
    if strtab["sh_offset"] + strtab["sh_size"] > file_size:
        raise ELFError("string table of the dynamic section is truncated")

    libs = []
    for tag in section.iter_tags():
        if tag.entry.d_tag != "DT_NEEDED":
            continue
        if tag.entry.d_val >= strtab["sh_size"]:
            raise ELFError("string offset %d out of range" % tag.entry.d_val)
        libs.append(tag.needed)
    return libs
