# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
"""
Generating so: and cmd: virtuals from the built package tree.

A generator ("scanner") is any object with a scan(pc, generated) method; it
walks the tree of the PackageContext `pc` and appends what it finds to the
`generated` Dependencies.  The scanners run in DEFAULT_GENERATORS order, the
results are merged with the dependencies declared in the package definition,
sorted and de-duplicated.
"""

import os

from . import elf
from . import fs
from .trace_decorator import getLog, traceLog


class Dependencies(object):
    """runtime dependencies and provided virtuals of a package"""

    def __init__(self, runtime=None, provides=None):
        self.runtime = list(runtime or [])
        self.provides = list(provides or [])

    def __repr__(self):
        return "Dependencies(runtime=%r, provides=%r)" % (self.runtime, self.provides)

    def __eq__(self, other):
        if not isinstance(other, Dependencies):
            return NotImplemented
        return self.runtime == other.runtime and self.provides == other.provides

    def copy(self):
        return Dependencies(self.runtime, self.provides)

    def summarize(self, log=None):
        log = log or getLog()
        if self.runtime:
            log.info("  runtime:")
            for dep in self.runtime:
                log.info("    %s", dep)

        if self.provides:
            log.info("  provides:")
            for dep in self.provides:
                log.info("    %s", dep)


def dedup(items):
    """sorted copy of `items` with duplicates dropped"""
    out = []
    prev = None
    for cur in sorted(items):
        if out and cur == prev:
            continue
        out.append(cur)
        prev = cur
    return out


def shared_object_version(basename):
    """
    Version of the shared object `basename` is providing, i.e. whatever
    follows the first '.so.' ("0" when there is nothing), or None for
    files which do not look like shared objects at all.
    """
    if ".so." in basename:
        libver = basename.split(".so.", 1)[1]
    elif basename.endswith(".so"):
        libver = ""
    else:
        return None
    return libver or "0"


def _executables(fsys):
    for entry in fsys.walk():
        if fs.is_executable(entry):
            yield entry


class SharedObjectScanner(object):
    """so:<soname>=<ver> provides and so:<lib> runtime dependencies"""

    def scan(self, pc, generated):
        pc.log.info("scanning for shared object dependencies...")
        fsys = pc.fs()
        for entry in _executables(fsys):
            basename = os.path.basename(entry.path)
            # files named like a library are providers even when they
            # are not ELF at all
            libver = shared_object_version(basename)
            if libver is not None:
                generated.provides.append("so:%s=%s" % (basename, libver))

            for lib in elf.imported_libraries(fsys.realpath(entry.path)):
                generated.runtime.append("so:%s" % lib)


class CommandScanner(object):
    """cmd:<name>=<version>-r<epoch> for executables installed in any *bin* dir"""

    def scan(self, pc, generated):
        pc.log.info("scanning for commands...")
        for entry in _executables(pc.fs()):
            if "bin" in entry.path:
                basename = os.path.basename(entry.path)
                generated.provides.append("cmd:%s=%s-r%d" % (
                    basename, pc.origin.version, pc.origin.epoch))


# the shared object scanner goes first
DEFAULT_GENERATORS = (
    SharedObjectScanner(),
    CommandScanner(),
)


@traceLog()
def generate_dependencies(pc, generators=None):
    """
    Run all `generators` over the tree of `pc` and merge the results into
    pc.dependencies.  Errors walking the tree propagate to the caller.
    """
    if generators is None:
        generators = DEFAULT_GENERATORS

    generated = Dependencies()
    for gen in generators:
        gen.scan(pc, generated)

    pc.dependencies.runtime = dedup(pc.dependencies.runtime + generated.runtime)
    pc.dependencies.provides = dedup(pc.dependencies.provides + generated.provides)

    pc.dependencies.summarize(pc.log)
    return pc.dependencies
