# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
"""
Abstract filesystems the archive writer and the dependency scanners walk.

Both implementations expose the same two calls:

    walk()      yields FSEntry tuples for every entry below the root, parents
                before children and siblings sorted by name, the root itself
                is not reported
    open(path)  returns a binary file object with the content of a regular
                file entry

DirFS is backed by a real directory (the built package tree), MemFS holds a
handful of generated files (.PKGINFO, the signature) in memory.
"""

import collections
import io
import os
import stat

from . import exception
from .trace_decorator import getLog

FSEntry = collections.namedtuple("FSEntry", ["path", "mode", "size", "uid", "gid", "linkname"])


def is_regular(entry):
    return stat.S_ISREG(entry.mode)


def is_executable(entry):
    """regular file executable (and readable) by everybody"""
    return is_regular(entry) and stat.S_IMODE(entry.mode) & 0o555 == 0o555


class DirFS(object):
    """read-only view of the directory tree rooted at `root`"""

    def __init__(self, root):
        self.root = root

    def __repr__(self):
        return "DirFS(%r)" % self.root

    def realpath(self, path):
        return os.path.join(self.root, path)

    def walk(self):
        return self._walk("")

    def _walk(self, prefix):
        dirpath = os.path.join(self.root, prefix) if prefix else self.root
        try:
            with os.scandir(dirpath) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise exception.InputError("unable to read directory %s: %s" % (dirpath, e),
                                       path=dirpath) from e

        for dirent in entries:
            path = prefix + dirent.name
            try:
                st = dirent.stat(follow_symlinks=False)
                linkname = os.readlink(dirent.path) if dirent.is_symlink() else ""
            except OSError as e:
                raise exception.InputError("unable to stat %s: %s" % (dirent.path, e),
                                           path=dirent.path) from e

            yield FSEntry(path, st.st_mode, st.st_size, st.st_uid, st.st_gid, linkname)
            if stat.S_ISDIR(st.st_mode):
                for entry in self._walk(path + "/"):
                    yield entry

    def open(self, path):
        fullpath = self.realpath(path)
        try:
            return open(fullpath, "rb")
        except OSError as e:
            raise exception.InputError("unable to open %s: %s" % (fullpath, e),
                                       path=fullpath) from e


class MemFS(object):
    """in-memory tree, paths are relative and '/' separated"""

    def __init__(self):
        self._entries = {}

    def __repr__(self):
        return "MemFS(%s)" % ", ".join(sorted(self._entries))

    def _check_parent(self, path):
        parent = os.path.dirname(path)
        if parent and not stat.S_ISDIR(self._entries.get(parent, (0,))[0]):
            raise exception.InputError("parent directory of %s does not exist" % path, path=path)

    def mkdir(self, path, mode=0o755):
        self._check_parent(path)
        self._entries[path] = (stat.S_IFDIR | mode, b"", "")

    def write_file(self, path, data, mode=0o644):
        self._check_parent(path)
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._entries[path] = (stat.S_IFREG | mode, bytes(data), "")

    def symlink(self, target, path):
        self._check_parent(path)
        self._entries[path] = (stat.S_IFLNK | 0o777, b"", target)

    def read_file(self, path):
        return self._entries[path][1]

    def walk(self):
        for path in sorted(self._entries, key=lambda p: p.split("/")):
            mode, data, linkname = self._entries[path]
            yield FSEntry(path, mode, len(data), 0, 0, linkname)

    def open(self, path):
        try:
            mode, data, _ = self._entries[path]
        except KeyError:
            raise exception.InputError("no such file: %s" % path, path=path)
        if not stat.S_ISREG(mode):
            raise exception.InputError("not a regular file: %s" % path, path=path)
        return io.BytesIO(data)


def installed_size(fsys):
    """sum of the sizes of all regular files in the tree"""
    size = 0
    for entry in fsys.walk():
        if is_regular(entry):
            size += entry.size
    getLog().debug("installed size of %r: %d", fsys, size)
    return size
