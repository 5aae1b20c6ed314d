# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
"""
Writing reproducible gzip compressed tar streams.

The tar headers are serialized one by one with tarfile.TarInfo.tobuf() so
that the end-of-archive marker can be left out: apk control and signature
segments are "cut" tarballs which, once decompressed and concatenated with
the data segment, form one tar stream.
"""

import gzip
import hashlib
import stat
import tarfile

from . import exception
from .hashing import CHUNK_SIZE, file_digest
from .trace_decorator import getLog, traceLog

CHECKSUM_PAX_KEY = "APK-TOOLS.checksum.SHA1"
BLOCKSIZE = tarfile.BLOCKSIZE


class TarContext(object):
    """reproducibility overrides applied to every entry of a tarball"""

    def __init__(self, source_date_epoch=0, override_uid=None, override_gid=None,
                 override_uname=None, override_gname=None, use_checksums=False,
                 skip_close=False):
        self.source_date_epoch = int(source_date_epoch)
        self.override_uid = override_uid
        self.override_gid = override_gid
        self.override_uname = override_uname
        self.override_gname = override_gname
        self.use_checksums = use_checksums
        self.skip_close = skip_close

    def __repr__(self):
        return ("TarContext(source_date_epoch=%d, use_checksums=%s, skip_close=%s)"
                % (self.source_date_epoch, self.use_checksums, self.skip_close))

    def tarinfo(self, entry):
        """TarInfo for the FSEntry `entry`, or None for unsupported file types"""
        info = tarfile.TarInfo(entry.path)
        info.mode = stat.S_IMODE(entry.mode)
        info.mtime = self.source_date_epoch
        info.uid = entry.uid if self.override_uid is None else self.override_uid
        info.gid = entry.gid if self.override_gid is None else self.override_gid
        if self.override_uname is not None:
            info.uname = self.override_uname
        if self.override_gname is not None:
            info.gname = self.override_gname

        if stat.S_ISDIR(entry.mode):
            info.type = tarfile.DIRTYPE
        elif stat.S_ISLNK(entry.mode):
            info.type = tarfile.SYMTYPE
            info.linkname = entry.linkname
        elif stat.S_ISREG(entry.mode):
            info.type = tarfile.REGTYPE
            info.size = entry.size
        else:
            return None
        return info

    def _checksum(self, fsys, entry):
        if stat.S_ISLNK(entry.mode):
            return hashlib.sha1(entry.linkname.encode("utf-8")).hexdigest()
        with fsys.open(entry.path) as f:
            return file_digest(f, "sha1").hexdigest()

    def _write_entry(self, out, fsys, entry):
        info = self.tarinfo(entry)
        if info is None:
            getLog().debug("skipping special file %s", entry.path)
            return

        if self.use_checksums and (info.isreg() or info.issym()):
            info.pax_headers = {CHECKSUM_PAX_KEY: self._checksum(fsys, entry)}

        out.write(info.tobuf(tarfile.PAX_FORMAT, "utf-8", "surrogateescape"))
        if not info.isreg():
            return

        remaining = info.size
        with fsys.open(entry.path) as f:
            while remaining:
                chunk = f.read(min(CHUNK_SIZE, remaining))
                if not chunk:
                    raise exception.InputError("%s shrank while being archived" % entry.path,
                                               path=entry.path)
                out.write(chunk)
                remaining -= len(chunk)
        padding = info.size % BLOCKSIZE
        if padding:
            out.write(tarfile.NUL * (BLOCKSIZE - padding))

    @traceLog()
    def write_archive(self, dst, fsys):
        """
        Write every entry of `fsys` to `dst` as a gzip compressed tar stream.
        `dst` is never closed, only the gzip member written to it is.
        """
        # no name and a zero timestamp in the gzip header
        with gzip.GzipFile(filename="", mode="wb", fileobj=dst, mtime=0) as out:
            for entry in fsys.walk():
                self._write_entry(out, fsys, entry)
            if not self.skip_close:
                out.write(tarfile.NUL * (BLOCKSIZE * 2))


def data_tar_context(source_date_epoch, uid=0, gid=0, uname="root", gname="root"):
    """the data segment: owner overrides, per file checksums, end-of-archive written"""
    return TarContext(
        source_date_epoch=source_date_epoch,
        override_uid=uid,
        override_gid=gid,
        override_uname=uname,
        override_gname=gname,
        use_checksums=True,
    )


def multi_tar_context(source_date_epoch, uid=0, gid=0, uname="root", gname="root"):
    """control and signature segments: no checksums, no end-of-archive"""
    return TarContext(
        source_date_epoch=source_date_epoch,
        override_uid=uid,
        override_gid=gid,
        override_uname=uname,
        override_gname=gname,
        skip_close=True,
    )

