# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING

import hashlib

CHUNK_SIZE = 64 * 1024


class DigestWriter(object):
    """
    Write-only file object that forwards every byte to `fileobj` and feeds
    the very same bytes to each of the given hashlib `digests`.
    """

    def __init__(self, fileobj, *digests):
        self.fileobj = fileobj
        self.digests = digests
        self.written = 0

    def write(self, data):
        self.fileobj.write(data)
        for digest in self.digests:
            digest.update(data)
        self.written += len(data)
        return len(data)

    def flush(self):
        self.fileobj.flush()

    def writable(self):
        return True

    def hexdigest(self, index=0):
        return self.digests[index].hexdigest()

    def digest(self, index=0):
        return self.digests[index].digest()


def file_digest(fileobj, algorithm="sha256"):
    """digest of the rest of `fileobj`, read in chunks"""
    h = hashlib.new(algorithm)
    for chunk in iter(lambda: fileobj.read(CHUNK_SIZE), b""):
        h.update(chunk)
    return h
