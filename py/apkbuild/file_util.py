# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
import errno
import os
import os.path
import shutil
import tempfile

from . import exception
from .trace_decorator import getLog, traceLog


@traceLog()
def mkdirIfAbsent(*args):
    for dirName in args:
        getLog().debug("ensuring that dir exists: %s", dirName)
        try:
            os.makedirs(dirName)
            getLog().debug("created dir: %s", dirName)
        except OSError as e:
            if e.errno != errno.EEXIST:
                getLog().exception("Could not create dir %s. Error: %s", dirName, e)
                raise exception.AssemblyError("Could not create dir %s. Error: %s" % (dirName, e))


def unlink_if_exists(path):
    """
    Unlink, ignore FileNotFoundError, but keep raising other exceptions.
    """
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def is_in_dir(path, directory):
    """Tests whether `path` is inside `directory`."""
    # use realpath to expand symlinks
    path = os.path.realpath(path)
    directory = os.path.realpath(directory)

    return os.path.commonpath([path, directory]) == directory


def temporary_segment(kind, tmpdir=None):
    """
    Anonymous temporary file for one archive segment, removed on close even
    when the emission fails half way.
    """
    try:
        return tempfile.TemporaryFile(prefix="apkbuild-%s-" % kind, suffix=".tar.gz", dir=tmpdir)
    except OSError as e:
        raise exception.AssemblyError("unable to open temporary file for writing: %s" % e) from e


def combine(out, *inputs):
    """copy each of the binary `inputs`, from their current position, to `out`"""
    for fileobj in inputs:
        shutil.copyfileobj(fileobj, out)
