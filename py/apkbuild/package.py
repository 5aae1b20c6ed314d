# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
"""
Emitting .apk packages from the trees the build pipeline populated.

An .apk is the concatenation of gzip compressed tar segments

    [signature.tar.gz] control.tar.gz data.tar.gz

where control holds the .PKGINFO (including the SHA-256 of the data
segment) and the optional signature is an RSA signature of the SHA-1 of
the control segment.  Consumers verify the signature before touching the
data, so the order is fixed.
"""

import contextlib
import hashlib
import logging
import os
import tarfile

from . import control
from . import depgen
from . import exception
from . import file_util
from . import fs
from . import sign
from . import tarball
from .hashing import DigestWriter
from .state import State
from .trace_decorator import PrefixLog, traceLog


class Copyright(object):
    def __init__(self, license, paths=None, attestation=""):
        self.license = license
        self.paths = list(paths or [])
        self.attestation = attestation

    def __repr__(self):
        return "Copyright(%r)" % self.license


class Subpackage(object):
    """additional package split from the tree of the main one"""

    def __init__(self, name, dependencies=None):
        self.name = name
        self.dependencies = dependencies or depgen.Dependencies()

    def __repr__(self):
        return "Subpackage(%r)" % self.name

    def emit(self, ctx):
        pc = PackageContext(ctx, ctx.configuration, self.name, self.dependencies)
        return pc.emit_package()


class Package(object):
    """identity of the package being built, as loaded from its definition"""

    def __init__(self, name, version, epoch=0, description="", copyright=None,
                 dependencies=None, subpackages=None):
        self.name = name
        self.version = version
        self.epoch = int(epoch)
        self.description = description
        self.copyright = list(copyright or [])
        self.dependencies = dependencies or depgen.Dependencies()
        self.subpackages = list(subpackages or [])

    def __repr__(self):
        return "Package(%s-%s-r%d)" % (self.name, self.version, self.epoch)

    def emit(self, ctx):
        return Subpackage(self.name, self.dependencies).emit(ctx)

    @traceLog()
    def emit_all(self, ctx):
        """emit the main package and then every subpackage, returns the .apk paths"""
        filenames = [self.emit(ctx)]
        for subpackage in self.subpackages:
            filenames.append(subpackage.emit(ctx))
        return filenames


class PackageContext(object):
    """
    One emission of one (sub)package for one architecture.

    installed_size, data_hash and control_hash are the results of the last
    emit_package() run, kept for callers inspecting it; the package itself
    only embeds installed_size and data_hash.
    """

    def __init__(self, context, origin, package_name, dependencies=None):
        self.context = context
        self.origin = origin
        self.package_name = package_name
        self.arch = context.arch
        self.out_dir = os.path.join(context.out_dir, context.arch)
        # the package definition is shared, the generated set is ours
        self.dependencies = (dependencies or depgen.Dependencies()).copy()
        self.installed_size = 0
        self.data_hash = ""
        self.control_hash = ""
        self.log = PrefixLog(logging.getLogger("apkbuild.emit"),
                             "apkbuild (%s/%s): " % (package_name, context.arch))
        self.state = State("%s/%s" % (package_name, context.arch))

    def __repr__(self):
        return "PackageContext(%s)" % self.identity()

    def identity(self):
        return "%s-%s-r%d" % (self.package_name, self.origin.version, self.origin.epoch)

    def filename(self):
        return os.path.join(self.out_dir, "%s.apk" % self.identity())

    def workspace_subdir(self):
        return self.context.workspace_subdir(self.package_name)

    def fs(self):
        return fs.DirFS(self.workspace_subdir())

    def signature_name(self):
        return sign.signature_name(self.context.signing_key)

    def generate_dependencies(self, generators=None):
        return depgen.generate_dependencies(self, generators)

    def _tar_overrides(self):
        ctx = self.context
        return dict(uid=ctx.tarball_uid, gid=ctx.tarball_gid,
                    uname=ctx.tarball_uname, gname=ctx.tarball_gname)

    @contextlib.contextmanager
    def _stage(self, name, failure, error_class=exception.AssemblyError):
        """
        Run one emission stage; errors are prefixed with `failure` and non
        apkbuild errors are converted to `error_class`.
        """
        self.state.start(name)
        try:
            yield
        except exception.Error as e:
            self.state.result = "fail"
            e.msg = "%s: %s" % (failure, e.msg)
            raise
        except (OSError, ValueError, tarfile.TarError) as e:
            self.state.result = "fail"
            raise error_class("%s: %s" % (failure, e)) from e
        finally:
            self.state.finish(name)

    @traceLog()
    def emit_package(self):
        """build the .apk for this context, returns its path"""
        self.log.info("generating package %s", self.identity())
        fsys = self.fs()
        sde = self.context.source_date_epoch
        tmpdir = self.context.tmpdir

        with contextlib.ExitStack() as stack:
            with self._stage("sizing", "unable to preprocess package data", exception.InputError):
                self.installed_size = fs.installed_size(fsys)

            with self._stage("dependency-generation", "unable to build final dependencies set",
                             exception.InputError):
                self.generate_dependencies()

            with self._stage("data-write", "unable to write data tarball"):
                data_tar_gz = stack.enter_context(file_util.temporary_segment("data", tmpdir))
                data_mw = DigestWriter(data_tar_gz, hashlib.sha256())
                tarball.data_tar_context(sde, **self._tar_overrides()).write_archive(data_mw, fsys)
                self.data_hash = data_mw.hexdigest()
                self.log.info("  data.tar.gz installed-size: %d", self.installed_size)
                self.log.info("  data.tar.gz digest: %s", self.data_hash)
                data_tar_gz.seek(0)

            multitarctx = tarball.multi_tar_context(sde, **self._tar_overrides())

            with self._stage("control-render", "unable to process control template",
                             exception.RenderError):
                control_fs = fs.MemFS()
                control_fs.write_file(control.PKGINFO_NAME, control.render_control(self), 0o644)

            with self._stage("control-write", "unable to write control tarball"):
                control_tar_gz = stack.enter_context(file_util.temporary_segment("control", tmpdir))
                control_mw = DigestWriter(control_tar_gz, hashlib.sha1())
                multitarctx.write_archive(control_mw, control_fs)
                control_digest = control_mw.digest()
                self.control_hash = control_mw.hexdigest()
                self.log.info("  control.tar.gz digest: %s", self.control_hash)
                control_tar_gz.seek(0)

            combined_parts = [control_tar_gz, data_tar_gz]

            if self.context.signing_key:
                with self._stage("signing", "unable to generate signature", exception.SignError):
                    signature = sign.rsa_sign_sha1_digest(control_digest, self.context.signing_key,
                                                          self.context.signing_passphrase)
                    signature_fs = fs.MemFS()
                    signature_fs.write_file(self.signature_name(), signature, 0o644)

                with self._stage("signature-write", "unable to write signature tarball"):
                    signature_tar_gz = stack.enter_context(
                        file_util.temporary_segment("signature", tmpdir))
                    multitarctx.write_archive(signature_tar_gz, signature_fs)
                    signature_tar_gz.seek(0)

                combined_parts.insert(0, signature_tar_gz)

            with self._stage("assemble", "unable to write apk file"):
                self._assemble(combined_parts)

        self.state.alldone()
        self.state.result = "success"
        self.log.info("wrote %s", self.filename())
        return self.filename()

    def _assemble(self, parts):
        file_util.mkdirIfAbsent(self.out_dir)
        filename = self.filename()
        try:
            with open(filename, "wb") as out:
                file_util.combine(out, *parts)
        except BaseException:
            # never leave a truncated package behind
            file_util.unlink_if_exists(filename)
            raise
