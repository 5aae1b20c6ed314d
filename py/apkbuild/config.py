# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING

import os
import os.path

import jinja2
from templated_dictionary import TemplatedDictionary

from . import exception
from .constants import TOOL_NAME, VERSION
from .file_util import is_in_dir
from .trace_decorator import getLog, traceLog

# host/OCI architecture names to the names apk uses
APK_ARCHES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "i386": "x86",
    "i586": "x86",
    "i686": "x86",
    "386": "x86",
    "x86": "x86",
    "armv6l": "armhf",
    "arm/v6": "armhf",
    "armhf": "armhf",
    "armv7l": "armv7",
    "arm/v7": "armv7",
    "armv7": "armv7",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

def to_apk_arch(arch):
    try:
        return APK_ARCHES[arch]
    except KeyError:
        raise exception.ConfigError("Unknown architecture: %s" % arch)


@traceLog()
def setup_default_config_opts():
    "sets up default configuration."
    config_opts = TemplatedDictionary()
    config_opts['version'] = VERSION
    config_opts['tool_name'] = TOOL_NAME
    config_opts['basedir'] = os.getcwd()
    config_opts['workspace_dir'] = '{{basedir}}/workspace'
    config_opts['out_dir'] = '{{basedir}}/packages'
    config_opts['arch'] = APK_ARCHES.get(os.uname()[-1], 'x86_64')
    # optional RSA private key (PEM) the control segment is signed with
    config_opts['signing_key'] = None
    config_opts['signing_passphrase'] = None
    config_opts['source_date_epoch'] = os.environ.get('SOURCE_DATE_EPOCH', 0)
    # ownership recorded for every archived file
    config_opts['tarball_uid'] = 0
    config_opts['tarball_gid'] = 0
    config_opts['tarball_uname'] = 'root'
    config_opts['tarball_gname'] = 'root'
    # where the temporary segments are written, None means the system default
    config_opts['tmpdir'] = None
    return config_opts


def option(config_opts, key):
    """config_opts[key] with the jinja templates expanded (once expansion is on)"""
    try:
        return config_opts[key]
    except (ValueError, jinja2.TemplateError) as e:
        raise exception.ConfigError("Unable to expand config_opts['%s']: %s" % (key, e)) from e


@traceLog()
def check_config(config_opts):
    """validate the (expanded) options, normalizing epoch and arch in place"""
    value = option(config_opts, 'source_date_epoch')
    try:
        epoch = int(value)
    except (TypeError, ValueError):
        raise exception.ConfigError("Invalid source_date_epoch: %r" % (value,))
    if epoch < 0:
        raise exception.ConfigError("source_date_epoch must not be negative: %d" % epoch)
    config_opts['source_date_epoch'] = epoch
    config_opts['arch'] = to_apk_arch(option(config_opts, 'arch'))
    for key in ('workspace_dir', 'out_dir'):
        if not option(config_opts, key):
            raise exception.ConfigError("%s is not set" % key)


class BuildContext(object):
    """per build invocation settings shared by every emitted (sub)package"""

    def __init__(self, configuration, workspace_dir, out_dir, arch="x86_64",
                 signing_key=None, signing_passphrase=None, source_date_epoch=0,
                 tool_name=TOOL_NAME, tarball_uid=0, tarball_gid=0,
                 tarball_uname="root", tarball_gname="root", tmpdir=None):
        self.configuration = configuration
        self.workspace_dir = workspace_dir
        self.out_dir = out_dir
        self.arch = arch
        self.signing_key = signing_key
        self.signing_passphrase = signing_passphrase
        self.source_date_epoch = source_date_epoch
        self.tool_name = tool_name
        self.tarball_uid = tarball_uid
        self.tarball_gid = tarball_gid
        self.tarball_uname = tarball_uname
        self.tarball_gname = tarball_gname
        self.tmpdir = tmpdir

    def __repr__(self):
        return "BuildContext(%s, arch=%s)" % (self.configuration.name, self.arch)

    @classmethod
    @traceLog()
    def from_config(cls, config_opts, configuration):
        """
        Turn the jinja templating of `config_opts` on, validate it and build
        the context from the expanded values.
        """
        config_opts['__jinja_expand'] = True
        check_config(config_opts)
        opts = dict((key, option(config_opts, key)) for key in (
            'workspace_dir', 'out_dir', 'signing_key', 'signing_passphrase', 'tool_name',
            'tarball_uname', 'tarball_gname', 'tmpdir'))
        getLog().debug("build context for %s: workspace %s, output %s",
                       configuration.name, opts['workspace_dir'], opts['out_dir'])
        return cls(
            configuration,
            opts['workspace_dir'],
            opts['out_dir'],
            arch=config_opts['arch'],
            signing_key=opts['signing_key'] or None,
            signing_passphrase=opts['signing_passphrase'] or None,
            source_date_epoch=config_opts['source_date_epoch'],
            tool_name=opts['tool_name'],
            tarball_uid=int(config_opts['tarball_uid']),
            tarball_gid=int(config_opts['tarball_gid']),
            tarball_uname=opts['tarball_uname'],
            tarball_gname=opts['tarball_gname'],
            tmpdir=opts['tmpdir'] or None,
        )

    def workspace_subdir(self, package_name):
        """<workspace>/<tool>-out/<package>, where the pipeline left the built tree"""
        outroot = os.path.join(self.workspace_dir, "%s-out" % self.tool_name)
        subdir = os.path.join(outroot, package_name)
        if not package_name or not is_in_dir(subdir, outroot) or \
                os.path.realpath(subdir) == os.path.realpath(outroot):
            raise exception.ConfigError("Invalid package name: %r" % package_name)
        return subdir
