# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING

import jinja2

from . import exception
from .trace_decorator import getLog

PKGINFO_NAME = ".PKGINFO"

CONTROL_TEMPLATE = """
# Generated by apkbuild.
pkgname = {{ package_name }}
pkgver = {{ origin.version }}-r{{ origin.epoch }}
arch = {{ arch }}
size = {{ installed_size }}
pkgdesc = {{ origin.description }}
{%- for copyright in origin.copyright %}
license = {{ copyright.license }}
{%- endfor %}
{%- for dep in dependencies.runtime %}
depend = {{ dep }}
{%- endfor %}
{%- for dep in dependencies.provides %}
provides = {{ dep }}
{%- endfor %}
datahash = {{ data_hash }}
"""

_environment = jinja2.Environment(
    autoescape=False,
    keep_trailing_newline=True,
    undefined=jinja2.StrictUndefined,
)
_template = _environment.from_string(CONTROL_TEMPLATE)


def render_control(pc):
    """.PKGINFO content for the fully populated PackageContext `pc`"""
    try:
        return _template.render(
            package_name=pc.package_name,
            origin=pc.origin,
            arch=pc.arch,
            installed_size=pc.installed_size,
            dependencies=pc.dependencies,
            data_hash=pc.data_hash,
        )
    except jinja2.TemplateError as e:
        getLog().exception("control template failed for %s", pc.package_name)
        raise exception.RenderError("unable to process control template: %s" % e) from e


def parse_pkginfo(text):
    """list of (key, value) pairs of a .PKGINFO, comments and blank lines skipped"""
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    fields = []
    for line in text.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        key, sep, value = line.partition(" = ")
        if not sep:
            raise ValueError("malformed .PKGINFO line: %r" % line)
        fields.append((key, value))
    return fields
