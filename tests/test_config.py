"""
Tests for apkbuild.config
"""

# pylint: disable=missing-function-docstring

import os
from unittest import mock

import pytest

from apkbuild import config
from apkbuild import exception


def test_to_apk_arch():
    assert config.to_apk_arch("amd64") == "x86_64"
    assert config.to_apk_arch("arm64") == "aarch64"
    assert config.to_apk_arch("i686") == "x86"
    assert config.to_apk_arch("armv7l") == "armv7"
    with pytest.raises(exception.ConfigError):
        config.to_apk_arch("pdp11")


def test_defaults():
    with mock.patch.dict(os.environ, {"SOURCE_DATE_EPOCH": "1234"}):
        opts = config.setup_default_config_opts()
    assert opts["tool_name"] == "apkbuild"
    assert opts["source_date_epoch"] == "1234"
    assert opts["signing_key"] is None
    assert (opts["tarball_uid"], opts["tarball_uname"]) == (0, "root")
    assert opts["arch"] in config.APK_ARCHES.values()


def test_templates_expand_once_enabled():
    opts = config.setup_default_config_opts()
    opts["basedir"] = "/srv/build"
    opts["signing_key"] = "{{workspace_dir}}/keys/packager.rsa"
    assert opts["workspace_dir"] == "{{basedir}}/workspace"

    opts["__jinja_expand"] = True
    assert opts["workspace_dir"] == "/srv/build/workspace"
    assert opts["out_dir"] == "/srv/build/packages"
    # nested references are expanded too
    assert opts["signing_key"] == "/srv/build/workspace/keys/packager.rsa"


def test_expansion_loop(package):
    opts = config.setup_default_config_opts()
    opts["workspace_dir"] = "{{ out_dir }}"
    opts["out_dir"] = "[ {{ workspace_dir }} ]"
    with pytest.raises(exception.ConfigError) as excinfo:
        config.BuildContext.from_config(opts, package)
    assert "workspace_dir" in str(excinfo.value)


def _checked(**values):
    opts = config.setup_default_config_opts()
    opts["__jinja_expand"] = True
    opts.update(values)
    return opts


@pytest.mark.parametrize("key,value", [
    ("source_date_epoch", "yesterday"),
    ("source_date_epoch", -1),
    ("arch", "pdp11"),
    ("out_dir", ""),
    ("workspace_dir", None),
])
def test_check_config_rejects(key, value):
    opts = _checked(**{key: value})
    with pytest.raises(exception.ConfigError) as excinfo:
        config.check_config(opts)
    assert excinfo.value.resultcode == 3


def test_check_config_normalizes():
    opts = _checked(source_date_epoch="42", arch="arm64")
    config.check_config(opts)
    assert opts["source_date_epoch"] == 42
    assert opts["arch"] == "aarch64"


def test_from_config(package, tmp_path):
    opts = config.setup_default_config_opts()
    opts["basedir"] = str(tmp_path)
    opts["arch"] = "amd64"
    opts["source_date_epoch"] = "7"
    opts["signing_key"] = ""
    ctx = config.BuildContext.from_config(opts, package)

    assert ctx.configuration is package
    assert ctx.workspace_dir == str(tmp_path / "workspace")
    assert ctx.out_dir == str(tmp_path / "packages")
    assert ctx.arch == "x86_64"
    assert ctx.source_date_epoch == 7
    assert ctx.signing_key is None


def test_workspace_subdir(build_context):
    assert build_context.workspace_subdir("hello") == os.path.join(
        build_context.workspace_dir, "apkbuild-out", "hello")


@pytest.mark.parametrize("name", ["", ".", "../hello", "/etc"])
def test_workspace_subdir_escape(build_context, name):
    with pytest.raises(exception.ConfigError):
        build_context.workspace_subdir(name)
