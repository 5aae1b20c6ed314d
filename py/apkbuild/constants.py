# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:

VERSION = "0.1.0"
TOOL_NAME = "apkbuild"
