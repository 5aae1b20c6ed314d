# -*- coding: utf-8 -*-
# vim:expandtab:autoindent:tabstop=4:shiftwidth=4:filetype=python:textwidth=0:
# License: GPL2 or later see COPYING
# Originally written by Seth Vidal
# Sections taken from Mach by Thomas Vander Stichele
"""define most of the exceptions used."""

# classes


class Error(Exception):
    "base class for our errors."
    def __init__(self, msg, status=None):
        Exception.__init__(self)
        self.msg = msg
        self.resultcode = 1
        if status is not None:
            self.resultcode = status

    def __str__(self):
        return self.msg


# result/exit codes
# 0 = yay!
# 1 = something happened  - it's bad
# 3 = invalid configuration
# 20 = the built tree could not be walked or read
# 30 = control template failed to render
# 40 = signing failed
# 50 = the package archive could not be assembled
# 110 = unbalanced call to state functions

def get_class_by_code(exit_code):
    if exit_code == 0:
        return None
    elif exit_code == 1:
        return Error("Unknown error happened.")
    elif exit_code == 3:
        return ConfigError("Invalid configuration.")
    elif exit_code == 20:
        return InputError("Unable to read the package tree.")
    elif exit_code == 30:
        return RenderError("Unable to render the control data.")
    elif exit_code == 40:
        return SignError("Unable to sign the package.")
    elif exit_code == 50:
        return AssemblyError("Unable to assemble the package archive.")
    elif exit_code == 110:
        return StateError("Unbalanced call to state functions. Check the state log.")
    else:
        return Error("Unknown error {} happened.".format(exit_code), exit_code)


class ConfigError(Error):
    "invalid configuration"
    def __init__(self, msg):
        Error.__init__(self, msg)
        self.msg = msg
        self.resultcode = 3


class InputError(Error):
    """the built tree could not be walked, or a file in it could not be read"""
    def __init__(self, msg, path=None):
        Error.__init__(self, msg)
        self.msg = msg
        self.path = path
        self.resultcode = 20


class RenderError(Error):
    "control template failed to render, this is a bug."
    def __init__(self, msg):
        Error.__init__(self, msg)
        self.msg = msg
        self.resultcode = 30


class SignError(Error):
    "key material unreadable, bad passphrase or signing backend failure."
    def __init__(self, msg):
        Error.__init__(self, msg)
        self.msg = msg
        self.resultcode = 40


class AssemblyError(Error):
    "segment or output file could not be created, written or copied."
    def __init__(self, msg):
        Error.__init__(self, msg)
        self.msg = msg
        self.resultcode = 50


class StateError(Error):
    "unbalanced call to state functions"

    def __init__(self, msg):
        Error.__init__(self, msg)
        self.msg = msg
        self.resultcode = 110
