# -*- coding: utf-8 -*-
# vim: noai:ts=4:sw=4:expandtab

from .exception import StateError
from .trace_decorator import getLog


class State(object):
    """Tracks the emission stages, every start() must be matched by finish()"""
    def __init__(self, name=None):
        self._state = []
        # finished stages in order, for callers inspecting a run
        self.done = []
        # can be "unknown", "success" or "fail"
        self.result = "unknown"
        self.name = name
        self.state_log = getLog("apkbuild.emit.state")

    def state(self):
        if not len(self._state):
            raise StateError("state called on empty state stack")
        return self._state[-1]

    def start(self, state):
        if state is None:
            raise StateError("start called with None State")
        self._state.append(state)
        if self.name:
            self.state_log.info("Start(%s): %s", self.name, state)
        else:
            self.state_log.info("Start: %s", state)

    def finish(self, state):
        if len(self._state) == 0:
            raise StateError("finish called on empty state list")
        current = self._state.pop()
        if state != current:
            raise StateError("state finish mismatch: current: %s, state: %s" % (current, state))
        self.done.append(state)
        if self.name:
            self.state_log.info("Finish(%s): %s", self.name, state)
        else:
            self.state_log.info("Finish: %s", state)

    def alldone(self):
        if len(self._state) != 0:
            raise StateError("alldone called with pending states: %s" % ",".join(self._state))
