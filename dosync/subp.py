# This file is part of dosync. See LICENSE file for license information.
"""Common utility functions for interacting with subprocess."""

import logging
import subprocess
from collections import namedtuple
from typing import List

LOG = logging.getLogger(__name__)

SubpResult = namedtuple("SubpResult", ["stdout", "stderr"])


class ProcessExecutionError(IOError):
    MESSAGE_TMPL = (
        "%(description)s\n"
        "Command: %(cmd)s\n"
        "Exit code: %(exit_code)s\n"
        "Reason: %(reason)s\n"
        "Stdout: %(stdout)s\n"
        "Stderr: %(stderr)s"
    )
    empty_attr = "-"

    def __init__(
        self,
        stdout=None,
        stderr=None,
        exit_code=None,
        cmd=None,
        description=None,
        reason=None,
        errno=None,
    ):
        self.cmd = cmd or self.empty_attr
        if description:
            self.description = description
        elif not exit_code and errno:
            self.description = "Exec format error. Missing #! in script?"
        else:
            self.description = "Unexpected error while running command."
        self.exit_code = exit_code if isinstance(exit_code, int) else "-"
        self.stderr = stderr if stderr else ""
        self.stdout = stdout if stdout else ""
        self.reason = reason or self.empty_attr
        self.errno = errno
        message = self.MESSAGE_TMPL % {
            "description": self.description,
            "cmd": self.cmd,
            "exit_code": self.exit_code,
            "stdout": self.stdout or self.empty_attr,
            "stderr": self.stderr or self.empty_attr,
            "reason": self.reason,
        }
        IOError.__init__(self, message)


def subp(args: List[str]) -> SubpResult:
    """Run a subprocess.

    :param args: command to run in a list. [cmd, arg1, arg2...]

    :return
        stdout and stderr as decoded strings.
    :raises ProcessExecutionError: if the command cannot be run or exits
        non-zero.
    """
    LOG.debug("Running command %s", args)
    try:
        sp = subprocess.run(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            check=False,
        )
    except OSError as e:
        raise ProcessExecutionError(
            cmd=args,
            reason=e,
            errno=e.errno,
            stdout="-",
            stderr="-",
        ) from e

    out = sp.stdout.decode("utf-8", errors="replace") if sp.stdout else ""
    err = sp.stderr.decode("utf-8", errors="replace") if sp.stderr else ""
    if sp.returncode != 0:
        raise ProcessExecutionError(
            stdout=out, stderr=err, exit_code=sp.returncode, cmd=args
        )
    return SubpResult(out, err)
