# This file is part of dosync. See LICENSE file for license information.

import logging
import logging.handlers
import os
import sys

SYSLOG_TAG = "digitalocean-synchronize"
SYSLOG_ADDRESS = "/dev/log"

DEFAULT_FORMAT = "[%(asctime)s] %(message)s"
SYSLOG_FORMAT = SYSLOG_TAG + ": %(message)s"


def setup_logging(debug=False, syslog_address=SYSLOG_ADDRESS):
    """Route the dosync logger to syslog, or to stderr without syslog."""
    root = logging.getLogger("dosync")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handler: logging.Handler
    if syslog_address and os.path.exists(syslog_address):
        try:
            handler = logging.handlers.SysLogHandler(address=syslog_address)
            handler.setFormatter(logging.Formatter(SYSLOG_FORMAT))
        except OSError as e:
            sys.stderr.write(
                "Unable to use syslog at %s: %s\n" % (syslog_address, e)
            )
            handler = _stderr_handler()
    else:
        handler = _stderr_handler()

    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    return handler


def _stderr_handler():
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    return handler
