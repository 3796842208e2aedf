# This file is part of dosync. See LICENSE file for license information.
"""Detect droplets booted from a snapshot and reset credentials.

The persistent DOROOT volume carries a shadow file whose root password is
replaced with a sentinel on every boot. A snapshot restore puts a real
password hash back into that file, so finding anything other than the
sentinel is how a restore is recognised.
"""

import glob
import logging
import os

from dosync import atomic_helper, subp

LOG = logging.getLogger(__name__)

SENTINEL = "z"
SENTINEL_SHADOW = "root:%s:1::::::\nnobody:%s:1::::::\n" % (
    SENTINEL,
    SENTINEL,
)
HOST_KEY_DIR = "/etc/ssh"


def read_root_password(shadow_path) -> str:
    """Return the encrypted password field of the root entry.

    A shadow file without a root entry reads as an empty password.
    """
    with open(shadow_path, "rb") as fh:
        for line in fh:
            fields = line.rstrip(b"\n").split(b":")
            if fields[0] == b"root" and len(fields) > 1:
                return os.fsdecode(fields[1])
    return ""


def remove_host_keys(host_key_dir=HOST_KEY_DIR):
    paths = [os.path.join(host_key_dir, "ssh_host_key")]
    pattern = os.path.join(host_key_dir, "ssh_host_*_key")
    paths.extend(sorted(glob.glob(pattern)))
    for path in paths:
        try:
            os.unlink(path)
            LOG.debug("Removed host key %s", path)
        except FileNotFoundError:
            pass
        except OSError as e:
            LOG.warning("Unable to remove host key %s: %s", path, e)


def _reset_password(encrypted_password):
    try:
        subp.subp(["usermod", "-p", encrypted_password, "root"])
    except subp.ProcessExecutionError as e:
        LOG.warning("Unable to restore root password: %s", e)
    if len(encrypted_password) > 1:
        try:
            subp.subp(["chage", "-d", "0", "root"])
        except subp.ProcessExecutionError as e:
            LOG.warning("Unable to expire root password: %s", e)


def reconcile(persistent_root, host_key_dir=HOST_KEY_DIR) -> bool:
    """Reset credentials if the persistent shadow no longer holds the sentinel.

    @param persistent_root: Mount point of the persistent volume.
    @param host_key_dir: Directory of the running system's ssh host keys.
    @return: True if a snapshot restore was detected and handled.
    """
    etc_dir = os.path.join(persistent_root, "etc")
    try:
        os.makedirs(etc_dir, exist_ok=True)
    except OSError as e:
        LOG.warning("Unable to create %s: %s", etc_dir, e)
        return False

    shadow_path = os.path.join(etc_dir, "shadow")
    reset = False
    if os.path.exists(shadow_path):
        encrypted_password = read_root_password(shadow_path)
        if encrypted_password != SENTINEL:
            LOG.info("Snapshot restore detected.")
            _reset_password(encrypted_password)
            LOG.info("Password has been reset.")
            remove_host_keys(host_key_dir)
            LOG.info("SSH host keys will be regenerated.")
            reset = True

    atomic_helper.write_file(shadow_path, SENTINEL_SHADOW, mode=0o600)
    return reset
