# This file is part of dosync. See LICENSE file for license information.

import logging
import os

from dosync import util

LOG = logging.getLogger(__name__)

SSH_DIR = "/root/.ssh"


def inject_authorized_keys(keys, ssh_dir=SSH_DIR) -> bool:
    """Append keys to authorized_keys unless that exact text is present.

    @return: True if the file was changed.
    """
    if not keys:
        return False
    if not os.path.isdir(ssh_dir):
        util.ensure_dir(ssh_dir, mode=0o700)
    auth_key_fn = os.path.join(ssh_dir, "authorized_keys")
    key_bytes = keys.encode()
    existing = util.load_file(auth_key_fn, quiet=True, decode=False) or b""
    if key_bytes in existing:
        LOG.debug("SSH public keys already present in %s", auth_key_fn)
        return False
    with open(auth_key_fn, "ab") as fh:
        fh.write(b"\n" + key_bytes + b"\n")
    os.chmod(auth_key_fn, 0o600)
    LOG.info("Added SSH public keys from metadata service.")
    return True
