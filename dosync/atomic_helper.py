# This file is part of dosync. See LICENSE file for license information.

import logging
import os
import tempfile

LOG = logging.getLogger(__name__)


def write_file(filename, content, mode=0o644, omode="wb"):
    """open filename in mode omode, write content, set permissions to mode

    The file is written to a temporary file in the same directory and renamed
    over filename, so readers never see a partially written file.
    """
    tf = None
    try:
        dirname = os.path.dirname(filename)
        tf = tempfile.NamedTemporaryFile(
            dir=dirname, delete=False, mode=omode
        )
        LOG.debug(
            "Atomically writing to file %s (via temporary file %s) - %s: [%o]",
            filename,
            tf.name,
            omode,
            mode,
        )
        if "b" in omode and isinstance(content, str):
            content = content.encode()
        tf.write(content)
        tf.close()
        os.chmod(tf.name, mode)
        os.rename(tf.name, filename)
    except Exception as e:
        if tf is not None:
            os.unlink(tf.name)
        raise e
