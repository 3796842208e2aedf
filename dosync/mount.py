# This file is part of dosync. See LICENSE file for license information.
"""Mount helpers for the persistent droplet volume."""
import contextlib
import logging
import os
from typing import Iterator, Optional

from dosync.subp import ProcessExecutionError, subp

LOG = logging.getLogger(__name__)

BY_LABEL_DIR = "/dev/disk/by-label"


def get_device_path(label, by_label_dir=BY_LABEL_DIR) -> Optional[str]:
    """
    Get the device path for a filesystem label.

    :param label: The label of the partition.
    :param by_label_dir: Directory of udev maintained label symlinks.
    :return: The device path or None if not found.
    """
    device = os.path.join(by_label_dir, label)
    if not os.path.exists(device):
        LOG.debug("Block device with label %s does not exist", label)
        return None
    return device


def mount_device(device, mount_point) -> bool:
    """
    Mount the device to the mount point.

    :param device: The device to mount.
    :param mount_point: The mount point directory.
    :return: True if the mount succeeded.
    """
    try:
        LOG.debug("running mount command: mount %s %s", device, mount_point)
        subp(["mount", device, mount_point])
    except ProcessExecutionError as e:
        LOG.error("Failed to mount %s to %s: %s", device, mount_point, e)
        return False
    LOG.debug("Mounted %s to %s successfully", device, mount_point)
    return True


def unmount_device(mount_point) -> bool:
    try:
        subp(["umount", mount_point])
    except ProcessExecutionError as e:
        LOG.error("Failed to unmount %s: %s", mount_point, e)
        return False
    LOG.debug("Unmounted %s", mount_point)
    return True


@contextlib.contextmanager
def mounted_volume(
    label, mount_point, by_label_dir=BY_LABEL_DIR
) -> Iterator[Optional[str]]:
    """Mount the volume carrying label for the duration of the context.

    Yields the mount point, or None when the volume is absent or could not
    be mounted. Unmounting is attempted even if the body raises.
    """
    device = get_device_path(label, by_label_dir)
    if device is None:
        yield None
        return
    try:
        os.makedirs(mount_point, exist_ok=True)
    except OSError as e:
        LOG.error("Unable to create mount point %s: %s", mount_point, e)
        yield None
        return
    if not mount_device(device, mount_point):
        yield None
        return
    try:
        yield mount_point
    finally:
        unmount_device(mount_point)
