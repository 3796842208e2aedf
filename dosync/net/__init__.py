# This file is part of dosync. See LICENSE file for license information.

import logging
import os
from typing import Dict, Optional

LOG = logging.getLogger(__name__)
SYS_CLASS_NET = "/sys/class/net/"


def netmask_to_prefix(netmask: str) -> int:
    """Count the leading one bits of a dotted quad netmask.

    Octets are scanned left to right and counting stops at the first zero
    bit, so a non-contiguous mask is truncated rather than rejected.

    @raises ValueError: if netmask is not four dot separated integers.
    """
    octets = netmask.strip().split(".")
    if len(octets) != 4:
        raise ValueError("Invalid netmask: %r" % netmask)
    prefix = 0
    for octet in octets:
        value = int(octet)
        if not 0 <= value <= 255:
            raise ValueError("Invalid netmask: %r" % netmask)
        for bit in (128, 64, 32, 16, 8, 4, 2, 1):
            if not value & bit:
                return prefix
            prefix += 1
    return prefix


def normalize_mac(mac: str) -> str:
    return mac.strip().lower().replace("-", ":")


def read_sys_net(devname, path, sys_class_net=SYS_CLASS_NET) -> str:
    dev_path = os.path.join(sys_class_net, devname, path)
    with open(dev_path, "r") as fh:
        return fh.read().strip()


def get_interfaces_by_mac(sys_class_net=SYS_CLASS_NET) -> Dict[str, str]:
    """Map each hardware address present on the host to an interface name.

    Interfaces are visited in sorted name order and the first name seen for
    a given address wins.
    """
    ret: Dict[str, str] = {}
    try:
        devs = sorted(os.listdir(sys_class_net))
    except OSError as e:
        LOG.warning("Unable to list interfaces in %s: %s", sys_class_net, e)
        return ret
    for name in devs:
        try:
            mac = read_sys_net(name, "address", sys_class_net=sys_class_net)
        except OSError:
            LOG.debug("No readable address for interface %s", name)
            continue
        if not mac:
            continue
        ret.setdefault(normalize_mac(mac), name)
    return ret


def find_interface_by_mac(
    mac: str, sys_class_net=SYS_CLASS_NET
) -> Optional[str]:
    """Return the local interface name holding mac, or None."""
    return get_interfaces_by_mac(sys_class_net).get(normalize_mac(mac))
