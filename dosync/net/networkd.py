# This file is part of dosync. See LICENSE file for license information.
"""Render systemd-networkd documents from interface metadata.

One ``dosync-<name>.network`` file is produced per matched interface. The
file is regenerated from scratch on every boot; operators who need settings
the metadata service does not carry can drop a
``dosync-<name>.network.tail`` file into the template directory and it is
appended verbatim.
"""

import logging
import os
from typing import List, NamedTuple, Optional

from dosync import atomic_helper, util
from dosync.net import netmask_to_prefix

LOG = logging.getLogger(__name__)

RUN_DIR = "/run/systemd/network"
TEMPLATE_DIR = "/etc/systemd/network/template"
HEADER = "# Generated by dosync"


class AddressAssignment(NamedTuple):
    protocol: str
    address: str
    prefix: int
    gateway: Optional[str] = None


class NetworkConfigDocument(NamedTuple):
    name: str
    addresses: List[AddressAssignment]
    tail: Optional[bytes] = None


def network_filename(name: str) -> str:
    return "dosync-%s.network" % name


def tail_path(name: str, template_dir=TEMPLATE_DIR) -> str:
    return os.path.join(template_dir, network_filename(name) + ".tail")


def _fetch_group(fetcher, record, group, prefix_key):
    """Return (address, prefix) for one attribute group or None."""
    base = record.path + group
    address = fetcher.fetch(base + "address")
    raw_prefix = fetcher.fetch(base + prefix_key)
    if not address or not raw_prefix:
        LOG.warning(
            "Incomplete %s data for %s, skipping", group, record.mac
        )
        return None
    try:
        if prefix_key == "netmask":
            prefix = netmask_to_prefix(raw_prefix)
        else:
            prefix = int(raw_prefix.strip())
    except ValueError:
        LOG.warning(
            "Invalid %s%s %r for %s, skipping",
            group,
            prefix_key,
            raw_prefix,
            record.mac,
        )
        return None
    return address.strip(), prefix


def _fetch_gateway(fetcher, record, group):
    if record.kind == "private":
        return None
    gateway = fetcher.fetch(record.path + group + "gateway")
    if not gateway:
        LOG.warning("No %s gateway available for %s", group, record.mac)
        return None
    return gateway.strip()


def synthesize(
    fetcher, record, local_name, template_dir=TEMPLATE_DIR
) -> NetworkConfigDocument:
    """Build the network document for one interface record.

    Attribute groups are processed in a fixed order (ipv4, anchor_ipv4,
    ipv6) so the rendered document is stable for identical metadata.
    Gateways are never emitted for private interfaces nor for anchor
    addresses.
    """
    addresses: List[AddressAssignment] = []
    if "ipv4/" in record.attributes:
        found = _fetch_group(fetcher, record, "ipv4/", "netmask")
        if found:
            address, prefix = found
            gateway = _fetch_gateway(fetcher, record, "ipv4/")
            addresses.append(
                AddressAssignment("ipv4", address, prefix, gateway)
            )
            LOG.info(
                "Added IPv4 address %s/%s on %s.", address, prefix, local_name
            )
    if "anchor_ipv4/" in record.attributes:
        found = _fetch_group(fetcher, record, "anchor_ipv4/", "netmask")
        if found:
            address, prefix = found
            addresses.append(AddressAssignment("anchor_ipv4", address, prefix))
            LOG.info(
                "Added Anchor IPv4 address %s/%s on %s.",
                address,
                prefix,
                local_name,
            )
    if "ipv6/" in record.attributes:
        found = _fetch_group(fetcher, record, "ipv6/", "cidr")
        if found:
            address, prefix = found
            gateway = _fetch_gateway(fetcher, record, "ipv6/")
            addresses.append(
                AddressAssignment("ipv6", address, prefix, gateway)
            )
            LOG.info(
                "Added IPv6 address %s/%s on %s.", address, prefix, local_name
            )

    tail = None
    path = tail_path(local_name, template_dir)
    if os.access(path, os.R_OK):
        tail = util.load_file(path, quiet=True, decode=False)
        if tail is not None:
            LOG.info("Appended user specified config for %s.", local_name)
    return NetworkConfigDocument(local_name, addresses, tail)


def render(document: NetworkConfigDocument) -> bytes:
    lines = [
        HEADER,
        "[Match]",
        "Name=%s" % document.name,
        "[Network]",
    ]
    for assignment in document.addresses:
        lines.append(
            "Address=%s/%s" % (assignment.address, assignment.prefix)
        )
        if assignment.gateway:
            lines.append("Gateway=%s" % assignment.gateway)
    content = ("\n".join(lines) + "\n").encode()
    if document.tail:
        content += document.tail
    return content


def write_network_config(document: NetworkConfigDocument, run_dir=RUN_DIR):
    """Write the document, replacing any earlier one for the interface."""
    util.ensure_dir(run_dir)
    path = os.path.join(run_dir, network_filename(document.name))
    atomic_helper.write_file(
        path, render(document), mode=0o644, omode="wb"
    )
    LOG.debug("Wrote network config for %s to %s", document.name, path)
    return path
