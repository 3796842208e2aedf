#!/usr/bin/env python3

# This file is part of dosync. See LICENSE file for license information.
"""Synchronize droplet configuration from the DigitalOcean metadata service."""
import argparse
import logging
import os
import sys
from collections import namedtuple
from typing import List

from dosync import log, mount, net, shadow, ssh_util, subp, util
from dosync.net import networkd
from dosync.net.ephemeral import EphemeralLinkLocalNetwork
from dosync.net.netops import Iproute2
from dosync.sources.DataSourceDigitalOcean import (
    DataSourceDigitalOcean,
    MetadataFetcher,
    fetch_params_from_config,
)

LOG = logging.getLogger(__name__)
NAME = "dosync"

SyncResult = namedtuple("SyncResult", ["reset", "reachable", "documents"])


def reconcile_credentials(cfg) -> bool:
    """Run the snapshot credential check against the persistent volume."""
    label = cfg["disk_label"]
    with mount.mounted_volume(
        label, cfg["mount_point"], by_label_dir=cfg["by_label_dir"]
    ) as persistent_root:
        if persistent_root is None:
            LOG.warning("Unable to check %s for snapshot check!", label)
            return False
        try:
            return shadow.reconcile(
                persistent_root, host_key_dir=cfg["host_key_dir"]
            )
        except OSError as e:
            LOG.error("Snapshot check on %s failed: %s", label, e)
            return False


def apply_hostname(hostname, hostname_file="/etc/hostname") -> bool:
    """Set the hostname unless a hostname file already exists.

    An existing file is left alone even when the metadata reports a
    different name.
    """
    if os.path.exists(hostname_file):
        LOG.debug("%s exists, not setting hostname", hostname_file)
        return False
    if not hostname:
        return False
    with open(hostname_file, "w") as fh:
        fh.write("%s\n" % hostname)
    try:
        subp.subp(["hostname", hostname])
    except subp.ProcessExecutionError as e:
        LOG.warning("Unable to set running hostname to %s: %s", hostname, e)
    LOG.info("Hostname set to %s from metadata service.", hostname)
    return True


def configure_interfaces(ds: DataSourceDigitalOcean, cfg) -> List[str]:
    """Write a network document for every metadata interface present here."""
    written = []
    for record in ds.get_interfaces():
        name = net.find_interface_by_mac(record.mac, cfg["sys_class_net"])
        if name is None:
            LOG.debug("No local interface with mac %s, skipping", record.mac)
            continue
        document = networkd.synthesize(
            ds.fetcher, record, name, template_dir=cfg["template_dir"]
        )
        try:
            written.append(
                networkd.write_network_config(document, cfg["run_dir"])
            )
        except OSError as e:
            LOG.error("Unable to write network config for %s: %s", name, e)
    return written


def setup_from_metadata_service(ds: DataSourceDigitalOcean, cfg) -> List[str]:
    keys = ds.get_public_ssh_keys()
    if keys:
        try:
            ssh_util.inject_authorized_keys(keys, ssh_dir=cfg["ssh_dir"])
        except OSError as e:
            LOG.error("Unable to add SSH public keys: %s", e)

    if not os.path.exists(cfg["hostname_file"]):
        try:
            apply_hostname(ds.get_hostname(), cfg["hostname_file"])
        except OSError as e:
            LOG.error("Unable to write %s: %s", cfg["hostname_file"], e)

    return configure_interfaces(ds, cfg)


def synchronize(cfg, net_ops=Iproute2) -> SyncResult:
    """Run one full boot time synchronization.

    The credential check always finishes before the network is touched. If
    the metadata service cannot be reached the run still succeeds, it just
    configures nothing.
    """
    reset = reconcile_credentials(cfg)

    ds = DataSourceDigitalOcean(
        MetadataFetcher(fetch_params_from_config(cfg))
    )
    documents: List[str] = []
    with EphemeralLinkLocalNetwork(
        cfg["interface"], cfg["link_local_cidr"], net_ops=net_ops
    ):
        reachable = ds.is_reachable()
        if reachable:
            documents = setup_from_metadata_service(ds, cfg)
        else:
            LOG.warning(
                "Metadata service unreachable, skipping synchronization"
            )
    return SyncResult(reset, reachable, documents)


def handle_args(name, args):
    """
    Handle the parsed command-line arguments.

    :param name: The name of the utility.
    :param args: The parsed arguments.
    :return: The process exit code.
    """
    log.setup_logging(debug=args.debug)
    cfg = util.load_config(args.config)

    LOG.debug(
        "%s called with the following arguments: {action: %s, config: %s}",
        name,
        args.action,
        args.config,
    )

    try:
        if args.action == "sync":
            result = synchronize(cfg)
            LOG.debug("Synchronization finished: %s", result)
        elif args.action == "shadow":
            shadow.reconcile(args.root, host_key_dir=cfg["host_key_dir"])
        elif args.action == "query":
            fetcher = MetadataFetcher(fetch_params_from_config(cfg))
            value = fetcher.fetch(args.path)
            if value is None:
                return 1
            print(value)
    except Exception:
        LOG.exception("Received fatal exception running %s!", args.action)
        raise

    LOG.debug("Exiting %s", name)
    return 0


def get_parser(parser=None):
    """
    Build or extend an arg parser for the dosync utility.

    :param parser: Optional existing ArgumentParser instance.
    :return: ArgumentParser with proper argument configuration.
    """
    if not parser:
        parser = argparse.ArgumentParser(prog=NAME, description=__doc__)

    parser.add_argument(
        "--config",
        default=util.DEFAULT_CONFIG_PATH,
        help="Path to the yaml config file (default: %(default)s)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(title="Action", dest="action")
    subparsers.required = True

    subparsers.add_parser(
        "sync",
        help="Reset credentials after snapshot restore and apply metadata.",
    )
    shadow_parser = subparsers.add_parser(
        "shadow",
        help="Run the snapshot credential check on a mounted root.",
    )
    shadow_parser.add_argument(
        "--root",
        required=True,
        help="Mount point of the persistent volume",
    )
    query_parser = subparsers.add_parser(
        "query",
        help="Fetch one metadata path and print it.",
    )
    query_parser.add_argument(
        "path",
        help="Path relative to the metadata url, e.g. interfaces/",
    )

    return parser


def main(sysv_args=None):
    args = get_parser().parse_args(sysv_args)
    return handle_args(NAME, args)


if __name__ == "__main__":
    sys.exit(main())
