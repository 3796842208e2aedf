# This file is part of dosync. See LICENSE file for license information.

"""Module for ephemeral network context managers
"""
import logging
from functools import partial
from typing import Callable, List

from dosync.net.netops import Iproute2
from dosync.subp import ProcessExecutionError

LOG = logging.getLogger(__name__)


class EphemeralLinkLocalNetwork:
    """Context manager which sets up a temporary link-local address.

    The address only exists to reach the metadata service before the real
    network configuration is applied. The interface is brought up and the
    address added on enter; the address is removed again on exit. Failures
    in either direction are logged and tolerated.
    """

    def __init__(self, interface, cidr, net_ops=Iproute2):
        """Setup context manager and validate call signature.

        @param interface: Name of the network interface to bring up.
        @param cidr: Address with prefix length, e.g. 169.254.169.252/30.
        @param net_ops: Object providing link_up, add_addr and del_addr.
        """
        if not all([interface, cidr]):
            raise ValueError(
                "Cannot init network on {0} with {1}".format(interface, cidr)
            )
        self.interface = interface
        self.cidr = cidr
        self.net_ops = net_ops
        # List of commands to run to cleanup state.
        self.cleanup_cmds: List[Callable] = []

    def __enter__(self):
        LOG.debug(
            "Attempting setup of ephemeral network on %s with %s",
            self.interface,
            self.cidr,
        )
        try:
            self.net_ops.link_up(self.interface)
        except ProcessExecutionError as e:
            LOG.warning(
                "Unable to bring up interface %s: %s", self.interface, e
            )
        try:
            self.net_ops.add_addr(self.interface, self.cidr)
        except ProcessExecutionError as e:
            if "File exists" in str(e.stderr):
                LOG.debug(
                    "Skip adding ip address: %s already has address %s",
                    self.interface,
                    self.cidr,
                )
            else:
                LOG.warning(
                    "Unable to add %s to %s: %s", self.cidr, self.interface, e
                )
        self.cleanup_cmds.append(
            partial(self.net_ops.del_addr, self.interface, self.cidr)
        )
        return self

    def __exit__(self, excp_type, excp_value, excp_traceback):
        """Teardown anything we set up."""
        for cmd in self.cleanup_cmds:
            try:
                cmd()
            except ProcessExecutionError as e:
                LOG.debug("Ignoring ephemeral network teardown error: %s", e)
        self.cleanup_cmds = []
