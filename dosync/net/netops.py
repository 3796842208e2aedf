# This file is part of dosync. See LICENSE file for license information.

from dosync import subp


class Iproute2:
    @staticmethod
    def link_up(interface: str):
        subp.subp(["ip", "link", "set", "dev", interface, "up"])

    @staticmethod
    def add_addr(interface: str, address: str):
        subp.subp(["ip", "addr", "add", "dev", interface, address])

    @staticmethod
    def del_addr(interface: str, address: str):
        subp.subp(["ip", "addr", "del", "dev", interface, address])
