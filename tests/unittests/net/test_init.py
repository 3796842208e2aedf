# This file is part of dosync. See LICENSE file for license information.

import pytest

from dosync import net
from tests.unittests.helpers import does_not_raise, populate_sys_class_net


class TestNetmaskToPrefix:
    @pytest.mark.parametrize(
        "netmask, prefix",
        [
            ("255.255.255.0", 24),
            ("255.255.255.255", 32),
            ("0.0.0.0", 0),
            ("255.255.240.0", 20),
            ("255.255.0.0", 16),
            ("255.255.255.252", 30),
            ("128.0.0.0", 1),
            (" 255.255.255.0\n", 24),
        ],
    )
    def test_prefix(self, netmask, prefix):
        assert prefix == net.netmask_to_prefix(netmask)

    def test_stops_at_first_zero_bit(self):
        """Non-contiguous masks are truncated, not validated."""
        assert 8 == net.netmask_to_prefix("255.0.255.0")
        assert 25 == net.netmask_to_prefix("255.255.255.191")

    @pytest.mark.parametrize(
        "netmask, expectation",
        [
            pytest.param("255.255.255.0", does_not_raise(), id="valid"),
            pytest.param("", pytest.raises(ValueError), id="empty"),
            pytest.param(
                "255.255.255", pytest.raises(ValueError), id="three_octets"
            ),
            pytest.param(
                "255.255.255.0.0", pytest.raises(ValueError), id="five_octets"
            ),
            pytest.param("a.b.c.d", pytest.raises(ValueError), id="letters"),
            pytest.param(
                "256.0.0.0", pytest.raises(ValueError), id="octet_too_big"
            ),
        ],
    )
    def test_validation(self, netmask, expectation):
        with expectation:
            net.netmask_to_prefix(netmask)


class TestGetInterfacesByMac:
    def test_maps_normalized_mac_to_name(self, tmp_path):
        sys_class_net = populate_sys_class_net(
            tmp_path / "net",
            {
                "eth0": "9A:3B:5D:1E:2F:01",
                "eth1": "9a:3b:5d:1e:2f:02",
                "lo": "00:00:00:00:00:00",
            },
        )
        assert {
            "9a:3b:5d:1e:2f:01": "eth0",
            "9a:3b:5d:1e:2f:02": "eth1",
            "00:00:00:00:00:00": "lo",
        } == net.get_interfaces_by_mac(sys_class_net)

    def test_first_name_wins_for_duplicate_mac(self, tmp_path):
        sys_class_net = populate_sys_class_net(
            tmp_path / "net",
            {"eth1": "9a:3b:5d:1e:2f:01", "bond0": "9a:3b:5d:1e:2f:01"},
        )
        assert {
            "9a:3b:5d:1e:2f:01": "bond0"
        } == net.get_interfaces_by_mac(sys_class_net)

    def test_skips_interfaces_without_address(self, tmp_path):
        sys_class_net = populate_sys_class_net(
            tmp_path / "net", {"eth0": "9a:3b:5d:1e:2f:01", "tun0": None}
        )
        assert {"9a:3b:5d:1e:2f:01": "eth0"} == net.get_interfaces_by_mac(
            sys_class_net
        )

    def test_missing_sysfs_is_empty(self, tmp_path):
        assert {} == net.get_interfaces_by_mac(str(tmp_path / "missing"))


class TestFindInterfaceByMac:
    @pytest.mark.parametrize(
        "mac, expected",
        [
            pytest.param("9a:3b:5d:1e:2f:02", "eth1", id="exact"),
            pytest.param("9A:3B:5D:1E:2F:02", "eth1", id="upper_case"),
            pytest.param("9a:3b:5d:1e:2f:02\n", "eth1", id="trailing_space"),
            pytest.param("9a:3b:5d:1e:2f:03", None, id="absent"),
        ],
    )
    def test_find(self, tmp_path, mac, expected):
        sys_class_net = populate_sys_class_net(
            tmp_path / "net",
            {"eth0": "9a:3b:5d:1e:2f:01", "eth1": "9a:3b:5d:1e:2f:02"},
        )
        assert expected == net.find_interface_by_mac(mac, sys_class_net)
