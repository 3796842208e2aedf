# This file is part of dosync. See LICENSE file for license information.

import contextlib
import os

import responses

BASE_URL = "http://169.254.169.254/metadata/v1/"

# Collected from a droplet with one public and one private interface.
DROPLET_METADATA = {
    "hostname": "web-01",
    "public-keys": "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIB2x user@laptop",
    "interfaces": {
        "public": {
            "0": {
                "mac": "9A:3B:5D:1E:2F:01",
                "type": "public",
                "ipv4": {
                    "address": "203.0.113.10",
                    "netmask": "255.255.240.0",
                    "gateway": "203.0.113.1",
                },
                "anchor_ipv4": {
                    "address": "10.17.0.5",
                    "netmask": "255.255.0.0",
                    "gateway": "10.17.0.1",
                },
                "ipv6": {
                    "address": "2001:db8:0:1::1",
                    "cidr": "64",
                    "gateway": "2001:db8:0:1::f",
                },
            }
        },
        "private": {
            "0": {
                "mac": "9a:3b:5d:1e:2f:02",
                "type": "private",
                "ipv4": {
                    "address": "10.132.0.7",
                    "netmask": "255.255.0.0",
                    "gateway": "0.0.0.0",
                },
            }
        },
    },
}


@contextlib.contextmanager
def does_not_raise():
    """Context manager to parametrize tests raising and not raising exceptions

    Note: In python-3.7+, this can be substituted by contextlib.nullcontext

    Example usage:
        @pytest.mark.parametrize(
            "example_input,expectation",
            [
                (1, does_not_raise()),
                (0, pytest.raises(ZeroDivisionError)),
            ],
        )
        def test_division(example_input, expectation):
            with expectation:
                assert (0 / example_input) is not None
    """
    yield


def register_mock_metaserver(base_url, data, responses_mock=None):
    r"""Register with responses a metadata service serving 'data'.

    Dictionaries become directory nodes whose listing names every key, with
    a trailing slash on keys that are themselves dictionaries. For example
       {"hostname": "web-01", "interfaces": {"public": {...}}}
    populates
       base_url            with 'hostname\ninterfaces/\n'
       base_url/hostname   with web-01
       base_url/interfaces/ with 'public/\n'
    A value of None registers a 404 for that path.
    """
    responses_mock = responses_mock or responses

    def register(url, body, status=200):
        return responses_mock.add(responses.GET, url, body=body, status=status)

    def register_helper(url, body):
        if isinstance(body, dict):
            listing = []
            for key, value in body.items():
                if isinstance(value, dict):
                    listing.append(key + "/")
                    register_helper(url + key + "/", value)
                else:
                    listing.append(key)
                    register_helper(url + key, value)
            register(url, "\n".join(listing) + "\n")
        elif body is None:
            register(url, "not found", status=404)
        else:
            register(url, body)

    register_helper(base_url, data)


def populate_sys_class_net(path, interfaces):
    """Create a fake /sys/class/net below path from {name: mac}."""
    os.makedirs(path, exist_ok=True)
    for name, mac in interfaces.items():
        os.makedirs(os.path.join(path, name), exist_ok=True)
        if mac is None:
            continue
        with open(os.path.join(path, name, "address"), "w") as fh:
            fh.write(mac + "\n")
    return str(path)
