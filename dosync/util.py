# This file is part of dosync. See LICENSE file for license information.

import copy
import logging
import os

import yaml

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/dosync/dosync.cfg"

BUILTIN_CONFIG = {
    "metadata_url": "http://169.254.169.254/metadata/v1/",
    "retries": 20,
    "timeout": 1,
    "wait_retry": 1,
    "interface": "eth0",
    "link_local_cidr": "169.254.169.252/30",
    "disk_label": "DOROOT",
    "by_label_dir": "/dev/disk/by-label",
    "mount_point": "/mnt/doroot",
    "run_dir": "/run/systemd/network",
    "template_dir": "/etc/systemd/network/template",
    "sys_class_net": "/sys/class/net",
    "ssh_dir": "/root/.ssh",
    "host_key_dir": "/etc/ssh",
    "hostname_file": "/etc/hostname",
}


def mergemanydict(sources) -> dict:
    """Merge dicts, the first source taking precedence for each key."""
    merged_cfg: dict = {}
    for cfg in sources:
        if cfg:
            for key, value in cfg.items():
                if key not in merged_cfg:
                    merged_cfg[key] = copy.deepcopy(value)
                elif isinstance(merged_cfg[key], dict) and isinstance(
                    value, dict
                ):
                    merged_cfg[key] = mergemanydict([merged_cfg[key], value])
    return merged_cfg


def load_file(fname, quiet=False, decode=True):
    LOG.debug("Reading from %s (quiet=%s)", fname, quiet)
    try:
        with open(fname, "rb") as fh:
            contents = fh.read()
    except OSError:
        if not quiet:
            raise
        return None
    LOG.debug("Read %s bytes from %s", len(contents), fname)
    if decode:
        return contents.decode("utf-8")
    return contents


def read_conf(fname) -> dict:
    """Load a yaml config file, an absent file being an empty config."""
    contents = load_file(fname, quiet=True)
    if contents is None:
        LOG.debug("Config file %s not found, using defaults", fname)
        return {}
    cfg = yaml.safe_load(contents)
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise TypeError(
            "Config file %s is %s, expected a mapping"
            % (fname, type(cfg).__name__)
        )
    return cfg


def load_config(fname=None) -> dict:
    """Return the builtin config overridden by the on-disk config."""
    cfg_path = fname or DEFAULT_CONFIG_PATH
    return mergemanydict([read_conf(cfg_path), BUILTIN_CONFIG])


def ensure_dir(path, mode=None):
    if not os.path.isdir(path):
        os.makedirs(path)
    if mode is not None:
        os.chmod(path, mode)
