# This file is part of dosync. See LICENSE file for license information.

import pytest

from dosync import util


@pytest.fixture(autouse=True)
def m_sleep(mocker):
    """Never really sleep between metadata attempts."""
    return mocker.patch("time.sleep")


@pytest.fixture
def cfg(tmp_path):
    """Builtin config with every filesystem path moved below tmp_path."""
    cfg = util.mergemanydict([{}, util.BUILTIN_CONFIG])
    for key in (
        "by_label_dir",
        "mount_point",
        "run_dir",
        "template_dir",
        "sys_class_net",
        "ssh_dir",
        "host_key_dir",
    ):
        cfg[key] = str(tmp_path / key)
    cfg["hostname_file"] = str(tmp_path / "etc" / "hostname")
    (tmp_path / "etc").mkdir()
    return cfg
