import logging

import pytest

from arpwatch_container.errors import ConfigurationError, PrivilegeError
from arpwatch_container.translator import ArpwatchArgs, build_arpwatch_args, ensure_data_file


@pytest.mark.parametrize("spec", ["", "   ", ",", " , , "])
def test_missing_interface_is_fatal(make_config, spec):
    with pytest.raises(ConfigurationError) as excinfo:
        build_arpwatch_args(make_config(interface_spec=spec))
    assert "ARPWATCH_INTERFACES" in str(excinfo.value)
    assert excinfo.value.exit_code == 1


def test_missing_interface_checked_before_privileges(make_config):
    with pytest.raises(ConfigurationError):
        build_arpwatch_args(make_config(interface_spec="", effective_uid=1000))


@pytest.mark.parametrize("spec", ["eth0,eth1", " eth0 ,eth1", "eth0, wlan0, eth2"])
def test_multiple_interfaces_use_first_and_warn(make_config, caplog, spec):
    caplog.set_level(logging.WARNING)
    argv = build_arpwatch_args(make_config(interface_spec=spec)).to_argv()

    assert argv[:2] == ["-i", "eth0"]
    assert argv.count("-i") == 1
    assert "one interface per process" in caplog.text.lower()


def test_default_argument_vector_as_root(make_config, data_dir):
    argv = build_arpwatch_args(make_config()).to_argv()
    assert argv == ["-i", "eth0", "-f", str(data_dir / "eth0.dat"), "-N", "-u", "arpwatch"]


def test_default_argument_vector_with_default_data_dir(make_config, monkeypatch):
    monkeypatch.setattr("arpwatch_container.translator.ensure_data_file", lambda path: True)
    config = make_config(data_dir="/var/lib/arpwatch")
    argv = build_arpwatch_args(config).to_argv()
    assert argv == ["-i", "eth0", "-f", "/var/lib/arpwatch/eth0.dat", "-N", "-u", "arpwatch"]


def test_skip_privilege_drop_as_root_omits_user_flag(make_config):
    argv = build_arpwatch_args(make_config(skip_privilege_drop=True)).to_argv()
    assert "-u" not in argv
    assert argv[-1] == "-N"


def test_non_root_without_skip_is_fatal(make_config, data_dir):
    with pytest.raises(PrivilegeError) as excinfo:
        build_arpwatch_args(make_config(effective_uid=102))
    assert "ARPWATCH_SKIP_PRIVILEGE_DROP" in str(excinfo.value)
    # Nothing is touched before the precondition is checked
    assert not (data_dir / "eth0.dat").exists()


def test_non_root_with_skip_is_allowed(make_config):
    argv = build_arpwatch_args(make_config(effective_uid=102, skip_privilege_drop=True)).to_argv()
    assert "-u" not in argv
    assert "-N" in argv


def test_non_root_unexpected_uid_warns(make_config, caplog):
    caplog.set_level(logging.WARNING)
    build_arpwatch_args(make_config(effective_uid=1000, skip_privilege_drop=True))
    assert "UID 102" in caplog.text


def test_data_file_created_before_launch(make_config, data_dir):
    target = data_dir / "eth0.dat"
    assert not target.exists()

    build_arpwatch_args(make_config())

    assert target.is_file()


def test_existing_data_file_left_untouched(make_config, data_dir):
    target = data_dir / "eth0.dat"
    target.write_text("00:11:22:33:44:55\t10.0.0.1\t1700000000\n")

    build_arpwatch_args(make_config())

    assert target.read_text().startswith("00:11:22:33:44:55")


def test_data_file_creation_failure_is_not_fatal(make_config, tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    missing = tmp_path / "does-not-exist"

    argv = build_arpwatch_args(make_config(data_dir=missing)).to_argv()

    assert str(missing / "eth0.dat") in argv
    assert "Cannot create" in caplog.text


def test_ensure_data_file_reports_result(tmp_path):
    assert ensure_data_file(tmp_path / "eth0.dat") is True
    assert ensure_data_file(tmp_path / "missing" / "eth0.dat") is False


def test_network_filter_and_extra_options_order(make_config, data_dir):
    config = make_config(network="10.0.0.0/8", extra_opts="  -p   -e  -  ", debug=True)
    argv = build_arpwatch_args(config, extra_argv=["-s", "root"]).to_argv()

    assert argv == [
        "-i", "eth0",
        "-f", str(data_dir / "eth0.dat"),
        "-n", "10.0.0.0/8",
        "-d",
        "-N",
        "-u", "arpwatch",
        "-p", "-e", "-",
        "-s", "root",
    ]


def test_network_filter_passed_through_unvalidated(make_config):
    argv = build_arpwatch_args(make_config(network="not-a-cidr")).to_argv()
    assert argv[argv.index("-n") + 1] == "not-a-cidr"


def test_extra_options_cannot_displace_generated_flags(make_config):
    argv = build_arpwatch_args(make_config(extra_opts="-i eth9")).to_argv()
    assert argv[:2] == ["-i", "eth0"]
    assert argv[-2:] == ["-i", "eth9"]


def test_builder_command_and_str():
    args = ArpwatchArgs("/usr/sbin/arpwatch").with_interface("eth0")
    assert args.command() == ["/usr/sbin/arpwatch", "-i", "eth0", "-N"]
    assert str(args) == "/usr/sbin/arpwatch -i eth0 -N"


def test_builder_requires_interface():
    with pytest.raises(ConfigurationError):
        ArpwatchArgs().to_argv()


@pytest.mark.parametrize("spec", ["../../etc/x", "eth0/../../x", "/tmp/evil"])
def test_interface_with_path_separator_is_rejected(make_config, data_dir, spec):
    with pytest.raises(ConfigurationError) as excinfo:
        build_arpwatch_args(make_config(interface_spec=spec))
    assert "cannot contain '/'" in str(excinfo.value)
    assert list(data_dir.iterdir()) == []
