from pathlib import Path
from unittest import mock

import pytest

from obsstats.encryption import RECIPIENT, encrypt, gpg_command
from obsstats.errors import EncryptError
from obsstats.report_models import Report


def _fake_gpg(args, **kwargs):
    output = next(a for a in args if a.startswith("--output="))[len("--output="):]
    source = Path(args[-1]).read_bytes()
    Path(output).write_bytes(b"ENC:" + source)
    return mock.Mock(returncode=0)


def test_gpg_command_layout(tmp_path):
    args = gpg_command(tmp_path, tmp_path / "public.gpg", tmp_path / "out.gpg", tmp_path / "in")
    assert args[0] == "gpg"
    assert f"--homedir={tmp_path}" in args
    assert f"--keyring={tmp_path / 'public.gpg'}" in args
    assert f"--output={tmp_path / 'out.gpg'}" in args
    assert f"--recipient={RECIPIENT}" in args
    assert "--encrypt" in args
    assert "-z=9" in args
    assert args[-1] == str(tmp_path / "in")


def test_encrypt_returns_gpg_output(tmp_path):
    report = Report(k8s_cluster_id="cluster", product_name="Mayastor")
    with mock.patch("obsstats.encryption.subprocess.run", side_effect=_fake_gpg):
        result = encrypt(report, tmp_path, tmp_path / "public.gpg")
    assert result == b"ENC:" + report.to_json()


def test_encrypt_cleans_up_files(tmp_path):
    with mock.patch("obsstats.encryption.subprocess.run", side_effect=_fake_gpg):
        encrypt(Report(), tmp_path, tmp_path / "public.gpg")
    assert list(tmp_path.iterdir()) == []


def test_output_name_is_random_gpg_file(tmp_path):
    seen = []

    def record(args, **kwargs):
        seen.append(next(a for a in args if a.startswith("--output=")))
        return _fake_gpg(args, **kwargs)

    with mock.patch("obsstats.encryption.subprocess.run", side_effect=record):
        first = encrypt(Report(), tmp_path, tmp_path / "k")
        second = encrypt(Report(), tmp_path, tmp_path / "k")
    expected = b"ENC:" + Report().to_json()
    assert first == expected
    assert second == expected
    names = [Path(s[len("--output="):]).name for s in seen]
    assert len(names) == 2
    assert all(name.endswith(".gpg") and len(name) == 36 for name in names)
    assert names[0] != names[1]


def test_missing_gpg_raises_encrypt_error(tmp_path):
    with mock.patch(
        "obsstats.encryption.subprocess.run", side_effect=FileNotFoundError("gpg")
    ):
        with pytest.raises(EncryptError) as info:
            encrypt(Report(), tmp_path, tmp_path / "k")
    assert str(info.value).startswith("file io error")
    assert list(tmp_path.iterdir()) == []


def test_no_output_file_raises_encrypt_error(tmp_path):
    with mock.patch(
        "obsstats.encryption.subprocess.run", return_value=mock.Mock(returncode=2)
    ):
        with pytest.raises(EncryptError):
            encrypt(Report(), tmp_path, tmp_path / "k")
    assert list(tmp_path.iterdir()) == []


def test_missing_directory_raises_encrypt_error(tmp_path):
    with pytest.raises(EncryptError):
        encrypt(Report(), tmp_path / "absent", tmp_path / "k")


def test_serialisation_failure_raises_encrypt_error(tmp_path):
    class Broken:
        def to_json(self):
            raise TypeError("not serialisable")

    with pytest.raises(EncryptError) as info:
        encrypt(Broken(), tmp_path, tmp_path / "k")
    assert str(info.value).startswith("error during JSON marshalling")
    assert list(tmp_path.iterdir()) == []