"""Unit tests for the sealdrop command line."""

import pytest
from unittest.mock import patch
from sealdrop import cli
from sealdrop.core.exceptions import StorageError
from sealdrop.core.storage import BlobStore
from sealdrop.security.framing import deserialize_blob, serialize_blob


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def passphrase():
    """Feed getpass prompts from a list."""
    with patch("sealdrop.cli.getpass.getpass") as mock:
        yield mock


def _seal(storage_dir, src, passphrase, secret="correct-horse"):
    passphrase.side_effect = [secret, secret]
    return cli.main(["--storage-dir", str(storage_dir), "seal", str(src)])


def test_seal_then_open(tmp_path, storage_dir, passphrase, capsys):
    src = tmp_path / "note.txt"
    src.write_bytes(b"hello world")

    assert _seal(storage_dir, src, passphrase) == 0
    blob_id = capsys.readouterr().out.strip().splitlines()[-1]
    assert BlobStore(storage_dir).has(blob_id)

    out = tmp_path / "restored.txt"
    passphrase.side_effect = ["correct-horse"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id, "-o", str(out)]) == 0
    assert out.read_bytes() == b"hello world"
    assert "text/plain" in capsys.readouterr().out


def test_open_defaults_to_stored_basename(tmp_path, storage_dir, passphrase, capsys, monkeypatch):
    src = tmp_path / "note.txt"
    src.write_bytes(b"hello world")
    _seal(storage_dir, src, passphrase)
    blob_id = capsys.readouterr().out.strip().splitlines()[-1]

    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    passphrase.side_effect = ["correct-horse"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id]) == 0
    assert (workdir / "note.txt").read_bytes() == b"hello world"


def test_open_wrong_passphrase(tmp_path, storage_dir, passphrase, capsys):
    src = tmp_path / "note.txt"
    src.write_bytes(b"hello world")
    _seal(storage_dir, src, passphrase)
    blob_id = capsys.readouterr().out.strip().splitlines()[-1]

    passphrase.side_effect = ["wrong-pass"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id]) == 1
    assert "decryption failed" in capsys.readouterr().err


def test_open_unknown_id(storage_dir, passphrase, capsys):
    passphrase.side_effect = ["pw"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", "nope"]) == 1
    assert "not found" in capsys.readouterr().err


def test_seal_mismatched_passphrases(tmp_path, storage_dir, passphrase, capsys):
    src = tmp_path / "note.txt"
    src.write_bytes(b"hello")
    passphrase.side_effect = ["one", "two"]
    assert cli.main(["--storage-dir", str(storage_dir), "seal", str(src)]) == 1
    assert "do not match" in capsys.readouterr().err


def test_seal_missing_file(tmp_path, storage_dir, passphrase, capsys):
    assert cli.main(["--storage-dir", str(storage_dir), "seal", str(tmp_path / "nope")]) == 1
    passphrase.assert_not_called()


def test_seal_empty_file(tmp_path, storage_dir, passphrase, capsys):
    src = tmp_path / "empty.txt"
    src.write_bytes(b"")
    assert _seal(storage_dir, src, passphrase) == 1
    assert "empty file" in capsys.readouterr().err


def test_invalid_env_config(monkeypatch, capsys):
    monkeypatch.setenv("SEALDROP_PORT", "nope")
    assert cli.main(["serve"]) == 2
    assert "SEALDROP_PORT" in capsys.readouterr().err


def test_serve_applies_flags(storage_dir, monkeypatch):
    monkeypatch.delenv("SEALDROP_PORT", raising=False)
    with patch("sealdrop.web.app.run_server") as run:
        assert cli.main(["--storage-dir", str(storage_dir), "serve", "--port", "5050", "--host", "127.0.0.1"]) == 0
    settings = run.call_args[0][0]
    assert settings.port == 5050
    assert settings.host == "127.0.0.1"
    assert settings.storage_dir == storage_dir


# ==============================================================================
# Tests: stored filename is not trusted
# ==============================================================================

def _rename_stored(storage_dir, blob_id, filename):
    """Rewrite the unauthenticated filename field of a stored blob."""
    path = storage_dir / blob_id
    parsed = deserialize_blob(path.read_bytes())
    path.write_bytes(
        serialize_blob(parsed.material, filename, parsed.media_type, parsed.ciphertext)
    )


@pytest.fixture
def sealed(tmp_path, storage_dir, passphrase, capsys):
    src = tmp_path / "note.txt"
    src.write_bytes(b"payload")
    _seal(storage_dir, src, passphrase)
    blob_id = capsys.readouterr().out.strip().splitlines()[-1]

    workdir = tmp_path / "work"
    workdir.mkdir()
    return blob_id, workdir


def test_open_refuses_to_overwrite(storage_dir, passphrase, sealed, monkeypatch, capsys):
    blob_id, workdir = sealed
    _rename_stored(storage_dir, blob_id, ".bashrc")
    (workdir / ".bashrc").write_bytes(b"ORIGINAL")
    monkeypatch.chdir(workdir)

    passphrase.side_effect = ["correct-horse"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id]) == 1
    assert "already exists" in capsys.readouterr().err
    assert (workdir / ".bashrc").read_bytes() == b"ORIGINAL"


def test_open_force_overwrites(storage_dir, passphrase, sealed, monkeypatch):
    blob_id, workdir = sealed
    (workdir / "note.txt").write_bytes(b"old")
    monkeypatch.chdir(workdir)

    passphrase.side_effect = ["correct-horse"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id, "--force"]) == 0
    assert (workdir / "note.txt").read_bytes() == b"payload"


@pytest.mark.parametrize("stored_name", ["..", ".", "", "../../escape.txt", "/"])
def test_open_unsafe_stored_name_falls_back(storage_dir, passphrase, sealed, monkeypatch, stored_name):
    blob_id, workdir = sealed
    _rename_stored(storage_dir, blob_id, stored_name)
    monkeypatch.chdir(workdir)

    passphrase.side_effect = ["correct-horse"]
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id]) == 0
    expected = "escape.txt" if stored_name.endswith("escape.txt") else "file"
    assert (workdir / expected).read_bytes() == b"payload"
    assert sorted(p.name for p in workdir.iterdir()) == [expected]


def test_open_write_error_returns_1(storage_dir, passphrase, sealed, capsys):
    blob_id, workdir = sealed
    passphrase.side_effect = ["correct-horse"]
    # the destination is an existing directory
    assert cli.main(["--storage-dir", str(storage_dir), "open", blob_id, "-o", str(workdir)]) == 1
    assert "could not write" in capsys.readouterr().err


def test_seal_storage_error_returns_1(tmp_path, storage_dir, passphrase, capsys):
    src = tmp_path / "note.txt"
    src.write_bytes(b"hello")
    with patch("sealdrop.core.storage.BlobStore.put", side_effect=StorageError("could not write blob")):
        assert _seal(storage_dir, src, passphrase) == 1
    assert "could not write blob" in capsys.readouterr().err
