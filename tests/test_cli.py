"""Tests for the addr-alloc command line."""
import json

import pytest

from addr_alloc import cli
from addr_alloc.service import Allocator
from addr_alloc.store import AddressStore


@pytest.fixture
def populated_db(tmp_path):
    db = tmp_path / "addr.db"
    allocator = Allocator(AddressStore(db))
    allocator.resolve("phone")
    allocator.resolve("laptop")
    return db


def test_dump(populated_db, capsys):
    cli.main(["dump", "--db", str(populated_db)])
    out = capsys.readouterr().out.splitlines()
    assert out == [
        "laptop: 10.8.0.3",
        "phone: 10.8.0.2",
        "Next free address is 10.8.0.4",
    ]


def test_dump_json(populated_db, capsys):
    cli.main(["dump", "--db", str(populated_db), "--json"])
    assert json.loads(capsys.readouterr().out) == {"phone": "10.8.0.2", "laptop": "10.8.0.3"}


def test_dump_unreadable_db_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(["dump", "--db", str(tmp_path)])
    assert exc.value.code == 1


def test_gen_certs(tmp_path, capsys):
    out_dir = tmp_path / "key"
    cli.main(["gen-certs", str(out_dir)])
    for name in ("cert.ca", "cert.allocator", "key.allocator", "cert.client", "key.client"):
        assert (out_dir / name).exists()
    assert "cert.allocator" in capsys.readouterr().out
