import random

import pytest

from somnia_auto.errors import KeyFileError, StartupError
from somnia_auto.keys import KEY_FILE_TEMPLATE, is_valid_private_key, load_wallets, shuffle_wallets

from conftest import TEST_KEYS


def test_is_valid_private_key_normalizes_prefix():
    raw = "ab" * 32
    assert is_valid_private_key(raw) == "0x" + raw
    assert is_valid_private_key("0x" + raw) == "0x" + raw
    assert is_valid_private_key("  0x" + raw + "  ") == "0x" + raw


@pytest.mark.parametrize("key", ["", None, "0x1234", "zz" * 32, "0x" + "ab" * 33, 12345])
def test_is_valid_private_key_rejects(key):
    assert is_valid_private_key(key) is False


def test_load_skips_invalid_and_comments(tmp_path, reporter, recorder):
    path = tmp_path / "pvkey.txt"
    path.write_text(f"# my keys\r\n\r\nnot-a-key\r\n{TEST_KEYS[0][2:]}\r\n", encoding="utf-8")

    wallets = load_wallets(str(path), reporter)

    assert len(wallets) == 1
    assert wallets[0].private_key == TEST_KEYS[0]
    assert wallets[0].index == 1
    assert wallets[0].line == 4
    assert recorder.count("⚠") == 1
    assert any("Invalid key at line 3" in m for m in recorder.logs)
    assert any("Loaded 1 valid private keys" in m for m in recorder.logs)


def test_missing_file_writes_template(tmp_path, reporter):
    path = tmp_path / "pvkey.txt"
    with pytest.raises(KeyFileError):
        load_wallets(str(path), reporter)
    assert path.read_text(encoding="utf-8") == KEY_FILE_TEMPLATE


def test_no_valid_keys_leaves_file_alone(tmp_path, reporter):
    path = tmp_path / "pvkey.txt"
    path.write_text(KEY_FILE_TEMPLATE + "bad\n", encoding="utf-8")
    with pytest.raises(StartupError):
        load_wallets(str(path), reporter)
    assert path.read_text(encoding="utf-8") == KEY_FILE_TEMPLATE + "bad\n"


def test_wallet_addresses_are_distinct(wallets):
    assert len({w.address for w in wallets}) == 3
    assert all(w.address.startswith("0x") for w in wallets)


def test_shuffle_keeps_members(wallets):
    out = shuffle_wallets(wallets, random.Random(7))
    assert sorted(w.index for w in out) == [1, 2, 3]
    assert [w.index for w in wallets] == [1, 2, 3]
