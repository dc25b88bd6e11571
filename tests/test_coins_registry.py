"""Tests for the coin descriptor table."""

import pytest

from walletkit.coins.registry import (
    COINS,
    CoinIdentity,
    Platform,
    app_cli_binary_name,
    cli_binary_name,
    coin_download_link,
    daemon_binary_name,
    get_coin,
    tx_binary_name,
)


class TestCoinIdentity:
    def test_persisted_values(self):
        assert CoinIdentity.DIVI == 0
        assert CoinIdentity.PHORE == 1
        assert CoinIdentity.PIVX == 2
        assert CoinIdentity.TREZARCOIN == 3

    @pytest.mark.parametrize("name,expected", [
        ("divi", CoinIdentity.DIVI),
        ("Phore", CoinIdentity.PHORE),
        ("PIVX", CoinIdentity.PIVX),
        (" trezarcoin ", CoinIdentity.TREZARCOIN),
    ])
    def test_from_name(self, name, expected):
        assert CoinIdentity.from_name(name) == expected

    def test_from_name_unknown(self):
        with pytest.raises(ValueError, match="Unknown coin"):
            CoinIdentity.from_name("dogecoin")


def test_every_coin_has_a_descriptor():
    assert set(COINS) == set(CoinIdentity)
    for coin in COINS.values():
        assert set(coin.download_files) == set(Platform)
        assert coin.startup_banner.endswith("server starting")


class TestBinaryNames:
    @pytest.mark.parametrize("identity,expected", [
        (CoinIdentity.DIVI, "divid"),
        (CoinIdentity.PHORE, "phored"),
        (CoinIdentity.PIVX, "pivxd"),
        (CoinIdentity.TREZARCOIN, "trezarcoind"),
    ])
    def test_daemon_names(self, identity, expected):
        assert daemon_binary_name(identity, Platform.LINUX) == expected
        assert daemon_binary_name(identity, Platform.ARM) == expected
        assert daemon_binary_name(identity, Platform.WINDOWS) == f"{expected}.exe"

    def test_deterministic(self):
        names = {daemon_binary_name(CoinIdentity.PHORE, Platform.LINUX) for _ in range(10)}
        assert names == {"phored"}

    def test_cli_and_tx(self):
        assert cli_binary_name(CoinIdentity.PIVX, Platform.LINUX) == "pivx-cli"
        assert tx_binary_name(CoinIdentity.DIVI, Platform.WINDOWS) == "divi-tx.exe"

    def test_app_cli(self):
        assert app_cli_binary_name(CoinIdentity.TREZARCOIN, Platform.LINUX) == "gotrezarcoin"
        assert app_cli_binary_name(CoinIdentity.DIVI, Platform.WINDOWS) == "godivi.exe"


class TestDescriptors:
    def test_divi(self):
        divi = get_coin(CoinIdentity.DIVI)
        assert divi.app_cli_name == "GoDivi CLI"
        assert divi.app_server_name == "GoDivi Server"
        assert divi.seed_file == "unsecure-divi-seed.txt"

    def test_coin_download_link(self):
        url, file = coin_download_link(CoinIdentity.DIVI, Platform.LINUX)
        assert url.startswith("https://github.com/DiviProject/")
        assert file == "divi-1.0.8-x86_64-linux-gnu.tar.gz"
