"""Wallet queries issued through the coin CLI."""

import json
from pathlib import Path
from typing import TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from walletkit.daemon.base import CommandRejectedError
from walletkit.daemon.controller import DaemonController
from walletkit.wallet.models import BlockchainInfo, MNSyncStatus, StakingStatus, WalletInfo

CMD_BLOCKCHAIN_INFO = "getblockchaininfo"
CMD_WALLET_INFO = "getwalletinfo"
CMD_MNSYNC = "mnsync"
CMD_STAKING_STATUS = "getstakingstatus"
CMD_ADDRESSES_BY_ACCOUNT = "getaddressesbyaccount"
CMD_DUMP_HD_INFO = "dumphdinfo"
CMD_ENCRYPT_WALLET = "encryptwallet"
CMD_UNLOCK_WALLET = "walletpassphrase"
CMD_LOCK_WALLET = "walletlock"

RESP_WALLET_ENCRYPTED = "wallet encrypted"

WAIT_DAEMON = "Waiting for the coin daemon..."
WAIT_WALLET = "Waiting for wallet to respond. This could take several minutes..."

ModelT = TypeVar("ModelT", bound=BaseModel)


class WalletError(Exception):
    """Raised when the wallet answers with something we cannot use."""


class WalletClient:
    """High-level wallet operations on top of a DaemonController."""

    def __init__(self, controller: DaemonController, attempts: int = 30):
        self.controller = controller
        self.attempts = attempts

    def _query(self, command: str, *values: str, waiting_message: str = WAIT_WALLET,
               display_progress: bool = True) -> str:
        self.controller.start()
        return self.controller.run_cli(
            command,
            *values,
            waiting_message=waiting_message,
            attempts=self.attempts,
            display_progress=display_progress,
        )

    def _query_model(self, model: type[ModelT], command: str, *values: str,
                     display_progress: bool = True) -> ModelT:
        output = self._query(command, *values, waiting_message=WAIT_DAEMON,
                             display_progress=display_progress)
        try:
            return model.model_validate_json(output)
        except ValidationError as e:
            raise WalletError(f"Unexpected {command} output: {e}") from e

    def get_blockchain_info(self) -> BlockchainInfo:
        return self._query_model(BlockchainInfo, CMD_BLOCKCHAIN_INFO)

    def get_wallet_info(self, display_progress: bool = True) -> WalletInfo:
        return self._query_model(WalletInfo, CMD_WALLET_INFO, display_progress=display_progress)

    def get_mn_sync_status(self) -> MNSyncStatus:
        return self._query_model(MNSyncStatus, CMD_MNSYNC, "status")

    def get_staking_status(self) -> StakingStatus:
        return self._query_model(StakingStatus, CMD_STAKING_STATUS)

    def get_addresses(self, account: str = "") -> list[str]:
        """Addresses of *account* (the default account when empty)."""
        output = self._query(CMD_ADDRESSES_BY_ACCOUNT, account)
        try:
            addresses = json.loads(output)
        except json.JSONDecodeError as e:
            raise WalletError(f"Unexpected {CMD_ADDRESSES_BY_ACCOUNT} output: {output!r}") from e
        if not isinstance(addresses, list):
            raise WalletError(f"Unexpected {CMD_ADDRESSES_BY_ACCOUNT} output: {output!r}")
        return [str(a) for a in addresses]

    def dump_hd_info(self) -> str:
        """The wallet's HD seed information. Handle with care."""
        return self._query(CMD_DUMP_HD_INFO)

    def save_seed(self, path: Path) -> Path:
        """Write the HD seed dump to *path* (owner-only permissions)."""
        seed = self.dump_hd_info()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(seed)
        path.chmod(0o600)
        logger.info(f"Wrote wallet seed to {path}")
        return path

    def encrypt_wallet(self, password: str) -> bool:
        output = self._query(CMD_ENCRYPT_WALLET, password)
        return RESP_WALLET_ENCRYPTED in output.lower()

    def unlock_wallet(self, password: str, for_staking: bool = False) -> bool:
        """Unlock the wallet without a timeout. Returns False on a wrong password."""
        values = [password, "0"]
        if for_staking:
            values.append("true")
        try:
            self._query(CMD_UNLOCK_WALLET, *values)
        except CommandRejectedError as e:
            logger.warning(f"Wallet unlock refused: {e}")
            return False
        return True

    def lock_wallet(self) -> None:
        self._query(CMD_LOCK_WALLET)
