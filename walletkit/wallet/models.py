"""Typed views of the JSON the coin CLI prints."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class WalletSecurityStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    LOCKED_ANONYMIZATION = "locked-anonymization"
    UNENCRYPTED = "unencrypted"


class BlockchainInfo(BaseModel):
    chain: str = ""
    blocks: int = 0
    headers: int = 0
    bestblockhash: str = ""
    difficulty: float = 0.0
    verificationprogress: float = 0.0
    chainwork: str = ""


class HDAccount(BaseModel):
    hdaccountindex: int = 0
    hdexternalkeyindex: int = 0
    hdinternalkeyindex: int = 0


class WalletInfo(BaseModel):
    walletversion: int = 0
    balance: float = 0.0
    unconfirmed_balance: float = 0.0
    immature_balance: float = 0.0
    txcount: int = 0
    keypoololdest: int = 0
    keypoolsize: int = 0
    unlocked_until: int = 0
    encryption_status: str = ""
    hdchainid: str = ""
    hdaccountcount: int = 0
    hdaccounts: list[HDAccount] = Field(default_factory=list)

    @property
    def security_status(self) -> WalletSecurityStatus | None:
        try:
            return WalletSecurityStatus(self.encryption_status)
        except ValueError:
            return None

    @property
    def is_encrypted(self) -> bool:
        return self.security_status not in (None, WalletSecurityStatus.UNENCRYPTED)


class MNSyncStatus(BaseModel):
    """Output of ``mnsync status``. Keys are a mix of Pascal and camel case."""
    model_config = ConfigDict(populate_by_name=True)

    is_blockchain_synced: bool = Field(False, alias="IsBlockchainSynced")
    last_masternode_list: int = Field(0, alias="lastMasternodeList")
    last_masternode_winner: int = Field(0, alias="lastMasternodeWinner")
    last_failure: int = Field(0, alias="lastFailure")
    n_count_failures: int = Field(0, alias="nCountFailures")
    sum_masternode_list: int = Field(0, alias="sumMasternodeList")
    sum_masternode_winner: int = Field(0, alias="sumMasternodeWinner")
    count_masternode_list: int = Field(0, alias="countMasternodeList")
    count_masternode_winner: int = Field(0, alias="countMasternodeWinner")
    requested_masternode_assets: int = Field(0, alias="RequestedMasternodeAssets")
    requested_masternode_attempt: int = Field(0, alias="RequestedMasternodeAttempt")


class StakingStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    validtime: bool = False
    haveconnections: bool = False
    walletunlocked: bool = False
    mintablecoins: bool = False
    enoughcoins: bool = False
    mnsync: bool = False
    staking_status: bool = Field(False, alias="staking status")
