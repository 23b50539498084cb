"""
Snapshot Codec

Turns accounts (with their nested transactions) into self-describing JSON
blobs and back.

Format of the account list blob:
    {"version": 1, "accounts": [{...}, ...]}

A bare JSON list of accounts (what the phone application wrote) is also
accepted when decoding. Its transaction lists are oldest-first and are
reversed on the way in. Field names are camelCase on the wire.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from carihesap.models.ledger import Account
from carihesap.services.storage.interface import SnapshotDecodeError


SNAPSHOT_VERSION = 1


class AccountSnapshot(BaseModel):
    """Envelope around the stored account list."""
    model_config = ConfigDict(extra="ignore")

    version: int = Field(default=SNAPSHOT_VERSION, ge=1)
    accounts: list[Account] = Field(default_factory=list)


def _load_json(blob: bytes) -> Any:
    try:
        return json.loads(blob.decode("utf-8"))
    except ValueError as e:
        raise SnapshotDecodeError(f"Snapshot is not valid JSON: {e}")


def encode_account(account: Account) -> bytes:
    """Serialize one account."""
    return account.model_dump_json(by_alias=True).encode("utf-8")


def decode_account(blob: bytes) -> Account:
    """
    Deserialize one account.

    Raises:
        SnapshotDecodeError: If the blob is not a valid account
    """
    data = _load_json(blob)
    if not isinstance(data, dict):
        raise SnapshotDecodeError("Account snapshot must be a JSON object")
    try:
        return Account.model_validate(data)
    except ValueError as e:
        raise SnapshotDecodeError(f"Invalid account snapshot: {e}")


def encode_accounts(accounts: list[Account]) -> bytes:
    """Serialize the full account list inside a versioned envelope."""
    snapshot = AccountSnapshot(accounts=accounts)
    return snapshot.model_dump_json(by_alias=True).encode("utf-8")


def from_phone_order(account: Account) -> Account:
    """The phone application appended transactions, so its lists are oldest-first."""
    return account.model_copy(update={"transactions": list(reversed(account.transactions))})


def decode_account_entries(blob: bytes) -> tuple[list[Account], list[str]]:
    """
    Deserialize the account list one entry at a time.

    An invalid entry is skipped and reported instead of failing the list,
    so one bad account cannot hide all the others.

    Returns:
        (accounts that decoded, one error message per skipped entry)

    Raises:
        SnapshotDecodeError: If the blob itself is corrupt or of an unknown
            version
    """
    data = _load_json(blob)
    phone_format = isinstance(data, list)
    if phone_format:
        data = {"version": SNAPSHOT_VERSION, "accounts": data}
    if not isinstance(data, dict):
        raise SnapshotDecodeError("Account list snapshot must be a JSON object or list")

    version = data.get("version", SNAPSHOT_VERSION)
    if not isinstance(version, int) or version < 1:
        raise SnapshotDecodeError(f"Invalid snapshot version: {version!r}")
    if version > SNAPSHOT_VERSION:
        raise SnapshotDecodeError(
            f"Snapshot version {version} is newer than supported ({SNAPSHOT_VERSION})"
        )

    entries = data.get("accounts", [])
    if not isinstance(entries, list):
        raise SnapshotDecodeError("Snapshot accounts must be a JSON list")

    accounts: list[Account] = []
    errors: list[str] = []
    for position, entry in enumerate(entries):
        try:
            account = Account.model_validate(entry)
        except ValueError as e:
            errors.append(f"Account #{position} skipped: {e}")
            continue
        accounts.append(from_phone_order(account) if phone_format else account)
    return accounts, errors


def decode_accounts(blob: bytes) -> list[Account]:
    """
    Deserialize the account list, all or nothing.

    Raises:
        SnapshotDecodeError: If the blob is corrupt, of an unknown version,
            or any account in it is invalid
    """
    accounts, errors = decode_account_entries(blob)
    if errors:
        raise SnapshotDecodeError(f"Invalid account list snapshot: {errors[0]}")
    return accounts
