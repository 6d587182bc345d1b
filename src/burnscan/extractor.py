"""Burn extractor - finds the net burn of the tracked mint in one transaction."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from burnscan.chain.fetcher import ui_amount
from burnscan.chain.resolver import TOKEN_2022_PROGRAM, TOKEN_PROGRAM
from burnscan.models.events import ScanTarget
from burnscan.models.records import (
    Instruction,
    OtherInstruction,
    ParsedTransaction,
    TokenBalance,
    TokenBurn,
    TokenBurnChecked,
)

log = logging.getLogger(__name__)

TOKEN_PROGRAM_NAMES = frozenset({"spl-token", "spl-token-2022"})
TOKEN_PROGRAM_IDS = frozenset({TOKEN_PROGRAM, TOKEN_2022_PROGRAM})
BURN_TYPES = frozenset({"burn", "burnChecked"})


def _raw_amount(value: Any) -> int:
    if value is None:
        return 0
    return int(value)


def parse_instruction(raw: dict) -> Instruction:
    """Classify a jsonParsed instruction into one of the known shapes.

    The program/type check runs first and is the only work done for the
    vast majority of instructions. Burn-shaped instructions that are
    missing fields also come back as OtherInstruction.
    """
    program = raw.get("program")
    if program not in TOKEN_PROGRAM_NAMES and raw.get("programId") not in TOKEN_PROGRAM_IDS:
        return OtherInstruction(program=program)

    parsed = raw.get("parsed")
    if not isinstance(parsed, dict) or parsed.get("type") not in BURN_TYPES:
        return OtherInstruction(program=program)

    info = parsed.get("info")
    if not isinstance(info, dict):
        return OtherInstruction(program=program)

    account = info.get("account")
    mint = info.get("mint")
    if not account or not mint:
        return OtherInstruction(program=program)
    authority = info.get("authority") or info.get("multisigAuthority")

    token_amount = info.get("tokenAmount")
    decimals: int | None = None
    try:
        if isinstance(token_amount, dict):
            amount_raw = _raw_amount(token_amount.get("amount"))
            if token_amount.get("decimals") is not None:
                decimals = int(token_amount["decimals"])
        else:
            amount_raw = _raw_amount(info.get("amount"))
    except (TypeError, ValueError):
        log.debug("Burn instruction with unreadable amount: %r", info)
        return OtherInstruction(program=program)

    if parsed["type"] == "burn" and not isinstance(token_amount, dict):
        return TokenBurn(
            account=str(account),
            mint=str(mint),
            authority=authority,
            amount_raw=amount_raw,
        )

    return TokenBurnChecked(
        account=str(account),
        mint=str(mint),
        authority=authority,
        amount_raw=amount_raw,
        ui_amount=ui_amount(token_amount),
        decimals=decimals,
    )


class BurnExtractor:
    """Applies the burn evidence policy to a single parsed transaction.

    Checks, in order:
    1. Transaction present and succeeded on-chain
    2. Instruction is a token-program burn / burnChecked
    3. Burned mint is the tracked mint
    4. Burned account is attributable to the target owner
    5. Amount from the balance diff, else from the instruction itself

    The first instruction that yields a positive amount decides the whole
    transaction. Two independent burns from two accounts of the same owner
    in one transaction are therefore counted once (known limitation).
    """

    def extract(
        self,
        tx: ParsedTransaction | None,
        target: ScanTarget,
        scan_account: str,
    ) -> Decimal | None:
        if tx is None or not tx.succeeded:
            return None

        for raw in tx.instructions:
            ix = parse_instruction(raw)
            if isinstance(ix, OtherInstruction):
                continue
            if ix.mint != target.mint_address:
                continue

            amount = self._amount_for(ix, tx, target, scan_account)
            if amount is not None and amount > 0:
                return amount

        return None

    def _amount_for(
        self,
        ix: TokenBurn | TokenBurnChecked,
        tx: ParsedTransaction,
        target: ScanTarget,
        scan_account: str,
    ) -> Decimal | None:
        pre = self._owned_balance(tx.pre_token_balances, ix.account, tx, target, scan_account)
        post = self._owned_balance(tx.post_token_balances, ix.account, tx, target, scan_account)

        if pre is None and post is None:
            # No balance entry says the burned account is ours; fall back to
            # the instruction's own fields, but never against a recorded owner.
            if ix.account != scan_account:
                if self._described(tx, ix.account, target.mint_address):
                    return None
                if ix.authority != target.owner_address:
                    return None

        if pre is not None and post is not None and pre.amount is not None and post.amount is not None:
            diff = pre.amount - post.amount
            if diff > 0:
                return diff
            log.debug(
                "Non-positive balance diff %s for %s in %s",
                diff, ix.account[:16], tx.signature[:20],
            )
            return None

        return self._instruction_amount(ix, target.decimals)

    @staticmethod
    def _owned_balance(
        balances: tuple[TokenBalance, ...],
        account: str,
        tx: ParsedTransaction,
        target: ScanTarget,
        scan_account: str,
    ) -> TokenBalance | None:
        """First balance entry for the burned account that belongs to the target.

        An entry belongs to the target if its owner field is the target owner
        or its account index resolves to the scan account.
        """
        for bal in balances:
            if bal.mint != target.mint_address:
                continue
            key = tx.account_key(bal.account_index)
            if key is not None and key != account:
                continue
            if bal.owner == target.owner_address:
                return bal
            if key is not None and key == scan_account:
                return bal
        return None

    @staticmethod
    def _described(tx: ParsedTransaction, account: str, mint: str) -> bool:
        """True if any balance entry records the burned account for this mint."""
        for bal in tx.pre_token_balances + tx.post_token_balances:
            if bal.mint == mint and tx.account_key(bal.account_index) == account:
                return True
        return False

    @staticmethod
    def _instruction_amount(
        ix: TokenBurn | TokenBurnChecked, decimals: int
    ) -> Decimal | None:
        if isinstance(ix, TokenBurnChecked) and ix.ui_amount is not None and ix.ui_amount > 0:
            return ix.ui_amount
        if ix.amount_raw > 0:
            return Decimal(ix.amount_raw).scaleb(-decimals)
        return None
