"""Associated token account resolver with owner fallback."""

from __future__ import annotations

import logging

from solders.pubkey import Pubkey

from burnscan.chain.rpc import SolanaRPC
from burnscan.models.config import TokenProgram
from burnscan.models.records import ResolvedAccount

log = logging.getLogger(__name__)

TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

TOKEN_PROGRAM_ID = Pubkey.from_string(TOKEN_PROGRAM)
TOKEN_2022_PROGRAM_ID = Pubkey.from_string(TOKEN_2022_PROGRAM)
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xxWLTE8NUVaN6ybd8")

_PROGRAM_IDS = {
    TokenProgram.TOKEN: TOKEN_PROGRAM_ID,
    TokenProgram.TOKEN_2022: TOKEN_2022_PROGRAM_ID,
}


def derive_associated_account(
    owner: str, mint: str, token_program: TokenProgram = TokenProgram.TOKEN_2022
) -> str:
    """Derive the canonical token account for (owner, mint).

    Raises ValueError if either address is not a valid base58 public key.
    """
    owner_key = Pubkey.from_string(owner)
    mint_key = Pubkey.from_string(mint)
    program = _PROGRAM_IDS[TokenProgram(token_program)]
    ata, _bump = Pubkey.find_program_address(
        [bytes(owner_key), bytes(program), bytes(mint_key)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return str(ata)


class AssociatedAccountResolver:
    """Resolves the account whose history holds a wallet's burns.

    Burns normally show up in the history of the wallet's associated token
    account. Legacy or non-standard holdings live directly on the owner's
    history, so any failure to derive or find the ATA degrades to the owner.
    """

    def __init__(
        self,
        rpc: SolanaRPC,
        token_program: TokenProgram = TokenProgram.TOKEN_2022,
    ) -> None:
        self._rpc = rpc
        self._token_program = TokenProgram(token_program)

    async def resolve(self, owner: str, mint: str) -> ResolvedAccount:
        try:
            ata = derive_associated_account(owner, mint, self._token_program)
        except (ValueError, TypeError) as exc:
            log.info("Cannot derive token account for %s: %s, scanning owner", owner[:16], exc)
            return ResolvedAccount(address=owner, derived=False)

        try:
            info = await self._rpc.call("getAccountInfo", [ata, {"encoding": "base64"}])
        except Exception as exc:
            log.warning("Token account lookup for %s failed (%s), scanning owner", ata, exc)
            return ResolvedAccount(address=owner, derived=False)

        if not isinstance(info, dict) or not info.get("value"):
            log.info("Token account %s not found, scanning owner %s", ata, owner[:16])
            return ResolvedAccount(address=owner, derived=False)

        log.debug("Resolved %s -> token account %s", owner[:16], ata)
        return ResolvedAccount(address=ata, derived=True)
