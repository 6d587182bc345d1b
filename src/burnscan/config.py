"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from burnscan.models.config import ScanMode, ScannerConfig, TokenProgram


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "BURNSCAN_",
) -> ScannerConfig:
    """Load scanner configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (BURNSCAN_RPC_URL, etc.)
        2. TOML config file
        3. Defaults from ScannerConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ScannerConfig()

    # ── RPC section ────────────────────────────────────────
    rpc = raw.get("rpc", {})
    if v := rpc.get("url"):
        cfg.rpc_url = str(v)
    if v := rpc.get("commitment"):
        cfg.commitment = str(v)
    if v := rpc.get("timeout"):
        cfg.request_timeout = float(v)

    # ── Token section ──────────────────────────────────────
    token = raw.get("token", {})
    if v := token.get("mint"):
        cfg.mint_address = str(v)
    if v := token.get("program"):
        cfg.token_program = TokenProgram(v)
    if (v := token.get("decimals")) is not None:
        cfg.decimals = int(v)
    if v := token.get("initial_supply"):
        cfg.initial_supply = int(v)

    # ── Scan section ───────────────────────────────────────
    scan = raw.get("scan", {})
    if v := scan.get("page_size"):
        cfg.page_size = int(v)
    if mode_str := scan.get("mode"):
        cfg.mode = ScanMode(mode_str)

    # ── Logging section ────────────────────────────────────
    logging_raw = raw.get("logging", {})
    if v := logging_raw.get("level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if url := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = url
    if mint := os.environ.get(f"{env_prefix}MINT"):
        cfg.mint_address = mint
    if page_size := os.environ.get(f"{env_prefix}PAGE_SIZE"):
        cfg.page_size = int(page_size)
    if mode_env := os.environ.get(f"{env_prefix}MODE"):
        cfg.mode = ScanMode(mode_env)

    if cfg.page_size < 1:
        raise ValueError(f"page_size must be positive, got {cfg.page_size}")

    return cfg
