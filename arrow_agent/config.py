from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalise optional hex values so empty strings read as unset."""

        super().model_post_init(__context)

        for name in ("agent_private_key", "hook_address"):
            value = getattr(self, name)
            if value is not None and not value.strip():
                object.__setattr__(self, name, None)

    log_level: str = Field(default="INFO", description="Logging level")

    # Home chain (funds live here; bridged out for execution)
    home_chain_name: str = Field(default="Arc Testnet", description="Display name of the home chain")
    home_rpc_url: str = Field(
        default="https://rpc.testnet.arc.network",
        description="JSON-RPC endpoint of the home chain",
        validation_alias=AliasChoices("home_rpc_url", "arc_rpc_url"),
    )
    home_chain_id: int = Field(default=5042002, description="EVM chain id of the home chain")
    home_cctp_domain: int = Field(default=26, description="Bridge domain id of the home chain")
    home_usdc_address: str = Field(
        default="0x3600000000000000000000000000000000000000",
        description="Bridgeable stable asset on the home chain",
    )
    home_usdc_decimals: int = Field(default=6, description="Decimals of the home stable asset")
    home_token_messenger: str = Field(
        default="0x8FE6B999Dc680CcFDD5Bf7EB0974218be2542DAA",
        description="Burn/deposit contract on the home chain",
    )
    home_message_transmitter: str = Field(
        default="0xE737e5cEBEEBa77EFE34D4aa090756590b1CE275",
        description="Receive/mint contract on the home chain",
    )

    # Execution chain (the swap venue lives here)
    execution_chain_name: str = Field(default="Base Sepolia", description="Display name of the execution chain")
    execution_rpc_url: str = Field(
        default="https://sepolia.base.org",
        description="JSON-RPC endpoint of the execution chain",
        validation_alias=AliasChoices("execution_rpc_url", "base_sepolia_rpc_url"),
    )
    execution_chain_id: int = Field(default=84532, description="EVM chain id of the execution chain")
    execution_cctp_domain: int = Field(default=6, description="Bridge domain id of the execution chain")
    execution_usdc_address: str = Field(
        default="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        description="Bridgeable stable asset on the execution chain",
    )
    execution_usdc_decimals: int = Field(default=6, description="Decimals of the execution stable asset")
    execution_token_messenger: str = Field(
        default="0x8FE6B999Dc680CcFDD5Bf7EB0974218be2542DAA",
        description="Burn/deposit contract on the execution chain",
    )
    execution_message_transmitter: str = Field(
        default="0xE737e5cEBEEBa77EFE34D4aa090756590b1CE275",
        description="Receive/mint contract on the execution chain",
    )

    # Swap venue
    pool_swap_test_address: str = Field(
        default="0x8b5bcc363dde2614281ad875bad385e0a785d3b9",
        description="Pool swap router used for exact-input swaps",
    )
    hook_address: Optional[str] = Field(
        default=None,
        description="Copy-trade hook contract (followers, leader swaps, limit orders)",
    )
    default_pool_fee: int = Field(default=3000, description="Fee tier used when an order carries none")
    default_tick_spacing: int = Field(default=60, description="Tick spacing used for order pool keys")

    # Signing
    agent_private_key: Optional[str] = Field(
        default=None,
        description="Operator signing key; unset keeps the agent in dry-run posture",
    )

    # Attestation service
    attestation_api_url: str = Field(
        default="https://iris-api-sandbox.circle.com/v2/messages",
        description="Attestation lookup endpoint, keyed by source domain and tx hash",
    )
    attestation_max_attempts: int = Field(default=120, ge=1, description="Attestation polls before timing out")
    attestation_interval_seconds: float = Field(default=5.0, ge=0, description="Delay between attestation polls")
    attestation_rate_limit_cooldown_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Cooldown after the attestation service answers 429",
    )

    # Transport
    rpc_timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request JSON-RPC timeout")
    receipt_timeout_seconds: float = Field(default=300.0, gt=0, description="Max wait for a transaction receipt")
    receipt_poll_interval_seconds: float = Field(default=2.0, ge=0, description="Receipt polling cadence")
    gas_multiplier: float = Field(default=1.2, ge=1.0, description="Safety margin applied to gas estimates")
    backend_timeout_seconds: float = Field(default=15.0, gt=0, description="Backend request timeout")

    # Agent loop
    poll_interval_seconds: float = Field(
        default=12.0,
        gt=0,
        description="Delay between sweeps",
        validation_alias=AliasChoices("poll_interval_seconds", "poll_interval"),
    )
    idea_posts_every_n_ticks: int = Field(default=5, ge=1, description="Idea posts are processed every N sweeps")
    leader_swap_lookback_blocks: int = Field(
        default=100,
        ge=0,
        description="Catch-up window for the first leader-swap scan",
    )
    leader_swap_max_block_range: int = Field(
        default=10_000,
        ge=1,
        description="Widest block range one leader-swap scan may request",
    )

    # Decision oracle
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    llm_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used by the decision oracle",
        validation_alias=AliasChoices("llm_model", "ai_model"),
    )
    oracle_max_tokens: int = Field(default=256, description="Maximum tokens for an oracle verdict")

    # Backend
    backend_url: str = Field(default="http://localhost:3001", description="Social backend base URL")
    agent_secret: str = Field(default="", description="Shared secret sent as x-agent-secret")

    # Durability
    dedup_db_path: str = Field(
        default="",
        description="SQLite file backing de-duplication state; empty keeps it in memory",
    )

    @property
    def has_signing_key(self) -> bool:
        return bool(self.agent_private_key)

    @property
    def has_anthropic_key(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def has_hook(self) -> bool:
        return bool(self.hook_address)


# Global settings instance
settings = Settings()
