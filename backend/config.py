"""Centralized configuration — all env vars in one place."""

import os


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.port: int = int(os.getenv("PORT", "3001"))

        # Upstreams
        self.aggregator_api: str = os.getenv("AGGREGATOR_API", "https://quote-api.jup.ag/v6").rstrip("/")
        self.solana_rpc: str = os.getenv("SOLANA_RPC", "https://api.mainnet-beta.solana.com")
        self.http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "10"))

        # Cache TTLs (seconds)
        self.tokens_ttl: float = float(os.getenv("TOKENS_TTL", "60"))
        self.quote_ttl: float = float(os.getenv("QUOTE_TTL", "60"))
        self.transactions_ttl: float = float(os.getenv("TRANSACTIONS_TTL", "10"))
        self.transactions_limit: int = int(os.getenv("TRANSACTIONS_LIMIT", "20"))
        self.cache_purge_interval: float = float(os.getenv("CACHE_PURGE_INTERVAL", "60"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty when all is well)."""
        problems = []
        for name in ("tokens_ttl", "quote_ttl", "transactions_ttl", "cache_purge_interval"):
            if getattr(self, name) < 0:
                problems.append(f"{name.upper()} must be >= 0")
        if not 1 <= self.transactions_limit <= 1000:
            problems.append("TRANSACTIONS_LIMIT must be between 1 and 1000")
        if "api.mainnet-beta.solana.com" in self.solana_rpc and self.is_production:
            problems.append("SOLANA_RPC points at the rate-limited public endpoint")
        return problems


settings = Settings()
