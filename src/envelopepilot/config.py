"""
EnvelopePilot configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from envelopepilot.models.ledger import DebtStrategy

DEFAULT_IMMEDIATE_CATEGORIES = [
    "housing",
    "utilities",
    "groceries",
    "transportation",
    "insurance",
    "minimum-payments",
]


class EngineConfig(BaseModel):
    """Tunables for the budget calculation engine."""

    loan_term_months: int = Field(default=120, ge=1, description="Amortization term assumed for loans")
    credit_card_minimum_rate: Decimal = Field(default=Decimal("0.02"), ge=0)
    credit_card_minimum_floor: Decimal = Field(default=Decimal("25"), ge=0)
    age_of_money_window_days: int = Field(default=90, ge=1)
    immediate_category_ids: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMMEDIATE_CATEGORIES),
        description="Category ids grouped as immediate obligations",
    )


class EnvelopePilotConfig(BaseModel):
    """Root configuration for EnvelopePilot."""

    engine: EngineConfig = Field(default_factory=EngineConfig)

    ledger_path: str = Field(default="./ledger.json")
    # Unset means "use the ledger's own settings".
    currency: str | None = Field(default=None, description="Display currency code")
    debt_strategy: DebtStrategy | None = Field(default=None, description="Default payoff strategy")

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> EnvelopePilotConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path) as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_ledger = os.environ.get("ENVELOPEPILOT_LEDGER")
        env_currency = os.environ.get("ENVELOPEPILOT_CURRENCY")
        env_strategy = os.environ.get("ENVELOPEPILOT_DEBT_STRATEGY")

        if env_ledger:
            data["ledger_path"] = env_ledger
        if env_currency:
            data["currency"] = env_currency.upper()
        if env_strategy:
            data["debt_strategy"] = env_strategy.lower()

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
