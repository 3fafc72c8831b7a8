"""
Renewal configuration for ipren.

This module defines the RenewalConfig dataclass that captures the settings
the task generator and workflow need, passed explicitly to the components
that use them instead of living in module globals.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from ipren.constants import MAX_ANNUITY_YEAR

ENV_PREFIX = "IPREN_"

INVOICE_BACKENDS = {"none", "dolibarr"}


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class RenewalConfig:
    """
    Configuration for renewal evaluation and workflow.

    Attributes:
        receipt_tabs: Enable the receipts sub-steps (6, 8) between payment and closure.
        invoice_backend: Invoicing backend selector ("none" or "dolibarr").

        default_fee: Service fee applied when no fee table entry exists.
        grace_fee_factor: Fee multiplier for renewals paid late in grace period.

        auto_complete_past: Create tasks whose due date has passed as done.
        annuity_horizon: Last annuity year generated from country parameters.
        grace_months: Past annuities older than this are not generated.
        wo_grace_months: Same window for matters of PCT (WO) origin.

        creator: Login recorded on transition logs.
    """

    # Workflow
    receipt_tabs: bool = False
    invoice_backend: str = "none"

    # Fees
    default_fee: float = 145.0
    grace_fee_factor: float = 1.0

    # Generation
    auto_complete_past: bool = True
    annuity_horizon: int = MAX_ANNUITY_YEAR
    grace_months: int = 6
    wo_grace_months: int = 19

    # Logging
    creator: str = "system"

    def __post_init__(self):
        """Normalize and validate values coming from strings."""
        self.invoice_backend = (self.invoice_backend or "none").strip().lower()
        if self.invoice_backend not in INVOICE_BACKENDS:
            raise ValueError(
                f"Unknown invoice backend {self.invoice_backend!r}, "
                f"expected one of {sorted(INVOICE_BACKENDS)}"
            )
        if self.annuity_horizon < 1:
            raise ValueError("annuity_horizon must be >= 1")

    @property
    def invoicing_enabled(self) -> bool:
        return self.invoice_backend != "none"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "RenewalConfig":
        """
        Build configuration from IPREN_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ (tests).
            dotenv_path: Optional .env file loaded into os.environ first.

        Returns:
            RenewalConfig with defaults for unset variables.
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        def get(name: str) -> Optional[str]:
            return environ.get(ENV_PREFIX + name)

        defaults = cls()
        return cls(
            receipt_tabs=_env_bool(get("RECEIPT_TABS"), defaults.receipt_tabs),
            invoice_backend=get("INVOICE_BACKEND") or defaults.invoice_backend,
            default_fee=float(get("DEFAULT_FEE") or defaults.default_fee),
            grace_fee_factor=float(get("GRACE_FEE_FACTOR") or defaults.grace_fee_factor),
            auto_complete_past=_env_bool(get("AUTO_COMPLETE_PAST"), defaults.auto_complete_past),
            annuity_horizon=int(get("ANNUITY_HORIZON") or defaults.annuity_horizon),
            grace_months=int(get("GRACE_MONTHS") or defaults.grace_months),
            wo_grace_months=int(get("WO_GRACE_MONTHS") or defaults.wo_grace_months),
            creator=get("CREATOR") or defaults.creator,
        )
