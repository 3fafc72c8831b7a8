from __future__ import annotations

import os

import pytest

from ipren.config import RenewalConfig


def test_defaults():
    config = RenewalConfig()
    assert not config.receipt_tabs
    assert not config.invoicing_enabled
    assert config.default_fee == 145.0
    assert config.auto_complete_past


def test_from_env_mapping():
    config = RenewalConfig.from_env({
        "IPREN_RECEIPT_TABS": "true",
        "IPREN_INVOICE_BACKEND": "Dolibarr",
        "IPREN_DEFAULT_FEE": "150",
        "IPREN_AUTO_COMPLETE_PAST": "0",
        "IPREN_ANNUITY_HORIZON": "10",
        "IPREN_CREATOR": "batch",
    })

    assert config.receipt_tabs
    assert config.invoice_backend == "dolibarr"
    assert config.invoicing_enabled
    assert config.default_fee == 150.0
    assert not config.auto_complete_past
    assert config.annuity_horizon == 10
    assert config.creator == "batch"
    assert config.grace_months == 6


def test_from_env_dotenv_file(tmp_path, monkeypatch):
    monkeypatch.delenv("IPREN_RECEIPT_TABS", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("IPREN_RECEIPT_TABS=yes\n")

    config = RenewalConfig.from_env(dotenv_path=str(env_file))
    assert config.receipt_tabs
    os.environ.pop("IPREN_RECEIPT_TABS", None)


def test_unknown_backend_rejected():
    with pytest.raises(ValueError, match="invoice backend"):
        RenewalConfig(invoice_backend="sap")


def test_horizon_must_be_positive():
    with pytest.raises(ValueError):
        RenewalConfig(annuity_horizon=0)
