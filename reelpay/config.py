"""Core application configuration & tunable business rules.

All money and lifecycle rules that may evolve (cycle length, eligibility
window, payable unit size, deposit quirks) are centralized here so they can be
adjusted without diving into service logic. Deployments override the
environment-driven values; the rule dicts stay module constants (mutable so
tests can monkeypatch values).
"""
from __future__ import annotations

import os

# ------------------------------- Campaigns -------------------------------- #
CAMPAIGN_SETTINGS: dict[str, int] = {
	"min_rate_per_1k_views_paise": 3000,     # ₹30 per 1k views
	"max_rate_per_1k_views_paise": 100000,   # ₹1000 per 1k views
	"default_duration_days": 30,             # end_at fallback on activation
	"default_submission_eligibility_days": 30,
}

# ----------------------------- Verification ------------------------------- #
VERIFICATION_SETTINGS: dict[str, int] = {
	"default_cycle_hours": 48,
	# Views that convert into one payable unit (rate is quoted per 1k views).
	"views_per_unit": 1000,
}

# -------------------------------- Deposits -------------------------------- #
DEPOSIT_SETTINGS: dict[str, int | bool | str] = {
	# A DRAFT campaign created with a pre-set budget receives that same amount
	# again when its checkout payment is confirmed; skip the second increment.
	"skip_draft_seed_echo": True,
	# Minimum for host-initiated "add funds" requests (₹500). Webhook deposits
	# carry whatever the provider captured.
	"min_manual_deposit_paise": 50000,
	"provider_key_prefix": "rp_",
	"provider_capture_event": "payment.captured",
}

# ------------------------------ Environment ------------------------------- #
# Shared secret for the payment provider webhook HMAC. When unset, signatures
# are not checked (local development only).
PAYMENT_WEBHOOK_SECRET: str | None = os.getenv("PAYMENT_WEBHOOK_SECRET") or None

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE", "logs/app.log") or None
CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

__all__ = [
	"CAMPAIGN_SETTINGS",
	"VERIFICATION_SETTINGS",
	"DEPOSIT_SETTINGS",
	"PAYMENT_WEBHOOK_SECRET",
	"LOG_LEVEL",
	"LOG_FILE",
	"CORS_ORIGINS",
]
