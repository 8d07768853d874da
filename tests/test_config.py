"""Tests for settings and the pricing policy value."""

import pytest
from pydantic import ValidationError

from Backend.config import DEFAULT_PUBLIC_HOST, PricingPolicy, Settings


def test_defaults_build_policy(monkeypatch):
    for name in ("PLA_DENSITY", "INFILL_FACTOR", "PRICE_PER_GRAM", "MIN_PRICE", "MAX_GRAMS"):
        monkeypatch.delenv(name, raising=False)
    policy = Settings(_env_file=None).pricing_policy()
    assert policy == PricingPolicy(
        density=1.24, infill_fraction=0.42, price_per_gram=0.63, min_price=2.0, max_mass_grams=200.0,
    )


def test_env_overrides_policy(monkeypatch):
    monkeypatch.setenv("PLA_DENSITY", "1.05")
    monkeypatch.setenv("MAX_GRAMS", "500")
    policy = Settings(_env_file=None).pricing_policy()
    assert policy.density == 1.05
    assert policy.max_mass_grams == 500.0


def test_public_host_fallbacks(monkeypatch):
    monkeypatch.delenv("PUBLIC_HOST", raising=False)
    monkeypatch.delenv("RENDER_EXTERNAL_HOSTNAME", raising=False)
    assert Settings(_env_file=None).public_host == DEFAULT_PUBLIC_HOST

    monkeypatch.setenv("RENDER_EXTERNAL_HOSTNAME", "render.example.com")
    assert Settings(_env_file=None).public_host == "render.example.com"

    monkeypatch.setenv("PUBLIC_HOST", "prints.example.com")
    assert Settings(_env_file=None).public_host == "prints.example.com"


def test_policy_is_immutable(infill_policy):
    with pytest.raises(ValidationError):
        infill_policy.density = 2.0


@pytest.mark.parametrize("infill", [0.0, -0.1, 1.01])
def test_policy_rejects_bad_infill(infill):
    with pytest.raises(ValidationError):
        PricingPolicy(
            density=1.24, infill_fraction=infill, price_per_gram=0.3, min_price=2.0, max_mass_grams=200.0,
        )


def test_settings_read_dotenv(tmp_path, monkeypatch):
    for name in ("MIN_PRICE", "SCRATCH_DIR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("MIN_PRICE=5\nSCRATCH_DIR=/srv/stl/incoming\n")
    settings = Settings()
    assert Settings.model_config["env_file"] == ".env"
    assert settings.pricing_policy().min_price == 5.0
    assert str(settings.SCRATCH_DIR) == "/srv/stl/incoming"
