from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_UPLOAD_DIR = Path(__file__).parent / "uploads"
DEFAULT_PUBLIC_HOST = "stl-pricing-server.onrender.com"


class PricingPolicy(BaseModel):
    """Material and pricing constants for one quoting variant."""

    model_config = ConfigDict(frozen=True)

    density: float = Field(gt=0)                # g/cm³
    infill_fraction: float = Field(gt=0, le=1)  # 1.0 = solid print
    price_per_gram: float = Field(ge=0)         # $/g
    min_price: float = Field(ge=0)              # $
    max_mass_grams: float = Field(gt=0)         # g (after infill)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    # Material + pricing
    PLA_DENSITY: float = 1.24
    INFILL_FACTOR: float = 0.42
    PRICE_PER_GRAM: float = 0.63
    MIN_PRICE: float = 2.0
    MAX_GRAMS: float = 200.0

    # Storage + public links
    PERSIST_UPLOADS: bool = True
    UPLOAD_DIR: Path = DEFAULT_UPLOAD_DIR
    SCRATCH_DIR: Optional[Path] = None  # defaults to a sibling of UPLOAD_DIR
    PUBLIC_HOST: str = ""
    RENDER_EXTERNAL_HOSTNAME: str = ""

    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    def pricing_policy(self) -> PricingPolicy:
        return PricingPolicy(
            density=self.PLA_DENSITY,
            infill_fraction=self.INFILL_FACTOR,
            price_per_gram=self.PRICE_PER_GRAM,
            min_price=self.MIN_PRICE,
            max_mass_grams=self.MAX_GRAMS,
        )

    @property
    def public_host(self) -> str:
        return self.PUBLIC_HOST or self.RENDER_EXTERNAL_HOSTNAME or DEFAULT_PUBLIC_HOST


@lru_cache
def get_settings() -> Settings:
    return Settings()
