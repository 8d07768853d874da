"""Volume integration and price computation for STL quotes."""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from Backend.config import PricingPolicy
from Backend.errors import ModelTooLargeError
from Backend.mesh_parser import MeshGeometry

logger = logging.getLogger(__name__)

MM3_PER_CM3 = 1000.0


def signed_volume(triangles) -> float:
    """Sum of signed tetrahedron volumes dot(p1, cross(p2, p3)) / 6.

    ``triangles`` is an (n, 3, 3) array. The terms are added with
    ``math.fsum`` so the total does not depend on triangle order.
    """
    tris = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 3)
    p1, p2, p3 = tris[:, 0], tris[:, 1], tris[:, 2]
    terms = np.einsum("ij,ij->i", p1, np.cross(p2, p3))
    return math.fsum(terms.tolist()) / 6.0


def mesh_volume_mm3(geometry: MeshGeometry) -> float:
    return abs(signed_volume(geometry.triangles))


@dataclass(frozen=True)
class Quote:
    volume_mm3: float
    mass_grams: float
    price_dollars: float
    file_url: Optional[str] = None

    @property
    def volume_cm3(self) -> float:
        return self.volume_mm3 / MM3_PER_CM3

    def with_file_url(self, file_url: str) -> "Quote":
        return Quote(self.volume_mm3, self.mass_grams, self.price_dollars, file_url)

    def display(self) -> dict:
        """Mass and price as two-decimal strings, plus the link if present."""
        payload = {
            "massGrams": f"{self.mass_grams:.2f}",
            "priceDollars": f"{self.price_dollars:.2f}",
        }
        if self.file_url is not None:
            payload["fileUrl"] = self.file_url
        return payload


class PricingEngine:
    def __init__(self, policy: PricingPolicy):
        self.policy = policy

    def mass_for_volume(self, volume_mm3: float) -> float:
        cm3 = volume_mm3 / MM3_PER_CM3
        return cm3 * self.policy.density * self.policy.infill_fraction

    def price_for_mass(self, mass_grams: float) -> float:
        price = mass_grams * self.policy.price_per_gram
        if price < self.policy.min_price:
            price = self.policy.min_price
        return price

    def quote(self, geometry: MeshGeometry) -> Quote:
        volume = mesh_volume_mm3(geometry)
        mass = self.mass_for_volume(volume)

        if mass > self.policy.max_mass_grams:
            raise ModelTooLargeError(mass, self.policy.max_mass_grams)

        price = self.price_for_mass(mass)
        logger.debug(
            f"{geometry.triangle_count} triangles -> {volume:.3f} mm3, {mass:.4f} g, ${price:.4f}"
        )
        return Quote(volume_mm3=volume, mass_grams=mass, price_dollars=price)
