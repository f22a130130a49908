"""Distance-based delivery fee.

Locations are geocoded through a Nominatim-style search endpoint and the
driving distance comes from an OSRM-style route endpoint. Any failure along
the way yields a zero fee; a booking must never be blocked by this lookup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

import httpx

from ezrent.services.pricing_service import to_money

logger = logging.getLogger(__name__)

DEFAULT_GEOCODING_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_ROUTING_URL = "https://router.project-osrm.org/route/v1/driving"


@dataclass(frozen=True)
class DeliveryEstimate:
    distance_km: Decimal
    delivery_fee: Decimal

    def to_dict(self) -> dict:
        return {"distanceKm": float(self.distance_km), "deliveryFee": float(self.delivery_fee)}


ZERO_ESTIMATE = DeliveryEstimate(Decimal("0.00"), Decimal("0.00"))


def _join(*parts) -> str:
    return ", ".join(p.strip() for p in parts if p and p.strip())


def _dedupe(queries):
    seen = []
    for q in queries:
        if q and q not in seen:
            seen.append(q)
    return seen


def customer_queries(barangay, town=None, province=None, country="Philippines"):
    """Most specific first, town-level last."""
    queries = []
    if barangay:
        queries.append(_join(f"Barangay {barangay.strip()}", town, province, country))
        queries.append(_join(barangay, town, province, country))
    if town:
        queries.append(_join(town, province, country))
    return _dedupe(queries)


def item_queries(location, country="Philippines"):
    if not location or not location.strip():
        return []
    parts = [p.strip() for p in location.split(",") if p.strip()]
    queries = []
    full = _join(*parts)
    if country and country.lower() not in full.lower():
        queries.append(_join(full, country))
    queries.append(full)
    if len(parts) > 1:
        queries.append(_join(*parts[1:], country))
    return _dedupe(queries)


class DeliveryFeeResolver:
    def __init__(
        self,
        rate_per_km="10",
        geocoding_url: str = DEFAULT_GEOCODING_URL,
        routing_url: str = DEFAULT_ROUTING_URL,
        timeout: float = 10.0,
        user_agent: str = "ezrent-delivery/1.0",
        country: str = "Philippines",
        client: httpx.Client | None = None,
    ):
        self.rate_per_km = Decimal(str(rate_per_km))
        self.geocoding_url = geocoding_url
        self.routing_url = routing_url.rstrip("/")
        self.country = country
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout, headers={"User-Agent": user_agent})

    def close(self) -> None:
        """Closes the HTTP client when this resolver created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @classmethod
    def from_config(cls, config) -> "DeliveryFeeResolver":
        return cls(
            rate_per_km=config.get("DELIVERY_RATE_PER_KM", "10"),
            geocoding_url=config.get("GEOCODING_URL", DEFAULT_GEOCODING_URL),
            routing_url=config.get("ROUTING_URL", DEFAULT_ROUTING_URL),
            timeout=float(config.get("GEO_TIMEOUT_SECONDS", 10.0)),
            user_agent=config.get("GEO_USER_AGENT", "ezrent-delivery/1.0"),
            country=config.get("DELIVERY_COUNTRY", "Philippines"),
        )

    def geocode(self, queries) -> tuple[float, float] | None:
        """First query with a hit wins; each failed attempt falls through to the next."""
        for q in queries:
            try:
                resp = self.client.get(self.geocoding_url, params={"q": q, "format": "json", "limit": 1})
                resp.raise_for_status()
                results = resp.json()
                if results:
                    return float(results[0]["lat"]), float(results[0]["lon"])
            except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
                logger.warning(f"[delivery] geocode failed for '{q}': {e}")
        return None

    def driving_distance_km(self, origin, destination) -> Decimal:
        (lat1, lon1), (lat2, lon2) = origin, destination
        url = f"{self.routing_url}/{lon1},{lat1};{lon2},{lat2}"
        resp = self.client.get(url, params={"overview": "false"})
        resp.raise_for_status()
        data = resp.json()
        if data.get("code", "Ok") != "Ok" or not data.get("routes"):
            raise ValueError(f"no route: {data.get('code')}")
        meters = Decimal(str(data["routes"][0]["distance"]))
        return to_money(meters / Decimal(1000))

    def calculate(self, customer_barangay, item_location, town=None, province=None) -> DeliveryEstimate:
        try:
            origin = self.geocode(item_queries(item_location, self.country))
            destination = self.geocode(customer_queries(customer_barangay, town, province, self.country))
            if origin is None or destination is None:
                logger.warning(
                    f"[delivery] unresolved location(s): item='{item_location}' barangay='{customer_barangay}'"
                )
                return ZERO_ESTIMATE

            distance_km = self.driving_distance_km(origin, destination)
            return DeliveryEstimate(distance_km, to_money(distance_km * self.rate_per_km))
        except Exception as e:
            logger.warning(f"[delivery] fee lookup degraded to zero: {e}")
            return ZERO_ESTIMATE


def calculate_delivery_fee(customer_barangay, item_location, town=None, province=None, resolver=None) -> DeliveryEstimate:
    """Server entry point; reads settings from the current Flask app."""
    if resolver is not None:
        return resolver.calculate(customer_barangay, item_location, town=town, province=province)

    from flask import current_app
    cfg = current_app.config
    town = town or cfg.get("DELIVERY_DEFAULT_TOWN") or None
    province = province or cfg.get("DELIVERY_DEFAULT_PROVINCE") or None
    try:
        resolver = DeliveryFeeResolver.from_config(cfg)
    except Exception as e:
        logger.warning(f"[delivery] bad delivery settings, fee degraded to zero: {e}")
        return ZERO_ESTIMATE

    try:
        return resolver.calculate(customer_barangay, item_location, town=town, province=province)
    finally:
        resolver.close()
