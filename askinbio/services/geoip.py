"""Click context enrichment: IP geolocation and device detection."""

import ipaddress
from dataclasses import dataclass
from pathlib import Path

import geoip2.database
import geoip2.errors
import structlog
from maxminddb.errors import InvalidDatabaseError
from user_agents import parse as parse_user_agent

from askinbio.core.config import get_settings

logger = structlog.get_logger()


@dataclass
class GeoLocation:
    """Geographic location data from IP lookup."""

    country: str | None = None  # ISO 3166-1 alpha-2 country code
    city: str | None = None


def detect_device_type(user_agent: str | None) -> str | None:
    """Classify a User-Agent as mobile, tablet or desktop.

    Bots, TVs, consoles and unrecognised agents return None so they stay out
    of the device breakdown.
    """
    if not user_agent:
        return None

    ua = parse_user_agent(user_agent)
    if ua.is_bot:
        return None
    if ua.is_tablet:
        return "tablet"
    if ua.is_mobile:
        return "mobile"
    if ua.is_pc:
        return "desktop"
    return None


class GeoIPService:
    """Looks up country and city for click IP addresses.

    Backed by a local MaxMind GeoIP2 City database. Without a configured
    database every lookup returns an empty location.

    Usage:
        service = GeoIPService("/data/GeoLite2-City.mmdb")
        location = service.lookup("8.8.8.8")
    """

    def __init__(self, geoip_database_path: str | None = None):
        self._reader: geoip2.database.Reader | None = None
        path = geoip_database_path if geoip_database_path is not None else get_settings().geoip_database_path
        if path:
            self._open(Path(path))

    def _open(self, path: Path) -> None:
        if not path.exists():
            logger.warning("GeoIP2 database not found", path=str(path))
            return
        try:
            self._reader = geoip2.database.Reader(str(path))
            logger.info("GeoIP2 database loaded", path=str(path))
        except (OSError, InvalidDatabaseError) as e:
            logger.error("Failed to load GeoIP2 database", path=str(path), error=str(e))

    @property
    def enabled(self) -> bool:
        return self._reader is not None

    def lookup(self, ip_address: str | None) -> GeoLocation:
        if not ip_address or self._reader is None:
            return GeoLocation()

        try:
            if not ipaddress.ip_address(ip_address).is_global:
                return GeoLocation()
        except ValueError:
            return GeoLocation()

        try:
            response = self._reader.city(ip_address)
        except (geoip2.errors.AddressNotFoundError, ValueError) as e:
            logger.debug("GeoIP2 lookup failed", ip=ip_address, error=str(e))
            return GeoLocation()
        return GeoLocation(country=response.country.iso_code, city=response.city.name)

    def close(self) -> None:
        """Close the GeoIP2 database reader."""
        if self._reader:
            self._reader.close()
            self._reader = None


# Global service instance
_geoip_service: GeoIPService | None = None


def get_geoip_service() -> GeoIPService:
    """Get the global GeoIP service instance."""
    global _geoip_service
    if _geoip_service is None:
        _geoip_service = GeoIPService()
    return _geoip_service


def close_geoip_service() -> None:
    """Close the global GeoIP service."""
    global _geoip_service
    if _geoip_service:
        _geoip_service.close()
        _geoip_service = None
