"""Business logic services."""

from askinbio.services import analytics as analytics_service
from askinbio.services import click as click_service
from askinbio.services import link as link_service
from askinbio.services import profile as profile_service
from askinbio.services import theme as theme_service
from askinbio.services import user as user_service

__all__ = [
    "analytics_service",
    "click_service",
    "link_service",
    "profile_service",
    "theme_service",
    "user_service",
]
