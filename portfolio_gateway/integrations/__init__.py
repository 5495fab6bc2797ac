"""Clients for the third-party services the backend proxies."""

from portfolio_gateway.integrations.errors import (
    IntegrationConfigError,
    IntegrationResponseError,
)
from portfolio_gateway.integrations.hygiene import HygieneRatingsClient
from portfolio_gateway.integrations.places import PlacesClient
from portfolio_gateway.integrations.raindrop import RaindropClient
from portfolio_gateway.integrations.recaptcha import RecaptchaResult, RecaptchaVerifier
from portfolio_gateway.integrations.text_analysis import TextAnalysisClient


__all__ = [
    "HygieneRatingsClient",
    "IntegrationConfigError",
    "IntegrationResponseError",
    "PlacesClient",
    "RaindropClient",
    "RecaptchaResult",
    "RecaptchaVerifier",
    "TextAnalysisClient",
]
