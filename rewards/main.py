"""
Main FastAPI application for the rewards shop.
Serves shop pages, admin, Slack auth, catalog import, health and metrics.
"""
from rewards.api.app import create_configured_app

app = create_configured_app()
