"""
Configuration module for the Collibra export pipeline.
Credential and transport settings loaded from the environment.
"""

from .settings import (
    ApiConfig,
    CollibraCredentials,
    Config,
    ConfigurationError,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'CollibraCredentials',
    'ApiConfig',
]
