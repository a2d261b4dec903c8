# src/marketpulse/adapters/serverless/__init__.py
"""
Serverless Adapter - Function-as-a-Service Entry Point

Configure the hosting platform with the handler path
``marketpulse.adapters.serverless.handler.handler``.
"""

__all__ = []
