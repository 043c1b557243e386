"""
Core request handling for the gallery gateway.

This module is framework-agnostic - it doesn't import FastAPI or boto3.
The HTTP layer adapts requests in and responses out, and the storage
backend is injected through the ObjectStore protocol.
"""
