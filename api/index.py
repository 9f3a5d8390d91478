"""
Serverless entry point for the Zordon Hub API
"""
import os

# Serverless defaults: no background jobs, no websocket hub
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("DEADLINE_SWEEP_INTERVAL_SECONDS", "0")
os.environ.setdefault("WORKLOAD_SYNC_INTERVAL_SECONDS", "0")
os.environ.setdefault("REALTIME_ENABLED", "false")

from mangum import Mangum  # noqa: E402

from zordon_hub.main import app  # noqa: E402

# Lambda handler for the ASGI app; lifespan runs once per cold start
handler = Mangum(app, lifespan="auto")
