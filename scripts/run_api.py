#!/usr/bin/env python
"""
Run the Event Pricing API (FastAPI via uvicorn).

Usage:
    python scripts/run_api.py [--port 8000] [--no-reload]
"""
import argparse
import subprocess
import sys
import os
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Event Pricing API")
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--no-reload', action='store_true', help="Disable auto-reload")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    os.chdir(project_root)

    # Ensure src is in python path
    env = os.environ.copy()
    src_path = str(project_root / "src")
    if "PYTHONPATH" in env:
        env["PYTHONPATH"] = f"{src_path}{os.pathsep}{env['PYTHONPATH']}"
    else:
        env["PYTHONPATH"] = src_path

    cmd = [
        sys.executable, "-m", "uvicorn",
        "event_pricing.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
        "--log-level", env.get("EVENT_PRICING_LOG_LEVEL", "info").lower(),
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print("Starting Event Pricing API (FastAPI)...")
    try:
        subprocess.run(cmd, env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
