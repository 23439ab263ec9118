#!/usr/bin/env python3
"""
Development startup script.

Starts the mock storefront backend and the checkout service in development
mode, then seeds a demo shopper cart and prints its bearer token.
"""

import os
import sys
import subprocess
import time
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

BACKEND_URL = "http://localhost:4000/api/v2"
CHECKOUT_URL = "http://localhost:8000"


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import jwt
        import pydantic_settings
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        import shutil
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
        return True
    else:
        print("✗ No configuration file found")
        return False


def seed_demo_cart():
    """Log in a demo shopper and fill their cart. Returns the bearer token."""
    import httpx

    with httpx.Client(base_url=BACKEND_URL, timeout=10) as client:
        login = client.post(
            "/auth/login",
            json={"email": "demo@example.com", "name": "Demo Shopper"},
        )
        login.raise_for_status()
        token = login.json()["data"]["token"]

        headers = {"Authorization": f"Bearer {token}"}
        client.delete("/cart/", headers=headers)
        for product_id, qty, variant in [
            ("prod-003", 1, None),
            ("prod-002", 1, "TEE-CREW-WHT-M"),
        ]:
            client.post(
                "/cart/",
                json={"productId": product_id, "qty": qty, "variantSku": variant},
                headers=headers,
            ).raise_for_status()
    return token


def start_services():
    """Start both services in development mode."""
    processes = []

    try:
        print("\n🏪 Starting mock storefront on http://localhost:4000 ...")
        backend_process = subprocess.Popen(
            [
                sys.executable, "-m", "uvicorn",
                "mock_backend.main:app",
                "--reload",
                "--host", "0.0.0.0",
                "--port", "4000",
            ],
            cwd=PROJECT_ROOT,
            env=dict(os.environ),
        )
        processes.append(backend_process)

        # Wait a bit for the backend to start
        time.sleep(2)

        print("🛒 Starting checkout service on http://localhost:8000 ...")
        checkout_process = subprocess.Popen(
            [
                sys.executable, "-m", "uvicorn",
                "checkout.main:app",
                "--reload",
                "--host", "0.0.0.0",
                "--port", "8000",
            ],
            cwd=PROJECT_ROOT,
            env=dict(os.environ),
        )
        processes.append(checkout_process)

        time.sleep(2)
        try:
            token = seed_demo_cart()
        except Exception as e:
            print(f"! Could not seed demo cart: {e}")
            token = None

        print("\n" + "=" * 60)
        print("Services started successfully!")
        print("=" * 60)
        print(f"\n📍 Checkout API:  {CHECKOUT_URL}/docs")
        print("📍 Storefront:    http://localhost:4000/docs")
        if token:
            print("\nDemo shopper token (POST /api/checkout/session {\"token\": ...}):")
            print(token)
        print("\nPress Ctrl+C to stop all services")
        print("=" * 60)

        # Wait for processes
        for p in processes:
            p.wait()

    except KeyboardInterrupt:
        print("\n\nShutting down services...")
        for p in processes:
            p.terminate()
        for p in processes:
            p.wait()
        print("All services stopped.")


def main():
    print("=" * 60)
    print("Storefront Checkout - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    print("\n✓ All checks passed!")

    # Start services
    start_services()


if __name__ == "__main__":
    main()
