"""
Interactive terminal for checking the Immich side of the bridge locally.

Uses the exact same ImmichClient the Discord bot uses, so an upload here
behaves like one triggered from the Backup context menu.

Usage:
    source venv/bin/activate
    python3 check_immich.py

Commands:
    /ping          — ping the Immich server
    /me            — show the user owning the API key
    /upload <path> — upload a local file (timestamped now)
    quit / exit    — stop
"""

import asyncio
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
load_dotenv()

from discord_immich.config import load_settings
from discord_immich.services.immich import ImmichClient, ImmichError, device_asset_id


async def main():
    settings = load_settings()
    client = ImmichClient(settings.IMMICH_URL, settings.IMMICH_API_KEY, device_id=settings.IMMICH_DEVICE_ID)

    print(f"Immich CLI — {client.endpoint} as device {client.device_id!r}")
    print("Type /ping, /me or /upload <path>.")
    print("─" * 60)

    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            break

        if not line:
            continue

        if line.lower() in ("quit", "exit"):
            break

        try:
            if line == "/ping":
                ping = await client.ping_server()
                print(f"  ping: {ping.res if ping else '(no content)'}\n")

            elif line == "/me":
                user = await client.get_current_user()
                if user:
                    print(f"  id: {user.id}\n  name: {user.name}\n  email: {user.email}\n")

            elif line.startswith("/upload "):
                path = line[8:].strip()
                if not os.path.exists(path):
                    print(f"Error: file not found: {path}\n")
                    continue
                asset_id = device_asset_id(os.path.basename(path), os.path.getsize(path))
                print(f"System: uploading {path} as {asset_id}…")
                now = datetime.now(timezone.utc)
                asset = await client.upload_asset(path, now, now)
                if asset:
                    print(f"  id: {asset.id}\n  status: {asset.status}\n")

            else:
                print("Unknown command.\n")
        except ImmichError as e:
            print(f"Error: {e}\n")


if __name__ == "__main__":
    asyncio.run(main())
