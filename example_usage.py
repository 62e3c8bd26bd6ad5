#!/usr/bin/env python3
"""
Basic usage examples for the Freemius API client library.

Deploys a new plugin version by uploading its zip, then prints a signed
URL for the plugin's tags.
"""

import logging
import sys

from freemius_api import FreemiusClient, FreemiusError

# Developer credentials
SCOPE = "developer"
DEV_ID = 1234
PUBLIC_KEY = "pk_YOUR_PUBLIC_KEY"
SECRET_KEY = "sk_YOUR_SECRET_KEY"

PLUGIN_ID = 115
PLUGIN_ZIP = "my-plugin.zip"


def main():
    """Run basic usage examples."""
    logging.basicConfig(level=logging.DEBUG)

    client = FreemiusClient(SCOPE, DEV_ID, PUBLIC_KEY, SECRET_KEY)

    try:
        print("1. Pinging API...")
        print(f"   {client.ping()}\n")

        print("2. Deploying plugin version...")
        result = client.post(
            f"plugins/{PLUGIN_ID}/tags.json",
            {"add_contributor": True},
            file_params={"file": PLUGIN_ZIP},
        )
        print(f"   Deployed version: {result.get('version')}\n")

        print("3. Signed URL for browser redirects...")
        print(f"   {client.get_signed_url(f'plugins/{PLUGIN_ID}/tags.json')}")
    except FreemiusError as e:
        print(f"   ✗ {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
