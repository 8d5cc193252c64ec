#!/usr/bin/env python3
"""
GuildDesk Bot Runner

This is the main entry point to run the GuildDesk Discord Bot.
Simply run: python run.py
"""

import sys
from guilddesk.bot import main
from guilddesk.utils import SingleInstanceLock

if __name__ == "__main__":
    # Ensure only one instance is running
    lock = SingleInstanceLock()
    if not lock.acquire():
        print(f"❌ Error: Another instance of GuildDesk is already running (checked {lock.lock_file_path}).")
        print("Please stop the existing instance before starting a new one.")
        sys.exit(1)

    try:
        main()
    finally:
        lock.release()
