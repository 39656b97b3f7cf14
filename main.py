#!/usr/bin/env python
"""
Photobooth - Main Entry Point
=============================
Run the wave-triggered photobooth.
"""

from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent / ".env")

from photobooth.ui import main

if __name__ == "__main__":
    main()
