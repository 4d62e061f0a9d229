#!/usr/bin/env python3
"""
GridNav - Tactical Grid Navigator
Entry Point Module
"""
import sys

from cli import main

if __name__ == "__main__":
    sys.exit(main())
