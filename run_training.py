#!/usr/bin/env python3
"""Simple script to train a network. Wrapper for python -m training."""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "src"))

from training.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
