#!/usr/bin/env python3
"""
Main CLI entrypoint for SceneCast.

This is a convenience wrapper that imports and runs the main pipeline orchestrator.
"""

import sys

from scenecast.pipelines.run_full_pipeline import main

if __name__ == "__main__":
    sys.exit(main())
