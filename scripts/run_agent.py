#!/usr/bin/env python3
"""
Agent entrypoint - terminal chat by default, HTTP API with --web.

Usage:
    python scripts/run_agent.py
    python scripts/run_agent.py --web --port=8000
"""

import argparse
import os
import sys
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Add project root to path for imports (src/, tui/ and util/ are in project root)
sys.path.insert(0, str(Path(__file__).parent.parent))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Multi-Source AI Agent")
    parser.add_argument("-w", "--web", action="store_true", help="Serve the HTTP API instead of the terminal chat")
    parser.add_argument("--host", default="127.0.0.1", help="Host for --web (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=3000, help="Port for --web (default: 3000)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if os.getenv("LLM_ENABLED", "false").lower() != "true":
        print("⚠️  LLM_ENABLED is not set - the agent will use keyword routing with limited functionality")

    from src.core.config import validate_config
    for issue in validate_config():
        print(f"⚠️  {issue}")

    try:
        if args.web:
            import uvicorn
            print(f"🌐 Starting web interface on http://{args.host}:{args.port}")
            uvicorn.run("src.api.main:app", host=args.host, port=args.port)
        else:
            print("💻 Starting terminal interface...")
            from tui.main import main as tui_main
            tui_main()
    except KeyboardInterrupt:
        print("\n👋 Shutting down gracefully...")
        return 0
    except Exception as e:
        print(f"❌ Failed to start application: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
