"""Entry point for running audience-manager as a module.

Usage:
    python -m audience_manager [command] [options]
"""

from audience_manager.cli.main import app

if __name__ == "__main__":
    app()
