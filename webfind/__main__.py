"""
Main entry point for the webfind package.

Allows running the finder as: python -m webfind
"""

from webfind.cli import main

if __name__ == "__main__":
    main()
