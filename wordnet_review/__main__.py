"""
Entry point for running the review CLI as a module.

Usage:
    python -m wordnet_review review
    python -m wordnet_review stats
    python -m wordnet_review --help
"""
from .cli import main

if __name__ == "__main__":
    main()
